"""SQLite cache for quote history."""

import sqlite3
from datetime import date, datetime
from pathlib import Path

import pandas as pd

from ticker_feed.models.market_data import AssetPage


class DataCache:
    """SQLite-based cache of the quotes produced by each refresh cycle."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS quotes (
                    symbol TEXT NOT NULL,
                    date TEXT NOT NULL,
                    page TEXT NOT NULL,
                    price REAL NOT NULL,
                    previous_close REAL NOT NULL,
                    change_day REAL NOT NULL,
                    secondary_price REAL NOT NULL,
                    fetched_at TEXT NOT NULL,
                    PRIMARY KEY (symbol, date)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_quotes_symbol_date
                ON quotes(symbol, date)
            """)

    def store_page(self, page: AssetPage, fetched_at: datetime) -> int:
        """
        Store the valid quotes of a page, one row per symbol per day.

        Args:
            page: Page after a fetch cycle
            fetched_at: When the page was refreshed

        Returns:
            Number of rows inserted/updated
        """
        day = fetched_at.date().isoformat()
        fetched_str = fetched_at.isoformat()
        rows = [
            (
                quote.symbol,
                day,
                page.name,
                quote.price,
                quote.previous_close,
                quote.change_day,
                quote.secondary_price,
                fetched_str,
            )
            for quote in page.quotes
            if quote.valid and quote.symbol
        ]
        if not rows:
            return 0

        with self._get_connection() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO quotes
                (symbol, date, page, price, previous_close, change_day,
                 secondary_price, fetched_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        return len(rows)

    def get_latest_date(self, symbol: str) -> date | None:
        """Get the most recent date we have cached for a symbol."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT MAX(date) as max_date FROM quotes WHERE symbol = ?",
                (symbol,),
            ).fetchone()
            if row and row["max_date"]:
                return date.fromisoformat(row["max_date"])
        return None

    def get_series(
        self, symbol: str, start_date: date | None = None, end_date: date | None = None
    ) -> pd.DataFrame:
        """
        Retrieve cached prices for a symbol.

        Returns:
            DataFrame with DatetimeIndex and 'price', 'change_day' and
            'secondary_price' columns
        """
        query = "SELECT date, price, change_day, secondary_price FROM quotes WHERE symbol = ?"
        params: list = [symbol]

        if start_date:
            query += " AND date >= ?"
            params.append(start_date.isoformat())
        if end_date:
            query += " AND date <= ?"
            params.append(end_date.isoformat())

        query += " ORDER BY date"

        with self._get_connection() as conn:
            df = pd.read_sql_query(query, conn, params=params)

        if df.empty:
            return pd.DataFrame(columns=["price", "change_day", "secondary_price"])

        df["date"] = pd.to_datetime(df["date"])
        df.set_index("date", inplace=True)
        return df

    def get_cache_status(self) -> dict[str, dict]:
        """Get status of cached data for each symbol."""
        with self._get_connection() as conn:
            rows = conn.execute("""
                SELECT
                    symbol,
                    page,
                    COUNT(*) as observation_count,
                    MIN(date) as first_date,
                    MAX(date) as last_date,
                    MAX(fetched_at) as last_fetched
                FROM quotes
                GROUP BY symbol
            """).fetchall()

        return {
            row["symbol"]: {
                "page": row["page"],
                "observation_count": row["observation_count"],
                "first_date": row["first_date"],
                "last_date": row["last_date"],
                "last_fetched": row["last_fetched"],
            }
            for row in rows
        }
