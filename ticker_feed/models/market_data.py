"""Data models for market quotes."""

from dataclasses import dataclass, field
from datetime import datetime


ASSETS_PER_PAGE = 4


@dataclass(frozen=True)
class AssetSpec:
    """Configured identity of one asset slot."""

    symbol: str  # CoinGecko id or Yahoo symbol
    display: str
    name: str


@dataclass
class Candle:
    """One OHLC period of a downsampled price series."""

    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0

    def is_positive(self) -> bool:
        return self.open > 0 and self.high > 0 and self.low > 0 and self.close > 0


@dataclass
class AssetQuote:
    """Latest quote for a single asset."""

    symbol: str = ""
    display_symbol: str = ""
    name: str = ""
    price: float = 0.0
    previous_close: float = 0.0
    change_day: float = 0.0  # percent
    change_week: float = 0.0
    change_month: float = 0.0
    change_year: float = 0.0  # 1y for crypto, 30d for chart symbols
    candles: list[Candle] = field(default_factory=list)
    secondary_price: float = 0.0
    valid: bool = False

    def assign_identity(self, spec: AssetSpec) -> None:
        """Populate display metadata so the slot renders even without data."""
        self.symbol = spec.symbol
        self.display_symbol = spec.display
        self.name = spec.name
        self.valid = False

    def reset(self) -> None:
        """Clear all numeric data in place."""
        self.price = 0.0
        self.previous_close = 0.0
        self.change_day = 0.0
        self.change_week = 0.0
        self.change_month = 0.0
        self.change_year = 0.0
        self.candles.clear()
        self.secondary_price = 0.0
        self.valid = False


@dataclass
class AssetPage:
    """Fixed group of four related quotes."""

    name: str
    quotes: list[AssetQuote] = field(
        default_factory=lambda: [AssetQuote() for _ in range(ASSETS_PER_PAGE)]
    )
    last_updated: datetime | None = None
    valid: bool = False

    def begin_cycle(self, specs: tuple[AssetSpec, ...]) -> None:
        """
        Prepare the page for a fetch cycle.

        Identity is written eagerly and every valid flag cleared. Previous
        numbers are kept so a failed fetch still shows the last good data.
        """
        for quote, spec in zip(self.quotes, specs):
            quote.assign_identity(spec)
        self.valid = False

    def refresh_valid(self) -> bool:
        self.valid = any(quote.valid for quote in self.quotes)
        return self.valid

    def find(self, symbol: str) -> AssetQuote | None:
        for quote in self.quotes:
            if quote.symbol == symbol:
                return quote
        return None
