"""Yahoo Finance chart fetcher for index, commodity and forex pages."""

import logging
from functools import partial
from urllib.parse import quote as percent_encode

from ticker_feed.config import (
    COMMODITY_ASSETS,
    FOREX_ASSETS,
    INDEX_ASSETS,
    Settings,
)
from ticker_feed.data.client import Endpoint, FetchRetryClient
from ticker_feed.data.market_normalizer import deserialize_yahoo_chart
from ticker_feed.data.scheduler import BoundedFetchScheduler, FetchTask, ScheduleReport
from ticker_feed.data.status import FetchOutcome, describe, status_code
from ticker_feed.models.market_data import AssetPage, AssetQuote, AssetSpec


logger = logging.getLogger(__name__)

CHART_PATH = "/v8/finance/chart/"
CHART_PARAMS = {"range": "1mo", "interval": "1d"}  # ~22 daily points
CHART_HEADERS = {"Accept": "application/json", "User-Agent": "ticker-feed/0.1"}


class YahooFetcher:
    """Fetches one chart per symbol, several at a time through the scheduler."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: FetchRetryClient | None = None,
        scheduler: BoundedFetchScheduler | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.client = client or FetchRetryClient(self.settings)
        self.scheduler = scheduler or BoundedFetchScheduler.from_settings(self.settings)
        # Last outcome per symbol, for diagnostics; each worker writes its own key
        self.last_outcomes: dict[str, FetchOutcome] = {}

    @staticmethod
    def _encode_symbol(symbol: str) -> str:
        """Percent-encode reserved characters such as ``^`` (``=`` is kept)."""
        return percent_encode(symbol, safe="=")

    def endpoint(self, symbol: str) -> Endpoint:
        return Endpoint(
            base_url=self.settings.yahoo_endpoint,
            path=CHART_PATH + self._encode_symbol(symbol),
            params=dict(CHART_PARAMS),
            headers=dict(CHART_HEADERS),
        )

    def fetch_symbol(self, symbol: str, quote: AssetQuote) -> FetchOutcome:
        """Fetch and normalize one symbol into ``quote``."""
        logger.info(f"  Fetching Yahoo Finance: {symbol}")
        outcome = self.client.fetch(
            self.endpoint(symbol),
            partial(deserialize_yahoo_chart, quote=quote),
            attempts=self.settings.attempts_for("yahoo"),
        )
        self.last_outcomes[symbol] = outcome
        return outcome

    def _work(self, task: FetchTask) -> bool:
        outcome = self.fetch_symbol(task.symbol, task.quote)
        return outcome.ok and task.quote.valid

    def fetch_page(self, page: AssetPage, specs: tuple[AssetSpec, ...]) -> ScheduleReport:
        """
        Fetch every symbol of a page with bounded concurrency.

        Args:
            page: Page whose quotes receive the results, one per spec
            specs: Configured symbols in slot order

        Returns:
            ScheduleReport for the run
        """
        logger.info(f"Fetching {page.name} (parallel)...")
        page.begin_cycle(specs)

        tasks = [FetchTask(symbol=spec.symbol, quote=quote) for spec, quote in zip(specs, page.quotes)]
        report = self.scheduler.run(tasks, self._work)

        page.refresh_valid()
        return report


def main() -> None:
    """CLI entry point for fetching Yahoo Finance charts."""
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    # httpx logs full request URLs, API keys included
    logging.getLogger("httpx").setLevel(logging.WARNING)

    known = {spec.symbol: spec for spec in INDEX_ASSETS + COMMODITY_ASSETS + FOREX_ASSETS}

    parser = argparse.ArgumentParser(description="Fetch Yahoo Finance chart quotes")
    parser.add_argument(
        "symbols",
        nargs="*",
        help="Yahoo symbols (default: all configured index symbols)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum concurrent requests",
    )
    args = parser.parse_args()

    settings = Settings()
    if args.concurrency is not None:
        settings.max_concurrent_tasks = args.concurrency

    symbols = args.symbols or [spec.symbol for spec in INDEX_ASSETS]
    specs = tuple(known.get(symbol, AssetSpec(symbol, symbol, symbol)) for symbol in symbols)

    fetcher = YahooFetcher(settings)
    page = AssetPage(name="Yahoo Finance", quotes=[AssetQuote() for _ in specs])
    report = fetcher.fetch_page(page, specs)

    print("\nYahoo Finance Quotes:")
    print("-" * 80)
    for quote in page.quotes:
        outcome = fetcher.last_outcomes.get(quote.symbol)
        state = f"{status_code(outcome)} {describe(outcome)}" if outcome else "timed out"
        print(
            f"{quote.symbol:12} | {quote.name:28} | {quote.price:12.4f} | "
            f"{quote.change_day:+7.2f}% | {len(quote.candles):2} candles | {state}"
        )

    print(f"\n{report.succeeded}/{len(specs)} succeeded in {report.batches} batches.")


if __name__ == "__main__":
    main()
