"""Refresh cycle across all sources: four asset pages plus weather."""

import logging
import sqlite3
from datetime import datetime

from ticker_feed.config import COMMODITY_ASSETS, FOREX_ASSETS, INDEX_ASSETS, Settings
from ticker_feed.data.cache import DataCache
from ticker_feed.data.client import FetchRetryClient
from ticker_feed.data.coingecko_fetcher import CoinGeckoFetcher
from ticker_feed.data.openweather_fetcher import OpenWeatherFetcher
from ticker_feed.data.scheduler import BoundedFetchScheduler, ScheduleReport
from ticker_feed.data.status import FetchOutcome, describe, status_code
from ticker_feed.data.yahoo_fetcher import YahooFetcher
from ticker_feed.models.market_data import AssetPage
from ticker_feed.models.weather import AirQualitySample, WeatherSnapshot


logger = logging.getLogger(__name__)


class MarketAggregator:
    """
    Owns the crypto, indices, commodities and forex pages.

    A failed source never raises out of ``fetch_all``; its page keeps its
    previous numbers with ``valid`` cleared while the other pages refresh.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: FetchRetryClient | None = None,
        scheduler: BoundedFetchScheduler | None = None,
        cache: DataCache | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.client = client or FetchRetryClient(self.settings)
        self.scheduler = scheduler or BoundedFetchScheduler.from_settings(self.settings)
        self.cache = cache

        self.crypto_fetcher = CoinGeckoFetcher(self.settings, self.client)
        self.yahoo_fetcher = YahooFetcher(self.settings, self.client, self.scheduler)

        self.crypto = AssetPage(name="Crypto")
        self.indices = AssetPage(name="Indices")
        self.commodities = AssetPage(name="Commodities")
        self.forex = AssetPage(name="Forex")

    @property
    def pages(self) -> list[AssetPage]:
        return [self.crypto, self.indices, self.commodities, self.forex]

    def conversion_rate(self) -> float:
        """Live rate from the forex page, or the fallback when unavailable."""
        quote = self.forex.find(self.settings.conversion_symbol)
        if self.forex.valid and quote is not None and quote.valid and quote.price > 0:
            logger.info(
                f"Using live {self.settings.conversion_symbol} rate: {quote.price:.4f}"
            )
            return quote.price

        logger.warning(
            f"{self.settings.conversion_symbol} unavailable, "
            f"using fallback rate: {self.settings.fallback_rate:.4f}"
        )
        return self.settings.fallback_rate

    def apply_conversion(self) -> float:
        """Fill the secondary-currency price of every crypto quote."""
        rate = self.conversion_rate()
        for quote in self.crypto.quotes:
            quote.secondary_price = quote.price * rate if quote.valid else 0.0
        return rate

    def _cache_page(self, page: AssetPage) -> None:
        if self.cache is None:
            return
        try:
            stored = self.cache.store_page(page, page.last_updated)
        except sqlite3.Error as e:
            logger.error(f"  Failed to cache {page.name} quotes: {e}")
            return
        logger.info(f"  Cached {stored} {page.name} quotes")

    def _stamp(self, page: AssetPage) -> None:
        page.last_updated = datetime.now()
        self._cache_page(page)

    def fetch_all(self) -> dict[str, FetchOutcome | ScheduleReport]:
        """
        Run one refresh cycle over all four pages.

        Returns:
            Dict of page name to the crypto call's outcome or the Yahoo
            pages' schedule reports
        """
        results: dict[str, FetchOutcome | ScheduleReport] = {}

        results[self.crypto.name] = self.crypto_fetcher.fetch(self.crypto)
        self.crypto.last_updated = datetime.now()

        for page, specs in (
            (self.indices, INDEX_ASSETS),
            (self.commodities, COMMODITY_ASSETS),
            (self.forex, FOREX_ASSETS),
        ):
            results[page.name] = self.yahoo_fetcher.fetch_page(page, specs)
            self._stamp(page)

        # Crypto is cached only once its secondary price is known
        self.apply_conversion()
        self._cache_page(self.crypto)

        valid = sum(page.valid for page in self.pages)
        logger.info(f"Refresh complete: {valid}/{len(self.pages)} pages valid")
        return results


def _print_page(page: AssetPage, secondary_currency: str) -> None:
    updated = page.last_updated.strftime("%Y-%m-%d %H:%M:%S") if page.last_updated else "never"
    print(f"\n{page.name} ({'valid' if page.valid else 'INVALID'}, updated {updated}):")
    print("-" * 80)
    for quote in page.quotes:
        line = (
            f"{quote.display_symbol:8} | {quote.name:28} | {quote.price:12.4f} | "
            f"{quote.change_day:+7.2f}% | {len(quote.candles):2} candles"
        )
        if quote.secondary_price:
            line += f" | {quote.secondary_price:12.2f} {secondary_currency}"
        if not quote.valid:
            line += " | no data"
        print(line)


def main() -> None:
    """CLI entry point for one refresh cycle."""
    import argparse
    import sys

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    # httpx logs full request URLs, API keys included
    logging.getLogger("httpx").setLevel(logging.WARNING)

    parser = argparse.ArgumentParser(description="Fetch market and weather data")
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show cache status and exit",
    )
    parser.add_argument(
        "--history",
        metavar="SYMBOL",
        help="Show cached price history for a symbol and exit",
    )
    parser.add_argument(
        "--skip-weather",
        action="store_true",
        help="Do not fetch weather and air quality",
    )
    parser.add_argument(
        "--skip-markets",
        action="store_true",
        help="Do not fetch the asset pages",
    )
    args = parser.parse_args()

    settings = Settings()
    cache = DataCache(settings.db_path)

    if args.history:
        latest = cache.get_latest_date(args.history)
        if latest is None:
            print(f"No cached data for {args.history}.")
            return
        series = cache.get_series(args.history)
        print(f"\n{args.history}: {len(series)} observations, last date: {latest}")
        print("-" * 80)
        print(series.to_string())
        return

    if args.status:
        status = cache.get_cache_status()
        if not status:
            print("Cache is empty.")
            return
        print("\nCache Status:")
        print("-" * 80)
        for symbol, info in sorted(status.items()):
            print(
                f"{symbol:10} | {info['page']:12} | {info['observation_count']:5} obs | "
                f"{info['first_date']} to {info['last_date']}"
            )
        return

    client = FetchRetryClient(settings)

    if not args.skip_weather:
        try:
            settings.validate()
        except ValueError as e:
            print(f"Configuration error: {e}")
            sys.exit(1)

        snapshot = WeatherSnapshot()
        sample = AirQualitySample()
        outcomes = OpenWeatherFetcher(settings, client).fetch_all(snapshot, sample)

        print("\nWeather:")
        print("-" * 80)
        for name, outcome in outcomes.items():
            print(f"{name:12} | {status_code(outcome):5} {describe(outcome)}")
        if outcomes["weather"].ok:
            current = snapshot.current
            print(
                f"Now: {current.temp:.1f}, {current.humidity}% humidity, "
                f"{current.weather.description}"
            )
        if outcomes["air_quality"].ok and len(sample):
            print(f"AQI (latest of {len(sample)} hours): {sample.aqi[-1]}")

    if not args.skip_markets:
        aggregator = MarketAggregator(settings, client, cache=cache)
        results = aggregator.fetch_all()

        for page in aggregator.pages:
            _print_page(page, settings.secondary_currency)

        crypto_outcome = results[aggregator.crypto.name]
        print(f"\nCoinGecko: {status_code(crypto_outcome)} {describe(crypto_outcome)}")
        for name, report in results.items():
            if isinstance(report, ScheduleReport):
                print(
                    f"{name}: {report.succeeded}/{len(report.successes)} succeeded "
                    f"in {report.batches} batches"
                )


if __name__ == "__main__":
    main()
