"""Data fetching, normalization and caching."""

from .aggregator import MarketAggregator
from .cache import DataCache
from .client import Endpoint, FetchRetryClient
from .coingecko_fetcher import CoinGeckoFetcher
from .openweather_fetcher import OpenWeatherFetcher
from .scheduler import BoundedFetchScheduler, FetchTask, ScheduleReport
from .status import FetchOutcome, HttpStatus, LinkDown, ParseFailure
from .yahoo_fetcher import YahooFetcher

__all__ = [
    "MarketAggregator",
    "DataCache",
    "Endpoint",
    "FetchRetryClient",
    "CoinGeckoFetcher",
    "OpenWeatherFetcher",
    "BoundedFetchScheduler",
    "FetchTask",
    "ScheduleReport",
    "FetchOutcome",
    "HttpStatus",
    "LinkDown",
    "ParseFailure",
    "YahooFetcher",
]
