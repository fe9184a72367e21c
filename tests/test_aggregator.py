import sqlite3

import pytest

from ticker_feed.data.aggregator import MarketAggregator
from ticker_feed.data.cache import DataCache
from ticker_feed.data.scheduler import ScheduleReport
from ticker_feed.data.status import HttpStatus

from tests.payloads import chart, coin, default_coins, market_handler


def usdcad(rate: float) -> dict:
    return chart(price=rate, closes=[rate - 0.01, rate])


@pytest.fixture
def aggregator(settings, make_client):
    def _make(handler, cache=None) -> MarketAggregator:
        return MarketAggregator(settings, make_client(handler), cache=cache)

    return _make


def test_fetch_all_populates_every_page(aggregator):
    agg = aggregator(market_handler(charts={"USDCAD=X": usdcad(1.25)}))

    results = agg.fetch_all()

    assert results["Crypto"] == HttpStatus(200)
    for name in ("Indices", "Commodities", "Forex"):
        assert isinstance(results[name], ScheduleReport)
        assert results[name].successes == [True] * 4
    assert all(page.valid for page in agg.pages)
    assert all(page.last_updated is not None for page in agg.pages)
    stamps = [page.last_updated for page in agg.pages]
    assert stamps == sorted(stamps)


def test_live_conversion_rate(aggregator):
    agg = aggregator(market_handler(charts={"USDCAD=X": usdcad(1.25)}))
    agg.fetch_all()

    assert agg.forex.find("USDCAD=X").price == 1.25
    for quote in agg.crypto.quotes:
        assert quote.secondary_price == pytest.approx(quote.price * 1.25)


def test_fallback_rate_when_forex_quote_fails(aggregator, settings):
    agg = aggregator(market_handler(failing={"USDCAD=X"}))
    agg.fetch_all()

    assert agg.forex.valid
    assert not agg.forex.find("USDCAD=X").valid
    assert agg.conversion_rate() == settings.fallback_rate
    for quote in agg.crypto.quotes:
        assert quote.secondary_price == pytest.approx(quote.price * settings.fallback_rate)


def test_fallback_rate_when_forex_page_down(aggregator, settings):
    agg = aggregator(market_handler(failing={"USDCAD=X", "EURUSD=X", "GBPUSD=X", "USDJPY=X"}))
    agg.fetch_all()

    assert not agg.forex.valid
    assert agg.crypto.quotes[0].secondary_price == pytest.approx(60000.0 * settings.fallback_rate)


def test_invalid_crypto_quotes_have_no_secondary_price(aggregator):
    agg = aggregator(market_handler(coingecko_status=500, charts={"USDCAD=X": usdcad(1.3)}))
    results = agg.fetch_all()

    assert results["Crypto"] == HttpStatus(500)
    assert not agg.crypto.valid
    assert all(quote.secondary_price == 0.0 for quote in agg.crypto.quotes)
    # Other pages are unaffected
    assert agg.indices.valid and agg.commodities.valid and agg.forex.valid
    assert agg.crypto.last_updated is not None


def test_failed_page_is_isolated(aggregator):
    healthy = aggregator(market_handler())
    healthy.fetch_all()

    agg = aggregator(market_handler(failing={"GC=F"}))
    agg.fetch_all()

    assert agg.indices.quotes == healthy.indices.quotes
    assert agg.forex.quotes == healthy.forex.quotes
    assert agg.commodities.quotes[1:] == healthy.commodities.quotes[1:]
    assert not agg.commodities.quotes[0].valid


def test_valid_quotes_are_cached(aggregator, settings):
    cache = DataCache(settings.db_path)
    agg = aggregator(market_handler(failing={"^DJI"}, charts={"USDCAD=X": usdcad(1.25)}), cache=cache)
    agg.fetch_all()

    status = cache.get_cache_status()
    assert "^DJI" not in status
    assert status["bitcoin"]["page"] == "Crypto"
    assert status["^GSPC"]["observation_count"] == 1
    assert len(status) == 15

    series = cache.get_series("bitcoin")
    assert series["secondary_price"].iloc[-1] == pytest.approx(60000.0 * 1.25)


def test_unrepresentable_crypto_price_does_not_stop_other_pages(aggregator):
    coins = default_coins()
    coins[0] = coin("bitcoin", "Bitcoin", 10**400)
    agg = aggregator(market_handler(coins=coins, charts={"USDCAD=X": usdcad(1.25)}))

    results = agg.fetch_all()

    assert results["Crypto"] == HttpStatus(200)
    assert not agg.crypto.quotes[0].valid
    assert agg.crypto.quotes[0].secondary_price == 0.0
    assert agg.crypto.quotes[1].secondary_price == pytest.approx(3000.0 * 1.25)
    for page in (agg.indices, agg.commodities, agg.forex):
        assert page.valid
        assert page.last_updated is not None


class LockedCache:
    def __init__(self):
        self.calls = []

    def store_page(self, page, fetched_at):
        self.calls.append(page.name)
        raise sqlite3.OperationalError("database is locked")


def test_cache_failure_does_not_stop_refresh(aggregator):
    cache = LockedCache()
    agg = aggregator(market_handler(charts={"USDCAD=X": usdcad(1.25)}), cache=cache)

    results = agg.fetch_all()

    assert cache.calls == ["Indices", "Commodities", "Forex", "Crypto"]
    assert set(results) == {"Crypto", "Indices", "Commodities", "Forex"}
    assert all(page.valid for page in agg.pages)
    assert all(page.last_updated is not None for page in agg.pages)
    assert agg.crypto.quotes[0].secondary_price == pytest.approx(60000.0 * 1.25)
