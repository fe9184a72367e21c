import copy

import httpx

from ticker_feed.config import AIR_QUALITY_CAPACITY, CRYPTO_ASSETS, INDEX_ASSETS
from ticker_feed.data.coingecko_fetcher import CoinGeckoFetcher
from ticker_feed.data.openweather_fetcher import OpenWeatherFetcher
from ticker_feed.data.scheduler import BoundedFetchScheduler
from ticker_feed.data.status import HttpStatus, ParseErrorCode, ParseFailure
from ticker_feed.data.yahoo_fetcher import YahooFetcher
from ticker_feed.models.market_data import AssetPage
from ticker_feed.models.weather import AirQualitySample, WeatherSnapshot

from tests.payloads import air_quality, default_coins, encode, market_handler, onecall


NOW = 1_700_000_000


class TestYahooFetcher:
    def test_endpoint_encodes_reserved_characters(self, settings):
        fetcher = YahooFetcher(settings)
        assert fetcher.endpoint("^GSPC").path == "/v8/finance/chart/%5EGSPC"
        assert fetcher.endpoint("USDCAD=X").path == "/v8/finance/chart/USDCAD=X"
        assert fetcher.endpoint("^GSPC").params == {"range": "1mo", "interval": "1d"}

    def test_fetch_page(self, settings, make_client):
        fetcher = YahooFetcher(settings, make_client(market_handler()))
        page = AssetPage(name="Indices")

        report = fetcher.fetch_page(page, INDEX_ASSETS)

        assert report.batches == 2
        assert report.successes == [True] * 4
        assert page.valid
        for quote, spec in zip(page.quotes, INDEX_ASSETS):
            assert quote.symbol == spec.symbol
            assert quote.display_symbol == spec.display
            assert quote.valid
            assert len(quote.candles) == 22
        assert fetcher.last_outcomes["^GSPC"] == HttpStatus(200)

    def test_failure_isolation(self, settings, make_client):
        baseline = AssetPage(name="Indices")
        YahooFetcher(settings, make_client(market_handler())).fetch_page(baseline, INDEX_ASSETS)

        page = AssetPage(name="Indices")
        fetcher = YahooFetcher(settings, make_client(market_handler(failing={"^IXIC"})))
        report = fetcher.fetch_page(page, INDEX_ASSETS)

        assert report.successes == [True, False, True, True]
        assert fetcher.last_outcomes["^IXIC"] == HttpStatus(500)
        for index in (0, 2, 3):
            assert page.quotes[index] == baseline.quotes[index]
        assert not page.quotes[1].valid
        assert page.quotes[1].name == "Nasdaq Composite"
        assert page.valid

    def test_failed_refresh_keeps_previous_numbers(self, settings, make_client):
        page = AssetPage(name="Indices")
        YahooFetcher(settings, make_client(market_handler())).fetch_page(page, INDEX_ASSETS)
        previous = copy.deepcopy(page.quotes[0])

        failing = market_handler(failing={spec.symbol for spec in INDEX_ASSETS})
        YahooFetcher(settings, make_client(failing)).fetch_page(page, INDEX_ASSETS)

        assert not page.valid
        assert not page.quotes[0].valid
        assert page.quotes[0].price == previous.price

    def test_concurrency_does_not_change_results(self, settings, make_client):
        pages = []
        for cap in (1, len(INDEX_ASSETS)):
            scheduler = BoundedFetchScheduler(max_concurrent=cap, task_timeout=5.0, batch_cooldown=0.0)
            fetcher = YahooFetcher(settings, make_client(market_handler()), scheduler)
            page = AssetPage(name="Indices")
            report = fetcher.fetch_page(page, INDEX_ASSETS)
            assert report.batches == len(INDEX_ASSETS) // cap
            pages.append(page)

        assert pages[0].quotes == pages[1].quotes


class TestCoinGeckoFetcher:
    def test_endpoint(self, settings):
        endpoint = CoinGeckoFetcher(settings).endpoint()
        assert endpoint.path == "/api/v3/coins/markets"
        assert endpoint.params["ids"] == "bitcoin,ethereum,solana,ripple"
        assert endpoint.params["vs_currency"] == "usd"
        assert endpoint.params["sparkline"] == "true"
        assert endpoint.params["price_change_percentage"] == "24h,7d,30d,1y"
        assert "x_cg_demo_api_key" not in endpoint.params
        assert endpoint.headers == {"Accept": "application/json"}

    def test_api_key_is_query_parameter(self, settings):
        settings.coingecko_api_key = "cg-key"
        endpoint = CoinGeckoFetcher(settings).endpoint()
        assert endpoint.params["x_cg_demo_api_key"] == "cg-key"
        assert "cg-key" not in endpoint.sanitized_url()

    def test_fetch(self, settings, make_client):
        page = AssetPage(name="Crypto")
        outcome = CoinGeckoFetcher(settings, make_client(market_handler())).fetch(page)

        assert outcome == HttpStatus(200)
        assert page.valid
        assert [q.display_symbol for q in page.quotes] == [s.display for s in CRYPTO_ASSETS]
        assert page.quotes[0].price == 60000.0

    def test_fetch_failure_keeps_identity(self, settings, make_client):
        page = AssetPage(name="Crypto")
        handler = market_handler(coingecko_status=429)
        outcome = CoinGeckoFetcher(settings, make_client(handler)).fetch(page)

        assert outcome == HttpStatus(429)
        assert not page.valid
        assert page.quotes[0].display_symbol == "BTC"

    def test_malformed_response(self, settings, make_client):
        def handler(request):
            return httpx.Response(200, content=b'{"status": {"error_code": 429}}')

        page = AssetPage(name="Crypto")
        outcome = CoinGeckoFetcher(settings, make_client(handler)).fetch(page)
        assert outcome == ParseFailure(ParseErrorCode.INVALID_INPUT)


class TestOpenWeatherFetcher:
    def test_onecall_endpoint(self, settings):
        settings.display_alerts = False
        endpoint = OpenWeatherFetcher(settings).onecall_endpoint()
        assert endpoint.path == "/data/3.0/onecall"
        assert endpoint.params["exclude"] == "minutely,alerts"
        assert endpoint.params["appid"] == "owm-test-key"

        settings.display_alerts = True
        assert OpenWeatherFetcher(settings).onecall_endpoint().params["exclude"] == "minutely"

    def test_air_quality_window(self, settings):
        endpoint = OpenWeatherFetcher(settings, clock=lambda: NOW + 0.75).air_quality_endpoint()
        assert endpoint.path == "/data/2.5/air_pollution/history"
        assert endpoint.params["end"] == str(NOW)
        assert endpoint.params["start"] == str(NOW - (3600 * AIR_QUALITY_CAPACITY - 1))

    def test_fetch_all(self, settings, make_client):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            if request.url.path.endswith("/onecall"):
                return httpx.Response(200, content=encode(onecall()))
            return httpx.Response(200, content=encode(air_quality(5)))

        snapshot = WeatherSnapshot()
        sample = AirQualitySample()
        fetcher = OpenWeatherFetcher(settings, make_client(handler), clock=lambda: NOW)

        outcomes = fetcher.fetch_all(snapshot, sample)

        assert outcomes == {"weather": HttpStatus(200), "air_quality": HttpStatus(200)}
        assert seen == ["/data/3.0/onecall", "/data/2.5/air_pollution/history"]
        assert snapshot.current.temp == 291.5
        assert len(sample) == 5

    def test_sources_fail_independently(self, settings, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/onecall"):
                return httpx.Response(401)
            return httpx.Response(200, content=encode(air_quality(2)))

        sample = AirQualitySample()
        outcomes = OpenWeatherFetcher(settings, make_client(handler)).fetch_all(
            WeatherSnapshot(), sample
        )

        assert outcomes["weather"] == HttpStatus(401)
        assert outcomes["air_quality"].ok
        assert len(sample) == 2


def test_coins_helper_matches_configured_ids():
    assert [c["id"] for c in default_coins()] == [s.symbol for s in CRYPTO_ASSETS]
