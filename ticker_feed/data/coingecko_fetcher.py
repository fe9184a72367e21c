"""CoinGecko fetcher for the crypto page (one batched call for all coins)."""

import logging
from functools import partial

from ticker_feed.config import CRYPTO_ASSETS, Settings
from ticker_feed.data.client import Endpoint, FetchRetryClient
from ticker_feed.data.market_normalizer import deserialize_coingecko
from ticker_feed.data.status import FetchOutcome
from ticker_feed.models.market_data import AssetPage, AssetSpec


logger = logging.getLogger(__name__)

MARKETS_PATH = "/api/v3/coins/markets"
CHANGE_HORIZONS = "24h,7d,30d,1y"


class CoinGeckoFetcher:
    """Fetches prices, changes and 7-day sparklines for the configured coins."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: FetchRetryClient | None = None,
        assets: tuple[AssetSpec, ...] = CRYPTO_ASSETS,
    ) -> None:
        self.settings = settings or Settings()
        self.client = client or FetchRetryClient(self.settings)
        self.assets = assets

    def endpoint(self) -> Endpoint:
        params = {
            "vs_currency": self.settings.vs_currency,
            "ids": ",".join(spec.symbol for spec in self.assets),
            "sparkline": "true",
            "price_change_percentage": CHANGE_HORIZONS,
        }
        # Passed as a query parameter, not a header
        if self.settings.has_coingecko_key():
            params["x_cg_demo_api_key"] = self.settings.coingecko_api_key

        return Endpoint(
            base_url=self.settings.coingecko_endpoint,
            path=MARKETS_PATH,
            params=params,
            headers={"Accept": "application/json"},
        )

    def fetch(self, page: AssetPage) -> FetchOutcome:
        """
        Populate the crypto page.

        Display names are written before the request so the page still shows
        which coins it holds when the fetch fails.
        """
        logger.info("Fetching CoinGecko data...")
        page.begin_cycle(self.assets)

        outcome = self.client.fetch(
            self.endpoint(),
            partial(
                deserialize_coingecko,
                page=page,
                expected_ids=[spec.symbol for spec in self.assets],
            ),
            attempts=self.settings.attempts_for("crypto"),
        )

        page.refresh_valid()
        return outcome
