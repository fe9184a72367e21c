"""OpenWeatherMap fetcher for the One Call forecast and air pollution history."""

import logging
import time
from collections.abc import Callable
from functools import partial

from ticker_feed.config import AIR_QUALITY_CAPACITY, Settings
from ticker_feed.data.client import Endpoint, FetchRetryClient
from ticker_feed.data.status import FetchOutcome
from ticker_feed.data.weather_normalizer import deserialize_air_quality, deserialize_onecall
from ticker_feed.models.weather import AirQualitySample, WeatherSnapshot


logger = logging.getLogger(__name__)


class OpenWeatherFetcher:
    """Fetches weather and air quality for the configured location."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: FetchRetryClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or Settings()
        self.client = client or FetchRetryClient(self.settings)
        self.clock = clock

    def onecall_endpoint(self) -> Endpoint:
        # Minutely data is never used; alerts only when they are displayed
        exclude = "minutely" if self.settings.display_alerts else "minutely,alerts"
        return Endpoint(
            base_url=self.settings.owm_endpoint,
            path=f"/data/{self.settings.owm_onecall_version}/onecall",
            params={
                "lat": self.settings.latitude,
                "lon": self.settings.longitude,
                "lang": self.settings.owm_lang,
                "units": self.settings.owm_units,
                "exclude": exclude,
                "appid": self.settings.owm_api_key,
            },
        )

    def air_quality_endpoint(self) -> Endpoint:
        end = int(self.clock())
        # Minus one second, otherwise an extra hour of history comes back
        start = end - (3600 * AIR_QUALITY_CAPACITY - 1)
        return Endpoint(
            base_url=self.settings.owm_endpoint,
            path="/data/2.5/air_pollution/history",
            params={
                "lat": self.settings.latitude,
                "lon": self.settings.longitude,
                "start": str(start),
                "end": str(end),
                "appid": self.settings.owm_api_key,
            },
        )

    def fetch_onecall(self, snapshot: WeatherSnapshot) -> FetchOutcome:
        return self.client.fetch(
            self.onecall_endpoint(),
            partial(
                deserialize_onecall,
                snapshot=snapshot,
                alerts_enabled=self.settings.display_alerts,
            ),
            attempts=self.settings.attempts_for("weather"),
        )

    def fetch_air_quality(self, sample: AirQualitySample) -> FetchOutcome:
        return self.client.fetch(
            self.air_quality_endpoint(),
            partial(deserialize_air_quality, sample=sample),
            attempts=self.settings.attempts_for("air_quality"),
        )

    def fetch_all(
        self, snapshot: WeatherSnapshot, sample: AirQualitySample
    ) -> dict[str, FetchOutcome]:
        """Fetch both weather sources; each outcome is independent."""
        logger.info(f"Fetching OpenWeatherMap data for {self.settings.latitude}, {self.settings.longitude}...")
        return {
            "weather": self.fetch_onecall(snapshot),
            "air_quality": self.fetch_air_quality(sample),
        }
