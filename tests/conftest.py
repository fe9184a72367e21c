import httpx
import pytest

from ticker_feed.config import Settings
from ticker_feed.data.client import FetchRetryClient


@pytest.fixture
def settings(tmp_path):
    return Settings(
        owm_api_key="owm-test-key",
        coingecko_api_key="",
        cache_dir=tmp_path,
        max_concurrent_tasks=2,
        task_timeout=5.0,
        batch_cooldown=0.0,
    )


@pytest.fixture
def make_client(settings):
    """Build a FetchRetryClient whose requests go to ``handler``."""

    def _make(handler, link_status=None) -> FetchRetryClient:
        return FetchRetryClient(
            settings, link_status=link_status, transport=httpx.MockTransport(handler)
        )

    return _make
