"""HTTP GET with timeouts and bounded retries, collapsed into one outcome."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

from ticker_feed.config import Settings
from ticker_feed.data.status import (
    HTTP_OK,
    FetchOutcome,
    HttpStatus,
    LinkDown,
    LinkState,
    ParseErrorCode,
    ParseFailure,
    TransportFailure,
    describe,
    status_code,
)


logger = logging.getLogger(__name__)

USER_AGENT = "ticker-feed/0.1"

# Query parameters that carry credentials and must never reach the logs
SECRET_PARAMS = ("appid", "x_cg_demo_api_key", "apikey")

Normalizer = Callable[[bytes], ParseErrorCode]
LinkStatus = Callable[[], LinkState]


def always_connected() -> LinkState:
    return LinkState.CONNECTED


@dataclass
class Endpoint:
    """One GET request against a provider."""

    base_url: str
    path: str
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return self.base_url.rstrip("/") + self.path

    def sanitized_url(self) -> str:
        """URL for logging, with API keys replaced by a placeholder."""
        query = "&".join(
            f"{key}={'{API key}' if key in SECRET_PARAMS else value}"
            for key, value in self.params.items()
        )
        return f"{self.url}?{query}" if query else self.url


class FetchRetryClient:
    """
    Performs one GET plus normalization, retrying the whole unit.

    Every attempt opens a fresh connection. A link that is down fails fast
    without consuming an attempt.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        link_status: LinkStatus | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.link_status = link_status or always_connected
        self.transport = transport

    def _new_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(
                self.settings.response_timeout, connect=self.settings.connect_timeout
            ),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=self.transport,
        )

    def _read_body(self, response: httpx.Response) -> bytes | None:
        """Read the body, giving up once it exceeds the configured size."""
        limit = self.settings.max_body_bytes
        chunks = []
        size = 0
        for chunk in response.iter_bytes():
            size += len(chunk)
            if size > limit:
                return None
            chunks.append(chunk)
        return b"".join(chunks)

    def _attempt(self, endpoint: Endpoint, normalize: Normalizer) -> FetchOutcome:
        try:
            with self._new_client() as client:
                with client.stream(
                    "GET", endpoint.url, params=endpoint.params, headers=endpoint.headers
                ) as response:
                    if response.status_code != HTTP_OK:
                        return HttpStatus(response.status_code)
                    body = self._read_body(response)
        except (httpx.ConnectError, httpx.ConnectTimeout):
            return HttpStatus(int(TransportFailure.CONNECTION_REFUSED))
        except httpx.TimeoutException:
            return HttpStatus(int(TransportFailure.READ_TIMEOUT))
        except httpx.TransportError as e:
            logger.debug(f"  Transport error: {type(e).__name__}: {e}")
            return HttpStatus(int(TransportFailure.CONNECTION_LOST))
        except httpx.HTTPError as e:
            # Undecodable content encoding, redirect loops
            logger.warning(f"  Request failed: {type(e).__name__}: {e}")
            return HttpStatus(int(TransportFailure.CONNECTION_LOST))

        if body is None:
            return ParseFailure(ParseErrorCode.NO_MEMORY)

        error = normalize(body)
        if error:
            return ParseFailure(error)
        return HttpStatus(HTTP_OK)

    def fetch(self, endpoint: Endpoint, normalize: Normalizer, attempts: int = 1) -> FetchOutcome:
        """
        Run request + normalization until it succeeds or attempts run out.

        Args:
            endpoint: Request to issue
            normalize: Deserializer writing into a caller-owned record
            attempts: Attempt budget for this source

        Returns:
            Outcome of the last attempt, or LinkDown if the link was down
        """
        attempts = max(1, attempts)
        logger.info(f"Attempting HTTP request: {endpoint.sanitized_url()}")

        outcome: FetchOutcome = HttpStatus(0)
        for attempt in range(1, attempts + 1):
            state = self.link_status()
            if state != LinkState.CONNECTED:
                outcome = LinkDown(state)
                logger.warning(f"  {describe(outcome)}, not retrying")
                return outcome

            outcome = self._attempt(endpoint, normalize)
            logger.info(
                f"  {status_code(outcome)} {describe(outcome)} (attempt {attempt}/{attempts})"
            )
            if outcome.ok:
                break

        return outcome
