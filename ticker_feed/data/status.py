"""Fetch outcomes and their error codes."""

from dataclasses import dataclass
from enum import IntEnum

import httpx


HTTP_OK = 200

# Offsets of the legacy single-integer status channel
PARSE_ERROR_OFFSET = -256
LINK_DOWN_OFFSET = -512


class ParseErrorCode(IntEnum):
    """Structural parse result. ``OK`` is falsy so ``if error:`` reads naturally."""

    OK = 0
    EMPTY_INPUT = 1
    INCOMPLETE_INPUT = 2
    INVALID_INPUT = 3
    NO_MEMORY = 4
    TOO_DEEP = 5


class LinkState(IntEnum):
    """Network link state reported by the platform's connection manager."""

    IDLE = 0
    NO_SSID_AVAILABLE = 1
    SCAN_COMPLETED = 2
    CONNECTED = 3
    CONNECT_FAILED = 4
    CONNECTION_LOST = 5
    DISCONNECTED = 6


class TransportFailure(IntEnum):
    """Negative pseudo-statuses for requests that never produced a response."""

    CONNECTION_REFUSED = -1
    SEND_HEADER_FAILED = -2
    CONNECTION_LOST = -5
    NO_HTTP_SERVER = -7
    READ_TIMEOUT = -11


@dataclass(frozen=True)
class HttpStatus:
    """Transport-level result: an HTTP status or a ``TransportFailure`` value."""

    code: int

    @property
    def ok(self) -> bool:
        return self.code == HTTP_OK


@dataclass(frozen=True)
class LinkDown:
    state: LinkState

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class ParseFailure:
    code: ParseErrorCode

    @property
    def ok(self) -> bool:
        return False


FetchOutcome = HttpStatus | LinkDown | ParseFailure


_PARSE_PHRASES = {
    ParseErrorCode.OK: "Ok",
    ParseErrorCode.EMPTY_INPUT: "Empty input",
    ParseErrorCode.INCOMPLETE_INPUT: "Incomplete input",
    ParseErrorCode.INVALID_INPUT: "Invalid input",
    ParseErrorCode.NO_MEMORY: "Response too large",
    ParseErrorCode.TOO_DEEP: "Nesting too deep",
}

_TRANSPORT_PHRASES = {
    TransportFailure.CONNECTION_REFUSED: "Connection refused",
    TransportFailure.SEND_HEADER_FAILED: "Send header failed",
    TransportFailure.CONNECTION_LOST: "Connection lost",
    TransportFailure.NO_HTTP_SERVER: "No HTTP server",
    TransportFailure.READ_TIMEOUT: "Read timeout",
}


def status_code(outcome: FetchOutcome) -> int:
    """
    Collapse an outcome into the legacy single-integer status channel.

    Positive values are HTTP statuses and small negatives are transport
    failures. ``-256 - code`` is a parse failure and ``-512 - state`` a link
    that was down.
    """
    if isinstance(outcome, LinkDown):
        return LINK_DOWN_OFFSET - int(outcome.state)
    if isinstance(outcome, ParseFailure):
        return PARSE_ERROR_OFFSET - int(outcome.code)
    return outcome.code


def from_status_code(code: int) -> FetchOutcome:
    """Inverse of :func:`status_code`."""
    if code <= LINK_DOWN_OFFSET:
        return LinkDown(LinkState(LINK_DOWN_OFFSET - code))
    if code <= PARSE_ERROR_OFFSET:
        return ParseFailure(ParseErrorCode(PARSE_ERROR_OFFSET - code))
    return HttpStatus(code)


def describe(outcome: FetchOutcome) -> str:
    """Human readable phrase for diagnostics."""
    if isinstance(outcome, LinkDown):
        return f"Link down ({outcome.state.name.replace('_', ' ').lower()})"
    if isinstance(outcome, ParseFailure):
        return f"Parse failed: {_PARSE_PHRASES[outcome.code]}"
    if outcome.code < 0:
        try:
            return _TRANSPORT_PHRASES[TransportFailure(outcome.code)]
        except ValueError:
            return "Transport error"
    return httpx.codes.get_reason_phrase(outcome.code) or "Unknown status"
