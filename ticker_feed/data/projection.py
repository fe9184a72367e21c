"""Projection filters and bounded JSON decoding for API responses.

A projection is a nested dict mirroring the response shape. ``True`` keeps a
field whole, ``False`` drops it, a dict recurses into an object and
``Items`` recurses into every element of an array. Fields absent from the
projection are dropped, so only the values a normalizer reads survive the
decode, however verbose the provider is.
"""

import json
import math
from dataclasses import dataclass
from typing import Any

from ticker_feed.data.status import ParseErrorCode


@dataclass(frozen=True)
class Items:
    """Project each element of an array, keeping at most ``limit`` of them."""

    fields: Any
    limit: int | None = None


def project(value: Any, fields: Any) -> Any:
    """Return the part of ``value`` selected by ``fields``, or None."""
    if fields is True:
        return value
    if not fields:
        return None

    if isinstance(fields, Items):
        if not isinstance(value, list):
            return None
        items = value if fields.limit is None else value[: fields.limit]
        return [project(item, fields.fields) for item in items]

    if isinstance(fields, dict):
        if not isinstance(value, dict):
            return None
        return {
            key: project(value[key], sub)
            for key, sub in fields.items()
            if sub is not False and key in value
        }

    raise TypeError(f"Unsupported projection: {fields!r}")


def decode(body: bytes, fields: Any, expect: type = dict) -> tuple[Any, ParseErrorCode]:
    """
    Parse a response body and apply a projection.

    Args:
        body: Raw response bytes, already bounded by the client
        fields: Projection for the document root
        expect: Required type of the root (dict or list)

    Returns:
        (projected document, ParseErrorCode.OK) or (None, error code)
    """
    if not body or not body.strip():
        return None, ParseErrorCode.EMPTY_INPUT

    try:
        document = json.loads(body)
    except RecursionError:
        return None, ParseErrorCode.TOO_DEEP
    except json.JSONDecodeError as e:
        if e.pos >= len(e.doc.rstrip()) or e.msg.startswith("Unterminated string"):
            return None, ParseErrorCode.INCOMPLETE_INPUT
        return None, ParseErrorCode.INVALID_INPUT
    except (UnicodeDecodeError, ValueError):
        # Includes integers past the interpreter's digit limit
        return None, ParseErrorCode.INVALID_INPUT

    if not isinstance(document, expect):
        return None, ParseErrorCode.INVALID_INPUT

    return project(document, fields), ParseErrorCode.OK


# Coercions: a missing or mistyped business field becomes a zero value.
# So do numbers the record types cannot hold: non-finite floats, integers
# beyond 64 bits.

INT64_LIMIT = 2**63


def as_float(value: Any) -> float:
    if not isinstance(value, (int, float)):
        return 0.0
    try:
        number = float(value)
    except OverflowError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def as_int(value: Any) -> int:
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        value = int(value)
    if not isinstance(value, int):
        return 0
    return int(value) if -INT64_LIMIT <= value < INT64_LIMIT else 0


def as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def child(obj: Any, *path: Any) -> Any:
    """Walk dict keys / list indices, returning None on the first miss."""
    for step in path:
        if isinstance(step, int):
            if not isinstance(obj, list) or not -len(obj) <= step < len(obj):
                return None
            obj = obj[step]
        else:
            if not isinstance(obj, dict):
                return None
            obj = obj.get(step)
    return obj
