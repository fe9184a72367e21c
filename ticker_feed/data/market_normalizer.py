"""Deserializers for the CoinGecko markets and Yahoo Finance chart responses."""

import logging
from dataclasses import replace
from typing import Any, Sequence

from ticker_feed.config import CANDLE_CAPACITY
from ticker_feed.data.projection import Items, as_float, as_str, child, decode
from ticker_feed.data.status import ParseErrorCode
from ticker_feed.models.market_data import AssetPage, AssetQuote, Candle


logger = logging.getLogger(__name__)

# Candle offsets from the end of a daily series
WEEK_OFFSET = 5  # trading days
MONTH_OFFSET = 22


def coingecko_projection() -> Items:
    """Projection for the /coins/markets array."""
    return Items({
        "id": True,
        "symbol": True,
        "name": True,
        "current_price": True,
        "price_change_percentage_24h": True,
        "price_change_percentage_7d_in_currency": True,
        "price_change_percentage_30d_in_currency": True,
        "price_change_percentage_1y_in_currency": True,
        "sparkline_in_7d": {"price": True},
    })


def yahoo_chart_projection() -> dict[str, Any]:
    """Projection for /v8/finance/chart, first result and first quote only."""
    return {
        "chart": {
            "result": Items(
                {
                    "meta": {
                        "regularMarketPrice": True,
                        "chartPreviousClose": True,
                        "currency": True,
                    },
                    "indicators": {
                        "quote": Items(
                            {"open": True, "high": True, "low": True, "close": True},
                            limit=1,
                        ),
                    },
                },
                limit=1,
            ),
        },
    }


def _floats(value: Any) -> list[float]:
    if not isinstance(value, list):
        return []
    return [as_float(item) for item in value]


def _at(values: list[float], index: int) -> float:
    return values[index] if index < len(values) else 0.0


def _percent_change(newest: float, base: float) -> float:
    return (newest - base) / base * 100.0


def group_sparkline(prices: Sequence[float], capacity: int = CANDLE_CAPACITY) -> list[Candle]:
    """
    Group a price-only series into at most ``capacity`` candles.

    Points are split into contiguous groups of ``total // capacity`` (at
    least 1); the last candle absorbs whatever remains.
    """
    total = len(prices)
    if total == 0:
        return []

    size = max(1, total // capacity)
    count = min(capacity, -(-total // size))

    candles = []
    for c in range(count):
        start = c * size
        end = total if c == count - 1 else start + size
        group = prices[start:end]
        candles.append(Candle(open=group[0], high=max(group), low=min(group), close=group[-1]))
    return candles


def sample_candles(
    opens: list[float],
    highs: list[float],
    lows: list[float],
    closes: list[float],
    capacity: int = CANDLE_CAPACITY,
) -> list[Candle]:
    """
    Stride-sample daily OHLC points into at most ``capacity`` candles.

    A sampled point with any non-positive value (a holiday placeholder) is
    replaced by the last fully positive candle.
    """
    total = len(closes)
    stride = max(1, total // capacity)
    last_valid = Candle()

    candles = []
    for i in range(0, total, stride):
        if len(candles) == capacity:
            break
        candidate = Candle(_at(opens, i), _at(highs, i), _at(lows, i), closes[i])
        if candidate.is_positive():
            last_valid = candidate
        candles.append(replace(last_valid))
    return candles


def deserialize_coingecko(
    body: bytes, page: AssetPage, expected_ids: Sequence[str]
) -> ParseErrorCode:
    """
    Populate crypto quotes from a /coins/markets response.

    Coins come back in no particular order, so each one is routed to its slot
    by id. Unknown ids are skipped; expected ids missing from the response
    leave their slot untouched and invalid.
    """
    doc, error = decode(body, coingecko_projection(), expect=list)
    if error:
        logger.warning(f"[CoinGecko] deserialize error: {error.name}")
        return error

    slots = {coin_id: index for index, coin_id in enumerate(expected_ids)}

    found = 0
    for coin in doc:
        index = slots.get(as_str(child(coin, "id")))
        if index is None or index >= len(page.quotes):
            continue

        quote = page.quotes[index]
        quote.reset()
        name = as_str(child(coin, "name"))
        if name:
            quote.name = name

        quote.price = as_float(child(coin, "current_price"))
        quote.change_day = as_float(child(coin, "price_change_percentage_24h"))
        quote.change_week = as_float(child(coin, "price_change_percentage_7d_in_currency"))
        quote.change_month = as_float(child(coin, "price_change_percentage_30d_in_currency"))
        quote.change_year = as_float(child(coin, "price_change_percentage_1y_in_currency"))

        # Not provided directly; derived from the 24h change
        divisor = 1.0 + quote.change_day / 100.0
        quote.previous_close = quote.price / divisor if divisor else 0.0

        quote.candles.extend(group_sparkline(_floats(child(coin, "sparkline_in_7d", "price"))))
        quote.valid = quote.price > 0
        found += 1
        logger.info(f"[CoinGecko] Parsed: {quote.name} ${quote.price:.2f}")

    page.refresh_valid()
    logger.info(f"[CoinGecko] Parsed {found} coins")
    return ParseErrorCode.OK


def deserialize_yahoo_chart(body: bytes, quote: AssetQuote) -> ParseErrorCode:
    """
    Populate one quote from a Yahoo Finance chart response.

    Day change uses the two most recent positive closes and the long
    horizon the first positive close; week and month changes are measured on
    the downsampled candles.
    """
    doc, error = decode(body, yahoo_chart_projection())
    if error:
        logger.warning(f"Yahoo Finance deserialize error: {error.name}")
        return error

    result = child(doc, "chart", "result", 0)
    if not isinstance(result, dict):
        logger.warning("Yahoo Finance: no result in response")
        return ParseErrorCode.INVALID_INPUT

    quote.reset()
    quote.price = as_float(child(result, "meta", "regularMarketPrice"))
    quote.previous_close = as_float(child(result, "meta", "chartPreviousClose"))

    series = child(result, "indicators", "quote", 0)
    opens = _floats(child(series, "open"))
    highs = _floats(child(series, "high"))
    lows = _floats(child(series, "low"))
    closes = _floats(child(series, "close"))

    first_close = next((close for close in closes if close > 0), 0.0)
    latest_close = 0.0
    previous_close = 0.0
    for close in reversed(closes):
        if close <= 0:
            continue
        if not latest_close:
            latest_close = close
        else:
            previous_close = close
            break

    if previous_close > 0:
        quote.change_day = _percent_change(latest_close, previous_close)
    if first_close > 0 and latest_close > 0:
        quote.change_year = _percent_change(latest_close, first_close)

    quote.candles.extend(sample_candles(opens, highs, lows, closes))

    count = len(quote.candles)
    if count >= 2:
        newest = quote.candles[-1].close
        week_base = quote.candles[max(0, count - WEEK_OFFSET)].close
        if week_base > 0:
            quote.change_week = _percent_change(newest, week_base)
        month_base = quote.candles[max(0, count - MONTH_OFFSET)].close
        if month_base > 0:
            quote.change_month = _percent_change(newest, month_base)

    quote.valid = quote.price > 0
    return ParseErrorCode.OK
