"""Configuration."""

from .settings import (
    AIR_QUALITY_CAPACITY,
    ALERT_CAPACITY,
    ASSETS_PER_PAGE,
    CANDLE_CAPACITY,
    COMMODITY_ASSETS,
    CRYPTO_ASSETS,
    DAILY_CAPACITY,
    FOREX_ASSETS,
    HOURLY_CAPACITY,
    INDEX_ASSETS,
    Settings,
)

__all__ = [
    "Settings",
    "HOURLY_CAPACITY",
    "DAILY_CAPACITY",
    "ALERT_CAPACITY",
    "AIR_QUALITY_CAPACITY",
    "CANDLE_CAPACITY",
    "ASSETS_PER_PAGE",
    "CRYPTO_ASSETS",
    "INDEX_ASSETS",
    "COMMODITY_ASSETS",
    "FOREX_ASSETS",
]
