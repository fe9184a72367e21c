"""Domain records."""

from .market_data import ASSETS_PER_PAGE, AssetPage, AssetQuote, AssetSpec, Candle
from .weather import (
    AirQualitySample,
    CurrentConditions,
    DailyConditions,
    HourlyConditions,
    WeatherAlert,
    WeatherCondition,
    WeatherSnapshot,
)

__all__ = [
    "ASSETS_PER_PAGE",
    "AssetPage",
    "AssetQuote",
    "AssetSpec",
    "Candle",
    "AirQualitySample",
    "CurrentConditions",
    "DailyConditions",
    "HourlyConditions",
    "WeatherAlert",
    "WeatherCondition",
    "WeatherSnapshot",
]
