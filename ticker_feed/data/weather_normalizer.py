"""Deserializers for the OpenWeatherMap One Call and Air Pollution responses."""

import logging
from typing import Any

from ticker_feed.config import (
    AIR_QUALITY_CAPACITY,
    ALERT_CAPACITY,
    DAILY_CAPACITY,
    HOURLY_CAPACITY,
)
from ticker_feed.data.projection import Items, as_float, as_int, as_str, child, decode
from ticker_feed.data.status import ParseErrorCode
from ticker_feed.models.weather import (
    AirQualitySample,
    CurrentConditions,
    DailyConditions,
    DailyFeelsLike,
    DailyTemperature,
    HourlyConditions,
    PollutantSeries,
    WeatherAlert,
    WeatherCondition,
    WeatherSnapshot,
)


logger = logging.getLogger(__name__)


# Only the first condition of each "weather" array is used
_CONDITION = Items({"id": True, "main": True, "description": True, "icon": True}, limit=1)
_PRECIPITATION = {"1h": True}

_CURRENT_FIELDS = {
    "dt": True,
    "sunrise": True,
    "sunset": True,
    "temp": True,
    "feels_like": True,
    "pressure": True,
    "humidity": True,
    "dew_point": True,
    "clouds": True,
    "uvi": True,
    "visibility": True,
    "wind_speed": True,
    "wind_gust": True,
    "wind_deg": True,
    "rain": _PRECIPITATION,
    "snow": _PRECIPITATION,
    "weather": _CONDITION,
}

_HOURLY_FIELDS = {
    "dt": True,
    "temp": True,
    "feels_like": True,
    "pressure": True,
    "humidity": True,
    "dew_point": True,
    "clouds": True,
    "uvi": True,
    "visibility": True,
    "wind_speed": True,
    "wind_gust": True,
    "wind_deg": True,
    "pop": True,
    "rain": _PRECIPITATION,
    "snow": _PRECIPITATION,
    "weather": _CONDITION,
}

_DAILY_FIELDS = {
    "dt": True,
    "sunrise": True,
    "sunset": True,
    "moonrise": True,
    "moonset": True,
    "moon_phase": True,
    "temp": True,
    "feels_like": True,
    "pressure": True,
    "humidity": True,
    "dew_point": True,
    "clouds": True,
    "uvi": True,
    "visibility": True,
    "wind_speed": True,
    "wind_gust": True,
    "wind_deg": True,
    "pop": True,
    "rain": True,
    "snow": True,
    "weather": _CONDITION,
}

# Alert descriptions can run to several kilobytes, so they never get decoded
_ALERT_FIELDS = {
    "sender_name": False,
    "event": True,
    "start": True,
    "end": True,
    "description": False,
    "tags": Items(True, limit=1),
}

_POLLUTANTS = {name: True for name in PollutantSeries.NAMES}


def onecall_projection(alerts_enabled: bool) -> dict[str, Any]:
    """Projection for the One Call response; alerts only when enabled."""
    return {
        "lat": True,
        "lon": True,
        "timezone": True,
        "timezone_offset": True,
        "current": _CURRENT_FIELDS,
        "minutely": False,
        "hourly": Items(_HOURLY_FIELDS, limit=HOURLY_CAPACITY),
        "daily": Items(_DAILY_FIELDS, limit=DAILY_CAPACITY),
        "alerts": Items(_ALERT_FIELDS, limit=ALERT_CAPACITY) if alerts_enabled else False,
    }


def air_quality_projection() -> dict[str, Any]:
    return {
        "coord": {"lat": True, "lon": True},
        "list": Items(
            {"dt": True, "main": {"aqi": True}, "components": _POLLUTANTS},
            limit=AIR_QUALITY_CAPACITY,
        ),
    }


def _condition(obj: Any) -> WeatherCondition:
    weather = child(obj, "weather", 0)
    return WeatherCondition(
        id=as_int(child(weather, "id")),
        main=as_str(child(weather, "main")),
        description=as_str(child(weather, "description")),
        icon=as_str(child(weather, "icon")),
    )


def _current(obj: Any) -> CurrentConditions:
    return CurrentConditions(
        dt=as_int(child(obj, "dt")),
        sunrise=as_int(child(obj, "sunrise")),
        sunset=as_int(child(obj, "sunset")),
        temp=as_float(child(obj, "temp")),
        feels_like=as_float(child(obj, "feels_like")),
        pressure=as_int(child(obj, "pressure")),
        humidity=as_int(child(obj, "humidity")),
        dew_point=as_float(child(obj, "dew_point")),
        clouds=as_int(child(obj, "clouds")),
        uvi=as_float(child(obj, "uvi")),
        visibility=as_int(child(obj, "visibility")),
        wind_speed=as_float(child(obj, "wind_speed")),
        wind_gust=as_float(child(obj, "wind_gust")),
        wind_deg=as_int(child(obj, "wind_deg")),
        rain_1h=as_float(child(obj, "rain", "1h")),
        snow_1h=as_float(child(obj, "snow", "1h")),
        weather=_condition(obj),
    )


def _hourly(obj: Any) -> HourlyConditions:
    return HourlyConditions(
        dt=as_int(child(obj, "dt")),
        temp=as_float(child(obj, "temp")),
        feels_like=as_float(child(obj, "feels_like")),
        pressure=as_int(child(obj, "pressure")),
        humidity=as_int(child(obj, "humidity")),
        dew_point=as_float(child(obj, "dew_point")),
        clouds=as_int(child(obj, "clouds")),
        uvi=as_float(child(obj, "uvi")),
        visibility=as_int(child(obj, "visibility")),
        wind_speed=as_float(child(obj, "wind_speed")),
        wind_gust=as_float(child(obj, "wind_gust")),
        wind_deg=as_int(child(obj, "wind_deg")),
        pop=as_float(child(obj, "pop")),
        rain_1h=as_float(child(obj, "rain", "1h")),
        snow_1h=as_float(child(obj, "snow", "1h")),
        weather=_condition(obj),
    )


def _daily(obj: Any) -> DailyConditions:
    temp = child(obj, "temp")
    feels_like = child(obj, "feels_like")
    return DailyConditions(
        dt=as_int(child(obj, "dt")),
        sunrise=as_int(child(obj, "sunrise")),
        sunset=as_int(child(obj, "sunset")),
        moonrise=as_int(child(obj, "moonrise")),
        moonset=as_int(child(obj, "moonset")),
        moon_phase=as_float(child(obj, "moon_phase")),
        temp=DailyTemperature(
            morn=as_float(child(temp, "morn")),
            day=as_float(child(temp, "day")),
            eve=as_float(child(temp, "eve")),
            night=as_float(child(temp, "night")),
            min=as_float(child(temp, "min")),
            max=as_float(child(temp, "max")),
        ),
        feels_like=DailyFeelsLike(
            morn=as_float(child(feels_like, "morn")),
            day=as_float(child(feels_like, "day")),
            eve=as_float(child(feels_like, "eve")),
            night=as_float(child(feels_like, "night")),
        ),
        pressure=as_int(child(obj, "pressure")),
        humidity=as_int(child(obj, "humidity")),
        dew_point=as_float(child(obj, "dew_point")),
        clouds=as_int(child(obj, "clouds")),
        uvi=as_float(child(obj, "uvi")),
        visibility=as_int(child(obj, "visibility")),
        wind_speed=as_float(child(obj, "wind_speed")),
        wind_gust=as_float(child(obj, "wind_gust")),
        wind_deg=as_int(child(obj, "wind_deg")),
        pop=as_float(child(obj, "pop")),
        rain=as_float(child(obj, "rain")),
        snow=as_float(child(obj, "snow")),
        weather=_condition(obj),
    )


def _alert(obj: Any) -> WeatherAlert:
    return WeatherAlert(
        event=as_str(child(obj, "event")),
        start=as_int(child(obj, "start")),
        end=as_int(child(obj, "end")),
        tags=as_str(child(obj, "tags", 0)),
    )


def _array(document: Any, key: str) -> list:
    value = child(document, key)
    return value if isinstance(value, list) else []


def deserialize_onecall(
    body: bytes, snapshot: WeatherSnapshot, alerts_enabled: bool = False
) -> ParseErrorCode:
    """
    Populate ``snapshot`` from a One Call response.

    Sequences are filled in response order and stop at their capacity; the
    snapshot is only touched once the body decoded successfully.
    """
    doc, error = decode(body, onecall_projection(alerts_enabled))
    if error:
        logger.warning(f"One Call deserialization failed: {error.name}")
        return error

    snapshot.reset()
    snapshot.lat = as_float(child(doc, "lat"))
    snapshot.lon = as_float(child(doc, "lon"))
    snapshot.timezone = as_str(child(doc, "timezone"))
    snapshot.timezone_offset = as_int(child(doc, "timezone_offset"))
    snapshot.current = _current(child(doc, "current"))

    for hourly in _array(doc, "hourly"):
        if len(snapshot.hourly) == HOURLY_CAPACITY:
            break
        snapshot.hourly.append(_hourly(hourly))

    for daily in _array(doc, "daily"):
        if len(snapshot.daily) == DAILY_CAPACITY:
            break
        snapshot.daily.append(_daily(daily))

    if alerts_enabled:
        for alert in _array(doc, "alerts"):
            if len(snapshot.alerts) == ALERT_CAPACITY:
                break
            snapshot.alerts.append(_alert(alert))

    return ParseErrorCode.OK


def deserialize_air_quality(body: bytes, sample: AirQualitySample) -> ParseErrorCode:
    """Populate the parallel air-quality sequences in lock-step."""
    doc, error = decode(body, air_quality_projection())
    if error:
        logger.warning(f"Air pollution deserialization failed: {error.name}")
        return error

    sample.reset()
    sample.lat = as_float(child(doc, "coord", "lat"))
    sample.lon = as_float(child(doc, "coord", "lon"))

    components = sample.components
    for entry in _array(doc, "list"):
        if len(sample.dt) == AIR_QUALITY_CAPACITY:
            break
        sample.aqi.append(as_int(child(entry, "main", "aqi")))
        for name in PollutantSeries.NAMES:
            getattr(components, name).append(as_float(child(entry, "components", name)))
        sample.dt.append(as_int(child(entry, "dt")))

    return ParseErrorCode.OK
