"""Data models for weather and air quality."""

from dataclasses import dataclass, field


@dataclass
class WeatherCondition:
    id: int = 0
    main: str = ""
    description: str = ""
    icon: str = ""


@dataclass
class CurrentConditions:
    """Current observation from the One Call response."""

    dt: int = 0
    sunrise: int = 0
    sunset: int = 0
    temp: float = 0.0
    feels_like: float = 0.0
    pressure: int = 0
    humidity: int = 0
    dew_point: float = 0.0
    clouds: int = 0
    uvi: float = 0.0
    visibility: int = 0
    wind_speed: float = 0.0
    wind_gust: float = 0.0
    wind_deg: int = 0
    rain_1h: float = 0.0
    snow_1h: float = 0.0
    weather: WeatherCondition = field(default_factory=WeatherCondition)


@dataclass
class HourlyConditions:
    dt: int = 0
    temp: float = 0.0
    feels_like: float = 0.0
    pressure: int = 0
    humidity: int = 0
    dew_point: float = 0.0
    clouds: int = 0
    uvi: float = 0.0
    visibility: int = 0
    wind_speed: float = 0.0
    wind_gust: float = 0.0
    wind_deg: int = 0
    pop: float = 0.0  # probability of precipitation
    rain_1h: float = 0.0
    snow_1h: float = 0.0
    weather: WeatherCondition = field(default_factory=WeatherCondition)


@dataclass
class DailyTemperature:
    morn: float = 0.0
    day: float = 0.0
    eve: float = 0.0
    night: float = 0.0
    min: float = 0.0
    max: float = 0.0


@dataclass
class DailyFeelsLike:
    morn: float = 0.0
    day: float = 0.0
    eve: float = 0.0
    night: float = 0.0


@dataclass
class DailyConditions:
    dt: int = 0
    sunrise: int = 0
    sunset: int = 0
    moonrise: int = 0
    moonset: int = 0
    moon_phase: float = 0.0
    temp: DailyTemperature = field(default_factory=DailyTemperature)
    feels_like: DailyFeelsLike = field(default_factory=DailyFeelsLike)
    pressure: int = 0
    humidity: int = 0
    dew_point: float = 0.0
    clouds: int = 0
    uvi: float = 0.0
    visibility: int = 0
    wind_speed: float = 0.0
    wind_gust: float = 0.0
    wind_deg: int = 0
    pop: float = 0.0
    rain: float = 0.0
    snow: float = 0.0
    weather: WeatherCondition = field(default_factory=WeatherCondition)


@dataclass
class WeatherAlert:
    """Government weather alert. Sender and description are never kept."""

    event: str = ""
    start: int = 0
    end: int = 0
    tags: str = ""  # first tag only


@dataclass
class WeatherSnapshot:
    """Everything the One Call endpoint returns that the display uses."""

    lat: float = 0.0
    lon: float = 0.0
    timezone: str = ""
    timezone_offset: int = 0
    current: CurrentConditions = field(default_factory=CurrentConditions)
    hourly: list[HourlyConditions] = field(default_factory=list)
    daily: list[DailyConditions] = field(default_factory=list)
    alerts: list[WeatherAlert] = field(default_factory=list)

    def reset(self) -> None:
        self.lat = 0.0
        self.lon = 0.0
        self.timezone = ""
        self.timezone_offset = 0
        self.current = CurrentConditions()
        self.hourly.clear()
        self.daily.clear()
        self.alerts.clear()


@dataclass
class PollutantSeries:
    """Hourly pollutant concentrations in ug/m3, one list per component."""

    co: list[float] = field(default_factory=list)
    no: list[float] = field(default_factory=list)
    no2: list[float] = field(default_factory=list)
    o3: list[float] = field(default_factory=list)
    so2: list[float] = field(default_factory=list)
    pm2_5: list[float] = field(default_factory=list)
    pm10: list[float] = field(default_factory=list)
    nh3: list[float] = field(default_factory=list)

    NAMES = ("co", "no", "no2", "o3", "so2", "pm2_5", "pm10", "nh3")

    def clear(self) -> None:
        for name in self.NAMES:
            getattr(self, name).clear()


@dataclass
class AirQualitySample:
    """
    Air pollution history.

    ``aqi``, every pollutant list and ``dt`` are parallel: index ``i`` refers
    to the same hourly observation in all of them.
    """

    lat: float = 0.0
    lon: float = 0.0
    aqi: list[int] = field(default_factory=list)
    components: PollutantSeries = field(default_factory=PollutantSeries)
    dt: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.dt)

    def reset(self) -> None:
        self.lat = 0.0
        self.lon = 0.0
        self.aqi.clear()
        self.components.clear()
        self.dt.clear()
