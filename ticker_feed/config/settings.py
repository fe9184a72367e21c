"""Configuration settings for the feed."""

from dataclasses import dataclass, field
from pathlib import Path
import os

from dotenv import load_dotenv

from ticker_feed.models.market_data import ASSETS_PER_PAGE, AssetSpec


load_dotenv()


# Fixed capacities of the long-lived records
HOURLY_CAPACITY = 48
DAILY_CAPACITY = 8
ALERT_CAPACITY = 8
AIR_QUALITY_CAPACITY = 24
CANDLE_CAPACITY = 24

# Crypto page - CoinGecko ids, matched against the batch response by id
CRYPTO_ASSETS: tuple[AssetSpec, ...] = (
    AssetSpec("bitcoin", "BTC", "Bitcoin"),
    AssetSpec("ethereum", "ETH", "Ethereum"),
    AssetSpec("solana", "SOL", "Solana"),
    AssetSpec("ripple", "XRP", "XRP"),
)

# Yahoo Finance chart symbols
INDEX_ASSETS: tuple[AssetSpec, ...] = (
    AssetSpec("^GSPC", "SPX", "S&P 500"),
    AssetSpec("^IXIC", "IXIC", "Nasdaq Composite"),
    AssetSpec("^DJI", "DJI", "Dow Jones"),
    AssetSpec("^GSPTSE", "TSX", "S&P/TSX Composite"),
)

COMMODITY_ASSETS: tuple[AssetSpec, ...] = (
    AssetSpec("GC=F", "GOLD", "Gold"),
    AssetSpec("SI=F", "SILVER", "Silver"),
    AssetSpec("CL=F", "WTI", "Crude Oil"),
    AssetSpec("NG=F", "NATGAS", "Natural Gas"),
)

# Settings.conversion_symbol picks the crypto conversion rate from this page
FOREX_ASSETS: tuple[AssetSpec, ...] = (
    AssetSpec("USDCAD=X", "USD/CAD", "US Dollar / Canadian Dollar"),
    AssetSpec("EURUSD=X", "EUR/USD", "Euro / US Dollar"),
    AssetSpec("GBPUSD=X", "GBP/USD", "British Pound / US Dollar"),
    AssetSpec("USDJPY=X", "USD/JPY", "US Dollar / Japanese Yen"),
)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, "")
    return float(value) if value.strip() else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "")
    return int(value) if value.strip() else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name, "").strip().lower()
    if not value:
        return default
    return value in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Application settings."""

    owm_api_key: str = field(default_factory=lambda: os.getenv("OWM_API_KEY", ""))
    coingecko_api_key: str = field(
        default_factory=lambda: os.getenv("COINGECKO_API_KEY", "")
    )

    # Location and OpenWeatherMap request options
    latitude: str = field(default_factory=lambda: os.getenv("LAT", "40.7128"))
    longitude: str = field(default_factory=lambda: os.getenv("LON", "-74.0060"))
    owm_lang: str = field(default_factory=lambda: os.getenv("OWM_LANG", "en"))
    owm_units: str = field(default_factory=lambda: os.getenv("OWM_UNITS", "standard"))
    owm_onecall_version: str = field(
        default_factory=lambda: os.getenv("OWM_ONECALL_VERSION", "3.0")
    )
    display_alerts: bool = field(default_factory=lambda: _env_bool("DISPLAY_ALERTS", True))

    owm_endpoint: str = "https://api.openweathermap.org"
    coingecko_endpoint: str = "https://api.coingecko.com"
    yahoo_endpoint: str = "https://query1.finance.yahoo.com"

    # Crypto pricing and the derived secondary currency
    vs_currency: str = field(default_factory=lambda: os.getenv("COINGECKO_VS_CURRENCY", "usd"))
    secondary_currency: str = field(
        default_factory=lambda: os.getenv("SECONDARY_CURRENCY", "CAD")
    )
    conversion_symbol: str = field(
        default_factory=lambda: os.getenv("CONVERSION_SYMBOL", "USDCAD=X")
    )
    fallback_rate: float = field(default_factory=lambda: _env_float("FALLBACK_RATE", 1.36))

    # Transport limits
    connect_timeout: float = field(default_factory=lambda: _env_float("HTTP_CONNECT_TIMEOUT", 10.0))
    response_timeout: float = field(
        default_factory=lambda: _env_float("HTTP_RESPONSE_TIMEOUT", 10.0)
    )
    max_body_bytes: int = field(
        default_factory=lambda: _env_int("MAX_BODY_BYTES", 2 * 1024 * 1024)
    )

    # Bounded scheduler
    max_concurrent_tasks: int = field(
        default_factory=lambda: _env_int("MAX_CONCURRENT_TASKS", 2)
    )
    task_timeout: float = field(default_factory=lambda: _env_float("TASK_TIMEOUT", 15.0))
    batch_cooldown: float = field(default_factory=lambda: _env_float("BATCH_COOLDOWN", 0.1))

    # Attempts per request, by source
    retry_budgets: dict[str, int] = field(
        default_factory=lambda: {
            "weather": 3,
            "air_quality": 3,
            "crypto": 3,
            "yahoo": 2,
        }
    )

    cache_dir: Path = field(
        default_factory=lambda: Path(__file__).parent.parent.parent / "cache"
    )
    db_path: Path = field(init=False)

    def __post_init__(self) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.cache_dir / "ticker_feed.db"

    def validate(self) -> None:
        """Validate required settings."""
        if not self.owm_api_key:
            raise ValueError(
                "OWM_API_KEY not set. Get one at: "
                "https://home.openweathermap.org/api_keys"
            )

    def has_coingecko_key(self) -> bool:
        """Check if a CoinGecko demo API key is configured."""
        return bool(self.coingecko_api_key)

    def attempts_for(self, source: str) -> int:
        """Attempt budget for a source, at least one."""
        return max(1, self.retry_budgets.get(source, 1))
