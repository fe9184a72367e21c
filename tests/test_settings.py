import pytest

from ticker_feed.config import Settings


def test_attempt_budgets(settings):
    assert settings.attempts_for("weather") == 3
    assert settings.attempts_for("yahoo") == 2
    assert settings.attempts_for("unknown") == 1

    settings.retry_budgets["crypto"] = 0
    assert settings.attempts_for("crypto") == 1


def test_db_path_under_cache_dir(settings, tmp_path):
    assert settings.db_path == tmp_path / "ticker_feed.db"


def test_validate_requires_weather_key(tmp_path):
    with pytest.raises(ValueError, match="OWM_API_KEY"):
        Settings(owm_api_key="", cache_dir=tmp_path).validate()


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("MAX_CONCURRENT_TASKS", "3")
    monkeypatch.setenv("FALLBACK_RATE", "1.4")
    monkeypatch.setenv("DISPLAY_ALERTS", "false")
    monkeypatch.setenv("COINGECKO_API_KEY", "abc")

    settings = Settings(cache_dir=tmp_path)

    assert settings.max_concurrent_tasks == 3
    assert settings.fallback_rate == 1.4
    assert settings.display_alerts is False
    assert settings.has_coingecko_key()
