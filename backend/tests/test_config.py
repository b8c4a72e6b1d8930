import pytest
from pydantic import ValidationError

from portfolio.core.config import Settings, get_settings


def test_csv_lists_are_split(monkeypatch):
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("TRUSTED_PROXY_CIDRS", '["10.0.0.0/8"]')
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.cors_allow_origins == ["https://a.example", "https://b.example"]
    assert settings.trusted_proxy_cidrs == ["10.0.0.0/8"]


def test_reporting_timezone(monkeypatch):
    monkeypatch.setenv("REPORTING_TIMEZONE", "Europe/Vilnius")
    get_settings.cache_clear()

    assert get_settings().reporting_tz.key == "Europe/Vilnius"


def test_unknown_timezone_is_rejected(monkeypatch):
    monkeypatch.setenv("REPORTING_TIMEZONE", "Mars/Olympus")

    with pytest.raises(ValidationError):
        Settings()


def test_defaults(monkeypatch):
    for name in ("LISTING_DEFAULT_PAGE_SIZE", "DASHBOARD_RECENT_LIMIT", "REPORTING_TIMEZONE", "TZ_REPORTING"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.listing_default_page_size == 20
    assert settings.listing_max_page_size == 100
    assert settings.dashboard_recent_limit == 5
    assert settings.reporting_timezone == "UTC"
