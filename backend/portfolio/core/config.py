from functools import lru_cache
import json
from typing import Annotated
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_list_value(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return []
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
            except ValueError:
                parsed = None
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )
    database_url: str = ""

    jwt_secret: str = ""
    jwt_audience: str = ""

    docs_enabled: bool = True
    openapi_enabled: bool = True
    expose_error_details: bool = False

    reporting_timezone: str = Field(
        default="UTC",
        validation_alias=AliasChoices("REPORTING_TIMEZONE", "TZ_REPORTING"),
    )

    listing_default_page_size: int = 20
    listing_max_page_size: int = 100
    dashboard_recent_limit: int = 5
    dashboard_timeout_seconds: float = 10.0

    rate_limit_contact_enabled: bool = True
    rate_limit_contact_per_window: int = 5
    rate_limit_contact_window_seconds: int = 900
    trusted_proxy_cidrs: Annotated[list[str], NoDecode] = Field(default_factory=list)

    security_headers_enabled: bool = True

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)
    cors_allow_methods: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "GET",
        "POST",
        "PUT",
        "PATCH",
        "DELETE",
        "OPTIONS",
    ])
    cors_allow_headers: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "Authorization",
        "Content-Type",
        "Accept",
    ])

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        "trusted_proxy_cidrs",
        mode="before",
    )
    @classmethod
    def _split_csv(cls, value):
        return _parse_list_value(value)

    @field_validator("reporting_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        name = (value or "").strip() or "UTC"
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown REPORTING_TIMEZONE: {name}") from exc
        return name

    @field_validator("listing_default_page_size", "listing_max_page_size", "dashboard_recent_limit")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be >= 1")
        return value

    @property
    def reporting_tz(self) -> ZoneInfo:
        return ZoneInfo(self.reporting_timezone)


@lru_cache
def get_settings() -> Settings:
    return Settings()
