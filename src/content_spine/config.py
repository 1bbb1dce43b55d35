"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic_settings import BaseSettings, SettingsConfigDict

from content_spine.errors import MissingConfigError
from content_spine.models import Credentials, LocaleCredentials

DEFAULT_SECTION = "Content"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_SPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Content source (Contentful GraphQL delivery API)
    contentful_space_id: str | None = None
    contentful_environment_id: str = "master"
    contentful_delivery_token: str | None = None
    contentful_graphql_url: str = "https://graphql.contentful.com"

    # Catalog (Constructor.io)
    constructor_api_key_en: str | None = None
    constructor_api_key_fr: str | None = None
    constructor_api_token: str | None = None
    constructor_section: str | None = None
    constructor_base_url: str = "https://ac.cnstrc.com"
    constructor_client_tag: str = "contentful-index-app/1.0"
    constructor_notification_email: str | None = None
    upload_format: Literal["jsonl", "csv"] = "jsonl"
    upload_method: Literal["PUT", "PATCH"] = "PUT"
    request_timeout: float = 20.0
    task_poll_interval: float = 3.0

    # Pipeline
    page_size: int = 50
    strict_content_types: bool = False

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "console"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None


def first_non_empty(*values: Any) -> str | None:
    """Return the first value that is a non-blank string, trimmed."""
    for value in values:
        if isinstance(value, str):
            trimmed = value.strip()
            if trimmed:
                return trimmed
    return None


def installation_parameters(context: Mapping[str, Any] | None) -> dict[str, Any]:
    """Extract app installation parameters from a function invocation context."""
    if not context:
        return {}
    params = context.get("appInstallationParameters")
    if params is None:
        params = (context.get("parameters") or {}).get("installation")
    return dict(params or {})


def resolve_credentials(
    settings: Settings,
    overrides: Mapping[str, Any] | None = None,
    installation: Mapping[str, Any] | None = None,
) -> Credentials:
    """
    Merge per-run overrides, settings and installation parameters.

    Precedence per value: override > settings (environment) > installation.
    The legacy single ``key`` installation parameter stands in for the EN key.

    Raises:
        MissingConfigError: If any required credential is absent.
    """
    overrides = overrides or {}
    installation = installation or {}
    ctor = installation.get("constructor") or {}
    cms = installation.get("contentful") or {}

    key_en = first_non_empty(
        overrides.get("constructorKeyEn"),
        settings.constructor_api_key_en,
        ctor.get("key_en"),
        ctor.get("key"),
    )
    key_fr = first_non_empty(
        overrides.get("constructorKeyFr"),
        settings.constructor_api_key_fr,
        ctor.get("key_fr"),
    )
    token = first_non_empty(
        overrides.get("constructorToken"),
        settings.constructor_api_token,
        ctor.get("token"),
    )
    section = first_non_empty(
        overrides.get("section"),
        settings.constructor_section,
        ctor.get("section"),
    ) or DEFAULT_SECTION
    delivery_token = first_non_empty(
        settings.contentful_delivery_token,
        cms.get("deliveryToken"),
    )

    if not key_en:
        raise MissingConfigError("constructor.key_en", "Constructor EN key missing (context/env).")
    if not key_fr:
        raise MissingConfigError("constructor.key_fr", "Constructor FR key missing (context/env).")
    if not token:
        raise MissingConfigError("constructor.token", "Constructor token missing (context/env).")
    if not delivery_token:
        raise MissingConfigError(
            "contentful.deliveryToken", "Contentful GraphQL token missing (delivery)."
        )

    return Credentials(
        en=LocaleCredentials(key=key_en, token=token, section=section),
        fr=LocaleCredentials(key=key_fr, token=token, section=section),
        delivery_token=delivery_token,
    )
