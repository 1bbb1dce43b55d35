"""
Serverless entry point (app action call).

The event body carries the operator's parameters; the invocation context
carries the space, environment and app installation parameters.

    event   = {"body": {"parameters": {"contentTypeId": "techTip", "section": "Content"}}}
    context = {"spaceId": "...", "environmentId": "master",
               "appInstallationParameters": {"contentful": {...}, "constructor": {...}}}
"""

from __future__ import annotations

from typing import Any, Mapping

from content_spine.catalog.client import CatalogClient
from content_spine.config import Settings, first_non_empty, get_settings, installation_parameters, resolve_credentials
from content_spine.errors import MissingConfigError
from content_spine.logging import clear_run, configure_logging, get_logger, redact
from content_spine.orchestrator import run_indexation
from content_spine.sources.contentful import ContentfulSource

logger = get_logger(__name__)


def event_parameters(event: Mapping[str, Any] | None) -> dict[str, Any]:
    body = (event or {}).get("body") or {}
    params = body.get("parameters", body) if isinstance(body, Mapping) else {}
    return dict(params or {})


def build_catalog_client(settings: Settings) -> CatalogClient:
    return CatalogClient(
        settings.constructor_base_url,
        client_tag=settings.constructor_client_tag,
        timeout=settings.request_timeout,
        upload_method=settings.upload_method,
        notification_email=settings.constructor_notification_email,
    )


def build_source(settings: Settings, delivery_token: str, context: Mapping[str, Any] | None = None) -> ContentfulSource:
    context = context or {}
    space_id = first_non_empty(context.get("spaceId"), settings.contentful_space_id)
    if not space_id:
        raise MissingConfigError("spaceId", "Contentful space id missing (context/env).")
    environment_id = first_non_empty(context.get("environmentId"), settings.contentful_environment_id)
    return ContentfulSource(
        space_id,
        environment_id or "master",
        delivery_token,
        graphql_url=settings.contentful_graphql_url,
    )


def handle(
    event: Mapping[str, Any] | None,
    context: Mapping[str, Any] | None = None,
    *,
    settings: Settings | None = None,
    source: Any = None,
    catalog: CatalogClient | None = None,
) -> dict[str, Any]:
    """
    Run one indexation for the app action call and return the response dict.

    Configuration errors (missing parameter or credential) raise before any
    network call.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, format=settings.log_format)

    params = event_parameters(event)
    content_type_id = first_non_empty(params.get("contentTypeId"))
    if not content_type_id:
        raise MissingConfigError("contentTypeId", "Missing required parameter: contentTypeId")

    credentials = resolve_credentials(settings, params, installation_parameters(context))
    logger.info(
        "app_action_received",
        content_type=content_type_id,
        key_en=redact(credentials.en.key),
        key_fr=redact(credentials.fr.key),
        section=credentials.en.section,
    )

    own_source = source is None
    own_catalog = catalog is None
    source = source or build_source(settings, credentials.delivery_token, context)
    catalog = catalog or build_catalog_client(settings)
    try:
        result = run_indexation(
            content_type_id,
            credentials=credentials,
            source=source,
            catalog=catalog,
            page_size=settings.page_size,
            strict=settings.strict_content_types,
            upload_format=settings.upload_format,
        )
    finally:
        if own_source:
            source.close()
        if own_catalog:
            catalog.close()
        clear_run()

    response = result.to_dict()
    for key in ("spaceId", "environmentId"):
        if (context or {}).get(key):
            response["meta"].setdefault(key, context[key])
    return response
