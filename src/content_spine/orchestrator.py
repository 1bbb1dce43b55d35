"""
Indexation orchestrator - one full-catalog reindex of one content type.

    RESOLVE_INDEXER -> PAGINATE_ALL -> NORMALIZE+MAP (en, fr) -> UPLOAD_EN -> UPLOAD_FR -> REPORT

Both locale item lists come from the same fetched entries. Uploads run one
after the other so their log output stays in order.
"""

from __future__ import annotations

from functools import partial

from content_spine.catalog.client import CatalogClient, task_id_of
from content_spine.catalog.payload import CONTENT_TYPES, UploadFormat
from content_spine.errors import MissingConfigError, UnsupportedContentTypeError, ValidationError
from content_spine.logging import bind_run, get_logger
from content_spine.models import Credentials, IndexResult, Locale, LocaleUploadResult
from content_spine.pagination import collect_all
from content_spine.registry import resolve
from content_spine.sources.base import ContentSource

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 50
LOCALES = (Locale.EN, Locale.FR)


def _require(credentials: Credentials | None) -> Credentials:
    if credentials is None:
        raise MissingConfigError("credentials")
    for locale in LOCALES:
        creds = credentials.for_locale(locale)
        if not creds.key:
            raise MissingConfigError(f"constructor.key_{locale.value}")
        if not creds.token:
            raise MissingConfigError("constructor.token")
        if not creds.section:
            raise MissingConfigError("constructor.section")
    return credentials


def run_indexation(
    content_type_id: str | None,
    *,
    credentials: Credentials,
    source: ContentSource,
    catalog: CatalogClient,
    page_size: int = DEFAULT_PAGE_SIZE,
    strict: bool = False,
    upload_format: UploadFormat = "jsonl",
    concept_ids: list[str] | None = None,
) -> IndexResult:
    """
    Reindex every entry of one content type into both locale catalogs.

    Raises:
        MissingConfigError: No content type id, or incomplete credentials.
        ValidationError: Unknown upload format.
        SourceError: A page fetch failed; nothing is uploaded.
        CatalogUploadError: A catalog replace was rejected.
    """
    if not (content_type_id or "").strip():
        raise MissingConfigError("contentTypeId", "Missing required parameter: contentTypeId")
    credentials = _require(credentials)
    if upload_format not in CONTENT_TYPES:
        raise ValidationError(f"Unsupported upload format: {upload_format!r}", field="format", value=upload_format)

    # RESOLVE_INDEXER
    try:
        indexer = resolve(content_type_id, strict=strict)
    except UnsupportedContentTypeError as e:
        logger.warning("content_type_unsupported", requested=content_type_id)
        return IndexResult.failure(e.message, contentTypeId=content_type_id)

    bind_run(content_type=indexer.id)
    logger.info("indexation_started", requested=content_type_id, page_size=page_size)

    # PAGINATE_ALL
    fetch = partial(indexer.fetch_page, source, concept_ids=concept_ids)
    entries = collect_all(lambda skip, limit: fetch(limit=limit, skip=skip), page_size)

    if not entries:
        logger.info("indexation_empty")
        return IndexResult(
            ok=True,
            message=f"No {indexer.id} items found.",
            meta={"contentTypeId": indexer.id, "total": 0, "pageSize": page_size},
            result={
                locale: LocaleUploadResult(uploaded=0, section=credentials.for_locale(locale).section)
                for locale in LOCALES
            },
        )

    # NORMALIZE + MAP
    items_by_locale = {locale: indexer.items_for_locale(entries, locale) for locale in LOCALES}

    # UPLOAD_EN, UPLOAD_FR
    results: dict[Locale, LocaleUploadResult] = {}
    for locale in LOCALES:
        creds = credentials.for_locale(locale)
        items = items_by_locale[locale]
        logger.info("locale_upload_started", locale=locale.value, section=creds.section, items=len(items))
        response = catalog.upload(items, creds, format=upload_format)
        results[locale] = LocaleUploadResult(
            uploaded=len(items),
            section=creds.section,
            task_id=task_id_of(response),
        )

    # REPORT
    en, fr = results[Locale.EN], results[Locale.FR]
    logger.info("indexation_complete", en_uploaded=en.uploaded, fr_uploaded=fr.uploaded)
    return IndexResult(
        ok=True,
        message=(
            f"Uploaded {en.uploaded} {indexer.id} items (EN, section: {en.section}) "
            f"and {fr.uploaded} (FR, section: {fr.section})."
        ),
        meta={
            "contentTypeId": indexer.id,
            "totalQueried": len(entries),
            "pageSize": page_size,
            "format": upload_format,
        },
        result=results,
    )
