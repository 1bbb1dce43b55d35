"""
Indexer registry - one indexer per supported content type.

An indexer bundles the three per-type steps of a run: fetch a page of raw
entries, project an entry onto one locale, and map it to a catalog item.

Lookup keys are normalized before matching (whitespace, hyphens and
underscores removed, lowercased), so ``Project_Showcases``,
``projectshowcase`` and ``PROJECTSHOWCASES`` all resolve to the showcase
indexer.

Unknown keys fall back to the showcase indexer unless ``strict=True``, in
which case ``UnsupportedContentTypeError`` is raised. The fallback keeps
existing callers working; it also means a typo indexes showcases.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from content_spine.errors import UnsupportedContentTypeError
from content_spine.logging import get_logger
from content_spine.mappers import map_buying_guide, map_showcase, map_tech_tip
from content_spine.models import CatalogItem, ContentType, Locale, NormalizedEntry, Page, RawEntry
from content_spine.normalizer import normalize_for_locale
from content_spine.sources.base import ContentSource
from content_spine.sources.queries import (
    BUYING_GUIDE_QUERY,
    SHOWCASE_QUERY,
    TECH_TIP_QUERY,
    CollectionQuery,
)

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = ContentType.PROJECT_SHOWCASE

_STRIP = re.compile(r"[\s\-_]+")


@dataclass(frozen=True)
class Indexer:
    """Per-content-type fetch / normalize / map bundle."""

    content_type: ContentType
    query: CollectionQuery
    mapper: Callable[[NormalizedEntry], CatalogItem]

    @property
    def id(self) -> str:
        return self.content_type.value

    def fetch_page(
        self,
        source: ContentSource,
        *,
        limit: int,
        skip: int,
        concept_ids: list[str] | None = None,
    ) -> Page:
        return source.fetch_page(self.query, limit=limit, skip=skip, concept_ids=concept_ids)

    def normalize_for_locale(self, entry: RawEntry, locale: Locale | str) -> NormalizedEntry:
        return normalize_for_locale(entry, locale)

    def map(self, entry: NormalizedEntry) -> CatalogItem:
        return self.mapper(entry)

    def items_for_locale(self, entries: list[RawEntry], locale: Locale) -> list[CatalogItem]:
        """Normalize and map every entry for one locale, preserving order."""
        return [self.map(self.normalize_for_locale(entry, locale)) for entry in entries]


INDEXERS: dict[ContentType, Indexer] = {
    ContentType.PROJECT_SHOWCASE: Indexer(ContentType.PROJECT_SHOWCASE, SHOWCASE_QUERY, map_showcase),
    ContentType.TECH_TIP: Indexer(ContentType.TECH_TIP, TECH_TIP_QUERY, map_tech_tip),
    ContentType.BUYING_GUIDE: Indexer(ContentType.BUYING_GUIDE, BUYING_GUIDE_QUERY, map_buying_guide),
}

# Normalized key -> content type. Singular and plural forms of each model id.
ALIASES: dict[str, ContentType] = {
    "projectshowcase": ContentType.PROJECT_SHOWCASE,
    "projectshowcases": ContentType.PROJECT_SHOWCASE,
    "showcase": ContentType.PROJECT_SHOWCASE,
    "showcases": ContentType.PROJECT_SHOWCASE,
    "techtip": ContentType.TECH_TIP,
    "techtips": ContentType.TECH_TIP,
    "buyingguide": ContentType.BUYING_GUIDE,
    "buyingguides": ContentType.BUYING_GUIDE,
}


def normalize_content_type_key(value: str | None) -> str:
    """Strip whitespace, hyphens and underscores, then lowercase."""
    return _STRIP.sub("", value or "").lower()


def lookup_content_type(value: str | None) -> ContentType | None:
    """Content type for a (possibly aliased) id, or None if unknown."""
    return ALIASES.get(normalize_content_type_key(value))


def resolve(content_type_id: str | None, *, strict: bool = False) -> Indexer:
    """
    Resolve an indexer for a content type id.

    Raises:
        UnsupportedContentTypeError: If the id is unknown and ``strict`` is set.
    """
    content_type = lookup_content_type(content_type_id)
    if content_type is not None:
        return INDEXERS[content_type]

    if strict:
        raise UnsupportedContentTypeError(content_type_id or "", list_content_types())

    logger.warning(
        "content_type_fallback",
        requested=content_type_id,
        resolved=DEFAULT_CONTENT_TYPE.value,
    )
    return INDEXERS[DEFAULT_CONTENT_TYPE]


def list_content_types() -> list[str]:
    """Canonical content type ids."""
    return [content_type.value for content_type in INDEXERS]


def aliases_for(content_type: ContentType) -> list[str]:
    return sorted(key for key, value in ALIASES.items() if value is content_type)
