"""
Entry mappers - normalized CMS entry -> CatalogItem.

One mapper per content type. They share the id/name fallbacks, rich-text
flattening and metadata extraction; each picks its image field and payload
variant.
"""

from __future__ import annotations

from typing import Any

from content_spine.errors import ValidationError
from content_spine.models import (
    BuyingGuideData,
    CatalogItem,
    CatalogPayload,
    Locale,
    NormalizedEntry,
    ShowcaseData,
    TechTipData,
)
from content_spine.richtext import flatten_rich_text, slugify


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def catalog_id(entry: NormalizedEntry) -> str:
    """slug, else the CMS entry id, else the slugified title."""
    item_id = (
        _text(entry.get("slug"))
        or _text((entry.get("sys") or {}).get("id"))
        or slugify(entry.get("title"))
    )
    if not item_id:
        raise ValidationError("Cannot derive a catalog id: entry has no slug, id or title", field="id")
    return item_id


def display_name(entry: NormalizedEntry, item_id: str) -> str:
    return _text(entry.get("title")) or item_id or "untitled"


def description_text(entry: NormalizedEntry) -> str:
    description = entry.get("description")
    if isinstance(description, dict) and "json" in description:
        description = description["json"]
    return flatten_rich_text(description)


def image_fields(image: dict[str, Any] | None) -> tuple[str | None, str | None]:
    """(url, alt) of an image reference; alt falls back to the image title."""
    if not image:
        return None, None
    url = (image.get("image") or {}).get("url")
    alt = _text(image.get("altText")) or _text(image.get("title"))
    return url, alt


def metadata_lists(entry: NormalizedEntry) -> tuple[list[str], list[str]]:
    """(tag names, concept ids) with empty values dropped, order kept."""
    metadata = entry.get("contentfulMetadata") or {}
    categories = [t.get("name") for t in metadata.get("tags") or [] if t and t.get("name")]
    concepts = [c.get("id") for c in metadata.get("concepts") or [] if c and c.get("id")]
    return categories, concepts


def _build(
    entry: NormalizedEntry,
    payload_cls: type[CatalogPayload],
    image_field: str,
    **extra: Any,
) -> CatalogItem:
    item_id = catalog_id(entry)
    image_url, image_alt = image_fields(entry.get(image_field))
    categories, concepts = metadata_lists(entry)

    payload = payload_cls(
        description=description_text(entry),
        image_url=image_url,
        image_alt=image_alt,
        categories=categories,
        concepts=concepts,
        slug=_text(entry.get("slug")),
        **extra,
    )
    return CatalogItem(id=item_id, name=display_name(entry, item_id), data=payload)


def map_showcase(entry: NormalizedEntry) -> CatalogItem:
    return _build(entry, ShowcaseData, "featuredImage")


def map_tech_tip(entry: NormalizedEntry) -> CatalogItem:
    return _build(entry, TechTipData, "image", locale=entry.get("locale") or Locale.EN.cms_code)


def map_buying_guide(entry: NormalizedEntry) -> CatalogItem:
    return _build(entry, BuyingGuideData, "image")
