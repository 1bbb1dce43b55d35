"""
Data models for the indexing pipeline.

Raw and normalized CMS entries stay plain dicts (they are whatever the
GraphQL delivery API returns); everything produced by this package is a
dataclass with an explicit ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

RawEntry = dict[str, Any]
NormalizedEntry = dict[str, Any]


class Locale(str, Enum):
    """Catalog locales. Each locale is uploaded to its own index key."""

    EN = "en"
    FR = "fr"

    @property
    def cms_code(self) -> str:
        """Locale code used by the CMS."""
        return {"en": "en-US", "fr": "fr"}[self.value]


class ContentType(str, Enum):
    """Supported CMS content types (canonical ids)."""

    PROJECT_SHOWCASE = "projectShowcase"
    TECH_TIP = "techTip"
    BUYING_GUIDE = "buyingGuide"


@dataclass
class Page:
    """One page of raw entries as reported by the content source."""

    total: int
    items: list[RawEntry] = field(default_factory=list)


# =============================================================================
# Credentials
# =============================================================================


@dataclass(frozen=True)
class LocaleCredentials:
    """Catalog credentials for one locale."""

    key: str
    token: str
    section: str

    def __repr__(self) -> str:
        # Never render the token
        return f"LocaleCredentials(key={self.key[:2]}••••, section={self.section!r})"


@dataclass(frozen=True)
class Credentials:
    """Everything a run needs: one catalog index per locale plus the CMS delivery token."""

    en: LocaleCredentials
    fr: LocaleCredentials
    delivery_token: str

    def for_locale(self, locale: Locale) -> LocaleCredentials:
        return self.en if locale is Locale.EN else self.fr

    def __repr__(self) -> str:
        return f"Credentials(en={self.en!r}, fr={self.fr!r})"


# =============================================================================
# Catalog payloads (one variant per content type)
# =============================================================================


@dataclass
class CatalogPayload:
    """Metadata shared by every catalog item, whatever its content type."""

    content_type: ClassVar[str] = ""

    description: str = ""
    image_url: str | None = None
    image_alt: str | None = None
    categories: list[str] = field(default_factory=list)
    concepts: list[str] = field(default_factory=list)
    slug: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "contentType": self.content_type,
            "description": self.description,
            "image_url": self.image_url,
            "image_alt": self.image_alt,
            "categories": list(self.categories),
            "concepts": list(self.concepts),
            "slug": self.slug,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CatalogPayload:
        return cls(
            description=data.get("description") or "",
            image_url=data.get("image_url"),
            image_alt=data.get("image_alt"),
            categories=list(data.get("categories") or []),
            concepts=list(data.get("concepts") or []),
            slug=data.get("slug"),
        )


@dataclass
class ShowcaseData(CatalogPayload):
    content_type: ClassVar[str] = "showcase"


@dataclass
class BuyingGuideData(CatalogPayload):
    content_type: ClassVar[str] = "buyingGuide"


@dataclass
class TechTipData(CatalogPayload):
    content_type: ClassVar[str] = "techTip"

    locale: str = Locale.EN.cms_code

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["locale"] = self.locale
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TechTipData:
        base = CatalogPayload.from_dict(data)
        return cls(
            description=base.description,
            image_url=base.image_url,
            image_alt=base.image_alt,
            categories=base.categories,
            concepts=base.concepts,
            slug=base.slug,
            locale=data.get("locale") or Locale.EN.cms_code,
        )


PAYLOAD_TYPES: dict[str, type[CatalogPayload]] = {
    cls.content_type: cls for cls in (ShowcaseData, TechTipData, BuyingGuideData)
}


def payload_from_dict(data: dict[str, Any]) -> CatalogPayload:
    """Rebuild a payload variant from its ``contentType`` discriminator."""
    discriminator = data.get("contentType")
    try:
        payload_cls = PAYLOAD_TYPES[discriminator]
    except KeyError:
        raise ValueError(f"Unknown catalog payload contentType: {discriminator!r}") from None
    return payload_cls.from_dict(data)


@dataclass
class CatalogItem:
    """Canonical unit sent to the catalog index."""

    id: str
    name: str
    data: CatalogPayload
    suggested_score: float | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.suggested_score is not None:
            result["suggested_score"] = self.suggested_score
        result["data"] = self.data.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CatalogItem:
        return cls(
            id=data["id"],
            name=data.get("name") or data["id"],
            data=payload_from_dict(data.get("data") or {}),
            suggested_score=data.get("suggested_score"),
        )


# =============================================================================
# Run results
# =============================================================================


@dataclass
class LocaleUploadResult:
    """Outcome of one locale's catalog replace."""

    uploaded: int
    section: str
    task_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"uploaded": self.uploaded, "section": self.section}
        if self.task_id is not None:
            result["taskId"] = self.task_id
        return result


@dataclass
class IndexResult:
    """Structured response of one indexation run."""

    ok: bool
    message: str
    meta: dict[str, Any] = field(default_factory=dict)
    result: dict[Locale, LocaleUploadResult] | None = None

    @classmethod
    def failure(cls, message: str, **meta: Any) -> IndexResult:
        return cls(ok=False, message=message, meta=meta)

    def to_dict(self) -> dict[str, Any]:
        response: dict[str, Any] = {"ok": self.ok, "message": self.message, "meta": dict(self.meta)}
        if self.result is not None:
            response["result"] = {locale.value: r.to_dict() for locale, r in self.result.items()}
        return response
