"""Content sources."""

from content_spine.sources.base import ContentSource
from content_spine.sources.contentful import ContentfulSource
from content_spine.sources.queries import (
    BUYING_GUIDE_QUERY,
    SHOWCASE_QUERY,
    TECH_TIP_QUERY,
    CollectionQuery,
)

__all__ = [
    "ContentSource",
    "ContentfulSource",
    "CollectionQuery",
    "SHOWCASE_QUERY",
    "TECH_TIP_QUERY",
    "BUYING_GUIDE_QUERY",
]
