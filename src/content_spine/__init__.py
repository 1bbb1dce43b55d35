"""
content-spine - reindex CMS content types into a bilingual search catalog.

One run fetches every entry of a content type from the Contentful GraphQL
delivery API, maps each entry to an EN and a FR catalog item, and replaces
the corresponding Constructor.io catalog sections.

    from content_spine.handler import handle

    handle({"body": {"parameters": {"contentTypeId": "techTip"}}}, context)
"""

__version__ = "1.0.0"

from content_spine.errors import ContentSpineError
from content_spine.models import CatalogItem, ContentType, Credentials, IndexResult, Locale, LocaleCredentials
from content_spine.orchestrator import run_indexation
from content_spine.registry import resolve

__all__ = [
    "__version__",
    "CatalogItem",
    "ContentSpineError",
    "ContentType",
    "Credentials",
    "IndexResult",
    "Locale",
    "LocaleCredentials",
    "resolve",
    "run_indexation",
]
