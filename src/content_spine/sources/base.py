"""Source protocol shared by the registry and the orchestrator."""

from typing import Protocol, runtime_checkable

from content_spine.models import Page
from content_spine.sources.queries import CollectionQuery


@runtime_checkable
class ContentSource(Protocol):
    """Anything that can return one page of bilingual raw entries."""

    def fetch_page(
        self,
        query: CollectionQuery,
        *,
        limit: int,
        skip: int,
        concept_ids: list[str] | None = None,
    ) -> Page: ...
