"""Contentful GraphQL delivery API source."""

from __future__ import annotations

from typing import Any

import httpx

from content_spine.errors import SourceError
from content_spine.logging import get_logger
from content_spine.models import Locale, Page, RawEntry
from content_spine.sources.queries import SORT_PUBLISHED_DESC, CollectionQuery

logger = get_logger(__name__)


class ContentfulSource:
    """
    Fetch pages of entries from the Contentful GraphQL delivery API.

    Requests carry no timeout unless one is configured; the serverless host's
    invocation deadline bounds a stalled source.
    """

    def __init__(
        self,
        space_id: str,
        environment_id: str,
        access_token: str,
        *,
        graphql_url: str = "https://graphql.contentful.com",
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ):
        if not space_id:
            raise SourceError("Contentful space id is required")
        self.space_id = space_id
        self.environment_id = environment_id or "master"
        self.access_token = access_token
        self.graphql_url = graphql_url.rstrip("/")
        self._client = http_client or httpx.Client(timeout=timeout)

    @property
    def endpoint(self) -> str:
        return (
            f"{self.graphql_url}/content/v1/spaces/{self.space_id}"
            f"/environments/{self.environment_id}"
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ContentfulSource:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Run a GraphQL query and return its ``data`` object.

        Raises:
            SourceError: On HTTP failure, a non-JSON body or GraphQL errors.
        """
        try:
            response = self._client.post(
                self.endpoint,
                json={"query": query, "variables": variables or {}},
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise SourceError(f"GraphQL request failed: {e}", cause=e).with_context(url=self.endpoint)

        try:
            body = response.json()
        except ValueError:
            body = response.text

        if response.is_error:
            raise SourceError(
                f"GraphQL query failed: {response.status_code} HTTP error"
            ).with_context(url=self.endpoint, http_status=response.status_code, body=body)

        if not isinstance(body, dict):
            raise SourceError("GraphQL response is not a JSON object").with_context(url=self.endpoint)

        if body.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in body["errors"])
            raise SourceError(f"GraphQL error: {messages}").with_context(url=self.endpoint)

        return body.get("data") or {}

    def fetch_page(
        self,
        query: CollectionQuery,
        *,
        limit: int,
        skip: int,
        concept_ids: list[str] | None = None,
    ) -> Page:
        """Fetch one page of a collection, most recently published first."""
        with_concepts = bool(concept_ids)
        variables: dict[str, Any] = {
            "limit": limit,
            "skip": skip,
            "sortOrder": SORT_PUBLISHED_DESC,
            "localeEn": Locale.EN.cms_code,
            "localeFr": Locale.FR.cms_code,
        }
        if with_concepts:
            variables["conceptIds"] = concept_ids

        try:
            data = self.execute(query.render(with_concepts=with_concepts), variables)
        except SourceError as e:
            logger.error("collection_query_failed", collection=query.collection, skip=skip, error=e.message)
            raise

        collection = data.get(query.collection) or {}
        items = collection.get("items")
        items = [item for item in items if item] if isinstance(items, list) else []
        total = collection.get("total")
        return Page(total=total if isinstance(total, int) else 0, items=items)

    def fetch_latest(self, query: CollectionQuery) -> RawEntry | None:
        """Most recently published entry of a collection, or None."""
        page = self.fetch_page(query, limit=1, skip=0)
        return page.items[0] if page.items else None
