"""
Shared pytest fixtures for content-spine tests.

This module provides:
- Raw bilingual entry factories shaped like GraphQL collection items
- In-memory content source and catalog doubles
- httpx MockTransport helpers for the real HTTP clients
- Settings isolation (no CONTENT_SPINE_* variables leak into tests)
"""

from __future__ import annotations

import json
import os
from typing import Any

import httpx
import pytest

from content_spine.config import Settings, reset_settings
from content_spine.models import CatalogItem, Credentials, LocaleCredentials, Page


# =============================================================================
# Settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Strip CONTENT_SPINE_* variables and run from an empty directory (no .env)."""
    for name in list(os.environ):
        if name.startswith("CONTENT_SPINE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> Settings:
    """Fully populated settings."""
    return Settings(
        contentful_space_id="space123",
        contentful_environment_id="master",
        contentful_delivery_token="cf-delivery-token",
        constructor_api_key_en="key_en_abc",
        constructor_api_key_fr="key_fr_xyz",
        constructor_api_token="tok_secret",
        constructor_section="Content",
    )


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        en=LocaleCredentials(key="key_en_abc", token="tok_secret", section="Content"),
        fr=LocaleCredentials(key="key_fr_xyz", token="tok_secret", section="Content"),
        delivery_token="cf-delivery-token",
    )


# =============================================================================
# Entry factories
# =============================================================================


def rich_text(*values: str) -> dict[str, Any]:
    """Rich-text document with one paragraph holding the given text nodes."""
    return {
        "nodeType": "document",
        "content": [
            {
                "nodeType": "paragraph",
                "content": [{"nodeType": "text", "value": value, "marks": []} for value in values],
            }
        ],
    }


def make_entry(
    n: int = 1,
    *,
    image_field: str = "image",
    **overrides: Any,
) -> dict[str, Any]:
    """Raw bilingual entry as returned by a collection query."""
    entry: dict[str, Any] = {
        "sys": {"id": f"entry{n}"},
        "title_en": f"Title {n}",
        "title_fr": f"Titre {n}",
        "slug_en": f"title-{n}",
        "slug_fr": f"titre-{n}",
        "description_en": {"json": rich_text(f"Description {n}")},
        "description_fr": {"json": rich_text(f"Description FR {n}")},
        image_field: {
            "__typename": "Asset",
            "altText": f"Alt {n}",
            "title": f"Image {n}",
            "image": {"url": f"https://images.example.com/{n}.jpg"},
        },
        "contentfulMetadata": {
            "tags": [{"id": "tagDeck", "name": "Deck"}],
            "concepts": [{"id": "concept1"}],
        },
    }
    entry.update(overrides)
    return entry


# =============================================================================
# In-memory doubles
# =============================================================================


class FakeSource:
    """
    Content source serving slices of a fixed entry list.

    ``total`` overrides the reported total (to simulate over-reporting);
    ``pages`` serves explicit pages in call order instead of slicing.
    """

    def __init__(
        self,
        entries: list[dict[str, Any]] | None = None,
        *,
        total: int | None = None,
        pages: list[Page] | None = None,
        error: Exception | None = None,
    ):
        self.entries = entries or []
        self.total = total
        self.pages = list(pages) if pages is not None else None
        self.error = error
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def fetch_page(self, query, *, limit, skip, concept_ids=None) -> Page:
        self.calls.append({"query": query, "limit": limit, "skip": skip, "concept_ids": concept_ids})
        if self.error is not None:
            raise self.error
        if self.pages is not None:
            return self.pages.pop(0)
        total = self.total if self.total is not None else len(self.entries)
        return Page(total=total, items=self.entries[skip : skip + limit])

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class RecordingCatalog:
    """Catalog double recording every upload."""

    def __init__(self, fail_on: str | None = None, error: Exception | None = None):
        self.uploads: list[dict[str, Any]] = []
        self.fail_on = fail_on
        self.error = error
        self.closed = False

    def upload(self, items: list[CatalogItem], creds: LocaleCredentials, *, format: str = "jsonl") -> dict[str, Any]:
        self.uploads.append({"items": list(items), "creds": creds, "format": format})
        if self.fail_on is not None and creds.key == self.fail_on:
            raise self.error
        return {"task_id": f"task-{len(self.uploads)}"}

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


@pytest.fixture
def catalog() -> RecordingCatalog:
    return RecordingCatalog()


# =============================================================================
# httpx helpers
# =============================================================================


class RequestLog:
    """MockTransport handler answering from a queue of responses."""

    def __init__(self, *responses: httpx.Response | Exception):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        # fresh copy so a queued response can be served more than once
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


def json_response(status: int, body: Any) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(body).encode(), headers={"Content-Type": "application/json"})
