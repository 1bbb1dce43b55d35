"""Catalog (Constructor.io) upload protocol."""

from content_spine.catalog.client import CatalogClient, parse_body, task_id_of
from content_spine.catalog.payload import build_csv, build_jsonl, parse_jsonl, serialize

__all__ = [
    "CatalogClient",
    "build_csv",
    "build_jsonl",
    "parse_body",
    "parse_jsonl",
    "serialize",
    "task_id_of",
]
