"""Catalog upload payload serialization (JSONL and CSV)."""

from __future__ import annotations

import csv
import io
import json
from typing import Iterable, Literal

from content_spine.models import CatalogItem

UploadFormat = Literal["jsonl", "csv"]

CONTENT_TYPES: dict[str, str] = {
    "jsonl": "application/jsonl",
    "csv": "text/csv",
}

CSV_COLUMNS = ["id", "item_name", "suggested_score", "data"]


def _compact(obj: object) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def build_jsonl(items: Iterable[CatalogItem]) -> str:
    """One compact JSON object per line, in input order."""
    return "\n".join(_compact(item.to_dict()) for item in items)


def parse_jsonl(text: str) -> list[CatalogItem]:
    """
    Inverse of build_jsonl. Blank lines are ignored.

    Records are split on line feeds only; U+2028, U+2029 and U+0085 may
    appear unescaped inside a record.
    """
    return [CatalogItem.from_dict(json.loads(line)) for line in text.split("\n") if line.strip()]


def build_csv(items: Iterable[CatalogItem]) -> str:
    """CSV rendition; the metadata payload is a JSON-encoded ``data`` column."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for item in items:
        row = item.to_dict()
        writer.writerow(
            [
                row["id"],
                row["name"],
                "" if item.suggested_score is None else item.suggested_score,
                _compact(row["data"]),
            ]
        )
    return buffer.getvalue()


def serialize(items: Iterable[CatalogItem], format: UploadFormat = "jsonl") -> str:
    if format == "jsonl":
        return build_jsonl(items)
    if format == "csv":
        return build_csv(items)
    raise ValueError(f"Unsupported upload format: {format!r}")


def items_filename(format: UploadFormat) -> str:
    return f"items.{format}"
