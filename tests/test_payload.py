"""Tests for catalog payload serialization and the catalog item model."""

import csv
import io
import json

import pytest

from content_spine.catalog.payload import build_csv, build_jsonl, items_filename, parse_jsonl, serialize
from content_spine.models import CatalogItem, ShowcaseData, TechTipData, payload_from_dict


@pytest.fixture
def items():
    return [
        CatalogItem(
            id="deck-stain",
            name="Deck stain, étape 1",
            data=TechTipData(description="Deux couches", image_url="https://x/1.jpg", categories=["Deck"], locale="fr"),
        ),
        CatalogItem(id="patio", name="Patio", data=ShowcaseData(concepts=["c1"], slug="patio"), suggested_score=3.5),
    ]


class TestJsonl:
    """Tests for build_jsonl / parse_jsonl."""

    def test_one_compact_line_per_item(self, items):
        """Each item is one compact JSON object on its own line."""
        text = build_jsonl(items)
        lines = text.split("\n")

        assert len(lines) == 2
        assert ": " not in lines[0]
        assert json.loads(lines[0])["id"] == "deck-stain"
        assert json.loads(lines[1])["data"]["contentType"] == "showcase"

    def test_non_ascii_kept(self, items):
        """Accented characters are written as is, not escaped."""
        assert "étape" in build_jsonl(items)

    def test_parse_restores_items(self, items):
        """parse_jsonl restores equal items."""
        assert parse_jsonl(build_jsonl(items)) == items

    @pytest.mark.parametrize("separator", ["\u2028", "\u2029", "\x85"])
    def test_parse_keeps_unicode_line_separators_inside_records(self, separator):
        """Unicode line separators inside text do not split a record."""
        items = [
            CatalogItem(id="a", name=f"A{separator}B", data=ShowcaseData(description=f"one{separator}two")),
            CatalogItem(id="b", name="B", data=ShowcaseData()),
        ]
        text = build_jsonl(items)

        assert text.count("\n") == 1
        assert parse_jsonl(text) == items

    def test_parse_ignores_blank_lines(self, items):
        """Trailing blank lines are skipped."""
        text = build_jsonl(items) + "\n\n"
        assert len(parse_jsonl(text)) == 2

    def test_suggested_score_omitted_when_unset(self, items):
        """suggested_score only appears when set."""
        first = json.loads(build_jsonl(items).split("\n")[0])
        assert "suggested_score" not in first


class TestCsv:
    """Tests for build_csv."""

    def test_header_and_rows(self, items):
        """Header row, then one row per item with JSON-encoded data."""
        rows = list(csv.reader(io.StringIO(build_csv(items))))

        assert rows[0] == ["id", "item_name", "suggested_score", "data"]
        assert rows[1][0] == "deck-stain"
        assert rows[1][2] == ""
        assert json.loads(rows[1][3])["locale"] == "fr"
        assert rows[2][2] == "3.5"


class TestSerialize:
    """Tests for serialize and items_filename."""

    def test_dispatch(self, items):
        """serialize picks the builder for the format."""
        assert serialize(items, "jsonl") == build_jsonl(items)
        assert serialize(items, "csv") == build_csv(items)

    def test_unknown_format(self, items):
        """Unknown formats raise ValueError."""
        with pytest.raises(ValueError):
            serialize(items, "xml")

    def test_filename(self):
        """The file part is named after the format."""
        assert items_filename("jsonl") == "items.jsonl"
        assert items_filename("csv") == "items.csv"


class TestPayloadFromDict:
    """Tests for payload_from_dict."""

    def test_unknown_discriminator(self):
        """An unknown contentType is rejected."""
        with pytest.raises(ValueError):
            payload_from_dict({"contentType": "recipe"})

    def test_tech_tip_default_locale(self):
        """A tech tip without locale defaults to en-US."""
        payload = payload_from_dict({"contentType": "techTip"})
        assert isinstance(payload, TechTipData)
        assert payload.locale == "en-US"
