"""Tests for tag parsing and favorite/tag filtering."""

from secure_wallet.vault.models import Record
from secure_wallet.vault.tags import (
    all_tags,
    filter_by_tag,
    filter_favorites,
    format_tags,
    parse_tags,
)


def _records():
    return [
        Record("passwords", tags={"work", "email"}, is_favorite=True, id="a"),
        Record("notes", tags={"home"}, id="b"),
        Record("notes", id="c"),
    ]


class TestTags:

    def test_parse_tags(self):
        assert parse_tags(" work, email ,, work ") == {"work", "email"}
        assert parse_tags("") == set()

    def test_format_tags(self):
        assert format_tags({"b", "a"}) == "a, b"

    def test_all_tags(self):
        assert all_tags(_records()) == ["email", "home", "work"]

    def test_filter_by_tag(self):
        assert [r.id for r in filter_by_tag(_records(), "home")] == ["b"]

    def test_filter_favorites(self):
        assert [r.id for r in filter_favorites(_records())] == ["a"]

    def test_legacy_string_tags(self):
        record = Record("notes", id="d")
        record.tags = "travel, docs"
        assert all_tags([record]) == ["docs", "travel"]


class TestRecordModel:

    def test_dict_roundtrip(self):
        record = Record("notes", {"title": "t"}, tags={"x"}, is_favorite=True, id="n1")
        data = record.to_dict()
        assert data["isFavorite"] is True
        assert data["tags"] == ["x"]
        assert Record.from_dict(data) == record

    def test_with_fields_copies(self):
        record = Record("notes", {"title": "t"}, tags={"x"})
        copy = record.with_fields({"title": "u"})
        copy.tags.add("y")
        assert record.fields == {"title": "t"}
        assert record.tags == {"x"}
