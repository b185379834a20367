"""Tests for the in-memory dry-run platform."""

from __future__ import annotations

import re

import pytest

from constellation.platform import MAX_PAGE_LIMIT, DryRunPlatform


class TestCreate:
    def test_assigns_id_and_timestamps(self, platform: DryRunPlatform) -> None:
        record = platform.create("forms", {"title": "Intake"})
        assert re.fullmatch(r"[0-9a-f]{24}", record["id"])
        assert record["createdAt"] == record["updatedAt"]
        assert record["title"] == "Intake"

    def test_ids_are_unique(self, platform: DryRunPlatform) -> None:
        ids = {platform.create("forms", {"title": str(i)})["id"] for i in range(50)}
        assert len(ids) == 50
        assert platform.count("forms") == 50

    def test_returned_record_is_a_copy(self, platform: DryRunPlatform) -> None:
        record = platform.create("forms", {"title": "Intake", "tags": ["a"]})
        record["tags"].append("b")
        assert platform.get("forms", record["id"])["tags"] == ["a"]


class TestUpdate:
    def test_merge_by_default(self, platform: DryRunPlatform) -> None:
        record = platform.create("forms", {"title": "Intake", "tags": ["a"]})
        updated = platform.update("forms", record["id"], {"tags": ["b"]})
        assert updated["tags"] == ["a", "b"]
        assert updated["title"] == "Intake"
        assert updated["createdAt"] == record["createdAt"]

    def test_replace(self, platform: DryRunPlatform) -> None:
        record = platform.create("forms", {"title": "Intake", "tags": ["a"]})
        assert platform.update("forms", record["id"], {"tags": ["b"]}, replace=True)["tags"] == ["b"]

    def test_id_cannot_be_overwritten(self, platform: DryRunPlatform) -> None:
        record = platform.create("forms", {"title": "Intake"})
        updated = platform.update("forms", record["id"], {"id": "other"})
        assert updated["id"] == record["id"]

    def test_unknown_id(self, platform: DryRunPlatform) -> None:
        with pytest.raises(KeyError, match="forms not found"):
            platform.update("forms", "nope", {"title": "x"})


class TestRead:
    def test_get_unknown(self, platform: DryRunPlatform) -> None:
        with pytest.raises(KeyError):
            platform.get("journeys", "nope")

    def test_list_in_creation_order(self, platform: DryRunPlatform) -> None:
        ids = [platform.create("forms", {"title": str(i)})["id"] for i in range(5)]
        assert [r["id"] for r in platform.list("forms")] == ids

    def test_list_filter(self, platform: DryRunPlatform) -> None:
        platform.create("form_fields", {"formId": "a", "title": "1"})
        platform.create("form_fields", {"formId": "b", "title": "2"})
        records = platform.list("form_fields", {"formId": "b"})
        assert [r["title"] for r in records] == ["2"]

    def test_cursor_pages(self, platform: DryRunPlatform) -> None:
        ids = [platform.create("forms", {"title": str(i)})["id"] for i in range(5)]
        first = platform.list("forms", limit=2)
        second = platform.list("forms", limit=2, last_id=first[-1]["id"])
        third = platform.list("forms", limit=2, last_id=second[-1]["id"])
        assert [r["id"] for r in first + second + third] == ids
        assert len(third) == 1

    def test_unknown_cursor(self, platform: DryRunPlatform) -> None:
        platform.create("forms", {"title": "x"})
        with pytest.raises(KeyError):
            platform.list("forms", last_id="nope")

    def test_limit_clamped(self, platform: DryRunPlatform) -> None:
        for i in range(3):
            platform.create("forms", {"title": str(i)})
        assert len(platform.list("forms", limit=0)) == 1
        assert len(platform.list("forms", limit=MAX_PAGE_LIMIT * 10)) == 3

    def test_empty_resource(self, platform: DryRunPlatform) -> None:
        assert platform.list("databases") == []
        assert platform.count("databases") == 0
