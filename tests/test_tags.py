from __future__ import annotations

import pytest

from postforge.tags import TagIndex, slugify


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Photos", "photos"),
        ("summer", "summer"),
        ("HoagieFest", "hoagiefest"),
        ("Rock & Roll", "rock--roll"),
        ("Café Life", "caf-life"),
    ],
)
def test_slugify(raw: str, expected: str) -> None:
    assert slugify(raw) == expected


def test_slugify_is_idempotent() -> None:
    for raw in ("Wawa", "Hoagie Fest", "C++ Notes", "already-a-slug"):
        once = slugify(raw)
        assert slugify(once) == once


def test_raw_forms_collapse_to_one_tag() -> None:
    index = TagIndex()

    first = index.record("Wawa", "2025-01-01", "One", "one", "")
    second = index.record(" wawa ", "2025-01-02", "Two", "two", "")
    third = index.record("WA!WA", "2025-01-03", "Three", "three", "")

    assert first == second == third == "wawa"
    assert len(index) == 1
    (record,) = index.tags_in_order()
    assert record.display_name == "Wawa"
    assert [member.slug for member in record.members] == ["three", "two", "one"]


def test_empty_tags_are_discarded() -> None:
    index = TagIndex()

    assert index.record("   ", "2025-01-01", "T", "t", "") is None
    assert index.record("!!!", "2025-01-01", "T", "t", "") is None
    assert len(index) == 0


def test_members_sorted_by_date_with_stable_ties() -> None:
    index = TagIndex()
    index.record("news", "2025-09-27", "A", "a", "")
    index.record("news", "2025-09-28", "B", "b", "")
    index.record("news", "2025-09-27", "C", "c", "")
    index.record("news", "2025-09-28", "D", "d", "")

    (record,) = index.tags_in_order()

    assert [member.slug for member in record.members] == ["b", "d", "a", "c"]


def test_tags_in_order_sorted_by_slug() -> None:
    index = TagIndex()
    for raw in ("zeta", "Alpha", "mid"):
        index.record(raw, "2025-01-01", "T", "t", "<p>d</p>")

    assert [record.slug for record in index.tags_in_order()] == ["alpha", "mid", "zeta"]
    assert "alpha" in index


def test_same_post_is_recorded_once_per_tag() -> None:
    index = TagIndex()

    index.record("Wawa", "2025-01-01", "One", "one", "")
    index.record("wawa", "2025-01-01", "One", "one", "")

    (record,) = index.tags_in_order()
    assert [member.slug for member in record.members] == ["one"]
