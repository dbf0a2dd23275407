"""Tests for the guardian-facing identity grouping."""

from rosterlink.schemas.roster import RosterEntry
from rosterlink.utils.dedup_view import (
    find_identity,
    group_by_identity,
    resolve_storage_ids,
    storage_ids_for_child,
)


def _entry(entry_id, first_name, last_name, class_id):
    return RosterEntry(
        id=entry_id,
        class_id=class_id,
        owner_id="teacher-1",
        first_name=first_name,
        last_name=last_name,
    )


ENTRIES = [
    _entry("e-a", "Amy", "Lee", "class-a"),
    _entry("e-b", "amy", "lee", "class-b"),
    _entry("e-c", "Amy", "Leo", "class-c"),
]


class TestGrouping:
    def test_case_insensitive_names_group(self):
        identities = group_by_identity(ENTRIES)

        assert len(identities) == 2
        amy_lee, amy_leo = identities
        assert amy_lee.display_id == "e-a"
        assert (amy_lee.first_name, amy_lee.last_name) == ("Amy", "Lee")
        assert amy_lee.class_ids == ("class-a", "class-b")
        assert amy_leo.entry_ids == ("e-c",)

    def test_resolve_storage_ids(self):
        amy_lee = group_by_identity(ENTRIES)[0]
        assert sorted(resolve_storage_ids(amy_lee)) == ["e-a", "e-b"]

    def test_deterministic(self):
        assert group_by_identity(ENTRIES) == group_by_identity(list(ENTRIES))

    def test_empty(self):
        assert group_by_identity([]) == []


class TestLookup:
    def test_find_by_any_member_id(self):
        identities = group_by_identity(ENTRIES)
        assert find_identity(identities, "e-b").display_id == "e-a"
        assert find_identity(identities, "unknown") is None

    def test_storage_ids_for_child(self):
        assert sorted(storage_ids_for_child(ENTRIES, "e-b")) == ["e-a", "e-b"]
        assert storage_ids_for_child(ENTRIES, "unknown") == ["unknown"]
