"""Identity deduplication view.

The same child enrolled in several classes is stored as several roster
entries. For guardian-facing screens those entries are grouped by
case-insensitive (first name, last name) into one display identity. Nothing
here is persisted and nothing here feeds a write path.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from rosterlink.schemas.children import ChildIdentity
from rosterlink.schemas.roster import RosterEntry


def identity_key(first_name: str, last_name: str) -> Tuple[str, str]:
    return (first_name.strip().lower(), last_name.strip().lower())


def group_by_identity(entries: Iterable[RosterEntry]) -> List[ChildIdentity]:
    """Group entries into display identities, in first-seen order.

    The first entry of each group provides the display id and the name as
    shown.
    """
    groups: Dict[Tuple[str, str], List[RosterEntry]] = {}
    for entry in entries:
        groups.setdefault(identity_key(entry.first_name, entry.last_name), []).append(entry)

    identities = []
    for members in groups.values():
        first = members[0]
        class_ids: List[str] = []
        for member in members:
            if member.class_id not in class_ids:
                class_ids.append(member.class_id)
        identities.append(
            ChildIdentity(
                display_id=first.id,
                first_name=first.first_name,
                last_name=first.last_name,
                entry_ids=tuple(m.id for m in members),
                class_ids=tuple(class_ids),
            )
        )
    return identities


def resolve_storage_ids(identity: ChildIdentity) -> List[str]:
    """Every roster entry id behind a display identity."""
    return list(identity.entry_ids)


def find_identity(identities: Iterable[ChildIdentity], child_id: str) -> Optional[ChildIdentity]:
    """Identity whose display id, or any underlying entry id, is child_id."""
    for identity in identities:
        if identity.display_id == child_id or child_id in identity.entry_ids:
            return identity
    return None


def storage_ids_for_child(entries: Iterable[RosterEntry], child_id: str) -> List[str]:
    """Entry ids sharing the name of child_id; just [child_id] if it is unknown."""
    identity = find_identity(group_by_identity(entries), child_id)
    if identity is None:
        return [child_id]
    return resolve_storage_ids(identity)
