"""Display identities for the guardian-facing children view."""

from typing import Tuple

from pydantic import BaseModel, ConfigDict


class ChildIdentity(BaseModel):
    """One real child, possibly stored as several roster entries.

    ``display_id`` is the id of the first entry seen for the name and is what
    the UI passes back when filtering.
    """

    model_config = ConfigDict(frozen=True)

    display_id: str
    first_name: str
    last_name: str
    entry_ids: Tuple[str, ...]
    class_ids: Tuple[str, ...] = ()
