"""Invite ledger schema definitions.

Invites join an email to a target before that email has an account. They are
append-only: status moves from pending to accepted once and they are never
deleted.
"""

from datetime import datetime
from typing import Optional

import pytz
from pydantic import BaseModel, Field

from rosterlink.schemas.roster import LinkStatus


class Invite(BaseModel):
    id: str
    email: str
    entry_id: str
    owner_id: str
    status: LinkStatus = "pending"
    accepted_at: Optional[str] = None
    account_id: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())


class AdminInvite(BaseModel):
    id: str
    email: str
    class_id: str
    owner_id: str
    status: LinkStatus = "pending"
    accepted_at: Optional[str] = None
    account_id: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())
