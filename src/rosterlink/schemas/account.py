"""Account schema definitions.

Accounts mirror the identity provider's users. The id sets on an account are
only ever grown with array-union and shrunk with array-remove writes.
"""

from datetime import datetime
from typing import List, Literal, Optional

import pytz
from pydantic import BaseModel, Field, field_validator

AccountRole = Literal["teacher", "guardian"]


class Identity(BaseModel):
    """The authenticated caller as reported by the identity provider."""

    account_id: str
    email: str
    email_verified: bool = False

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.strip().lower()


class Account(BaseModel):
    id: str = Field(description="Identity provider account id.")
    email: str
    role: AccountRole
    first_name: str = ""
    last_name: str = ""
    class_ids: List[str] = Field(
        default_factory=list,
        description="Classes this teacher owns.",
    )
    linked_entry_ids: List[str] = Field(
        default_factory=list,
        description="Roster entries this guardian is linked to.",
    )
    admin_class_ids: List[str] = Field(
        default_factory=list,
        description="Classes this teacher co-administers.",
    )
    notifications_enabled: bool = True
    created_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())


class CreateAccountRequest(BaseModel):
    role: AccountRole
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)


class UpdateAccountRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    notifications_enabled: Optional[bool] = None


class SessionStartResponse(BaseModel):
    """Result of a session start: the fresh account and what got linked."""

    account: Account
    newly_linked_ids: List[str] = Field(default_factory=list)
