"""Homework and attendance record schemas.

Records are leaf data owned by exactly one roster entry.
"""

from datetime import datetime
from typing import Literal, Optional

import pytz
from pydantic import BaseModel, Field

HomeworkStatus = Literal["assigned", "completed", "incomplete", "late"]
AttendanceStatus = Literal["present", "absent", "late", "excused"]


class HomeworkRecord(BaseModel):
    id: str
    entry_id: str
    class_id: str
    teacher_id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[str] = None
    status: HomeworkStatus = "assigned"
    completed_at: Optional[str] = None
    notes: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())


class AttendanceRecord(BaseModel):
    id: str
    entry_id: str
    class_id: str
    teacher_id: str
    date: str = Field(description="ISO date of the school day.")
    status: AttendanceStatus
    notes: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())


class CreateHomeworkRequest(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    due_date: Optional[str] = None
    notes: Optional[str] = None


class UpdateHomeworkRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    status: Optional[HomeworkStatus] = None
    notes: Optional[str] = None


class CreateAttendanceRequest(BaseModel):
    date: str
    status: AttendanceStatus
    notes: Optional[str] = None


class UpdateAttendanceRequest(BaseModel):
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None
