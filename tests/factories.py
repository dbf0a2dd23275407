"""Small builders shared by the test modules."""

from rosterlink.schemas.account import Identity
from rosterlink.schemas.records import CreateAttendanceRequest, CreateHomeworkRequest
from rosterlink.schemas.roster import GuardianInfo


def guardian(email, first_name="Pat", last_name="Doe"):
    return GuardianInfo(first_name=first_name, last_name=last_name, email=email)


def identity(account_id, email, verified=True):
    return Identity(account_id=account_id, email=email, email_verified=verified)


def homework(title="Reading log", **kwargs):
    return CreateHomeworkRequest(title=title, **kwargs)


def attendance(date="2024-09-02", status="present", **kwargs):
    return CreateAttendanceRequest(date=date, status=status, **kwargs)
