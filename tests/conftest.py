"""Shared fixtures: an in-memory document store and the managers built on it."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rosterlink.models import Base
from rosterlink.schemas.account import Identity
from rosterlink.utils.account_manager import AccountManager
from rosterlink.utils.class_manager import ClassManager
from rosterlink.utils.document_store import DocumentStore
from rosterlink.utils.invite_ledger import InviteLedger
from rosterlink.utils.reconciliation import ReconciliationEngine
from rosterlink.utils.roster_manager import RosterManager


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return DocumentStore(db)


@pytest.fixture
def accounts(db):
    return AccountManager(db)


@pytest.fixture
def ledger(db):
    return InviteLedger(db)


@pytest.fixture
def classes(db):
    return ClassManager(db)


@pytest.fixture
def roster(db):
    return RosterManager(db)


@pytest.fixture
def reconciler(db):
    return ReconciliationEngine(db, require_verified_email=True)


@pytest.fixture
def make_account(accounts):
    """Factory creating an account as if the identity had just signed up."""

    def _make(account_id, email, role="guardian", first_name="Pat", last_name="Doe"):
        identity = Identity(account_id=account_id, email=email, email_verified=True)
        return accounts.create_account(identity, role, first_name, last_name)

    return _make


@pytest.fixture
def teacher(make_account):
    return make_account("teacher-1", "teacher@school.org", "teacher", "Tina", "Teach")


@pytest.fixture
def class_a(classes, teacher):
    return classes.create_class("Class A", teacher.id)


@pytest.fixture
def class_b(classes, teacher):
    return classes.create_class("Class B", teacher.id)

