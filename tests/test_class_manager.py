"""Tests for classes, co-administrators and class deletion."""

import pytest

from rosterlink.core.exceptions import (
    AdminNotFoundError,
    ClassNotFoundError,
    DuplicateAdminError,
    InvalidRoleError,
    PermissionDeniedError,
    SelfAdminError,
)
from rosterlink.models.collections import COLLECTION_HOMEWORK, COLLECTION_ROSTER_ENTRIES
from rosterlink.utils.homework_manager import HomeworkManager

from tests.factories import guardian, homework


class TestClasses:
    def test_create_records_owned_class(self, classes, accounts, teacher):
        created = classes.create_class("Year 2", teacher.id, "Mornings")
        assert created.entry_count == 0
        assert accounts.get_account(teacher.id).class_ids == [created.id]

    def test_update_class(self, classes, class_a):
        updated = classes.update_class(class_a.id, name="Renamed")
        assert updated.name == "Renamed"
        assert classes.get_class(class_a.id).name == "Renamed"

    def test_update_missing_class(self, classes):
        with pytest.raises(ClassNotFoundError):
            classes.update_class("nope", name="x")


class TestAddAdmin:
    """Immediate link for existing teachers, deferred invite otherwise."""

    def test_existing_teacher_is_linked_immediately(
        self, classes, accounts, ledger, make_account, class_a
    ):
        co = make_account("teacher-2", "co@school.org", "teacher")

        admin = classes.add_admin(class_a.id, "CO@school.org")

        assert admin.status == "accepted"
        assert admin.account_id == co.id
        assert accounts.get_account(co.id).admin_class_ids == [class_a.id]
        assert ledger.admin_invites_for_email("co@school.org") == []
        assert classes.can_manage(classes.get_class(class_a.id), accounts.get_account(co.id))

    def test_unknown_email_gets_pending_ref_and_invite(self, classes, ledger, class_a):
        admin = classes.add_admin(class_a.id, "new@school.org")

        assert admin.status == "pending"
        assert admin.account_id is None
        assert classes.get_class(class_a.id).find_admin("new@school.org") is not None
        invites = ledger.admin_invites_for_email("new@school.org")
        assert [i.class_id for i in invites] == [class_a.id]

    def test_owner_cannot_add_self(self, classes, class_a):
        with pytest.raises(SelfAdminError):
            classes.add_admin(class_a.id, "Teacher@School.org")

    def test_duplicate_admin(self, classes, class_a):
        classes.add_admin(class_a.id, "new@school.org")
        with pytest.raises(DuplicateAdminError):
            classes.add_admin(class_a.id, "NEW@school.org")

    def test_guardian_account_rejected(self, classes, make_account, class_a):
        make_account("guardian-1", "p@x.com")
        with pytest.raises(InvalidRoleError):
            classes.add_admin(class_a.id, "p@x.com")
        assert classes.get_class(class_a.id).admins == []


class TestRemoveAdmin:
    def test_remove_unlinks_account(self, classes, accounts, make_account, class_a):
        co = make_account("teacher-2", "co@school.org", "teacher")
        classes.add_admin(class_a.id, "co@school.org")

        removed = classes.remove_admin(class_a.id, "co@school.org")

        assert removed.account_id == co.id
        assert classes.get_class(class_a.id).admins == []
        assert accounts.get_account(co.id).admin_class_ids == []

    def test_remove_unknown_admin(self, classes, class_a):
        with pytest.raises(AdminNotFoundError):
            classes.remove_admin(class_a.id, "ghost@school.org")


class TestAccess:
    def test_owner_and_admin_listing(self, classes, accounts, make_account, teacher, class_a):
        co = make_account("teacher-2", "co@school.org", "teacher")
        own = classes.create_class("Own class", co.id)
        classes.add_admin(class_a.id, "co@school.org")

        listed = classes.list_classes_for_account(accounts.get_account(co.id))

        assert [c.id for c in listed] == [own.id, class_a.id]

    def test_require_manage_denies_strangers(self, classes, make_account, class_a):
        stranger = make_account("teacher-3", "other@school.org", "teacher")
        with pytest.raises(PermissionDeniedError):
            classes.require_manage(class_a.id, stranger)

    def test_pending_admin_cannot_manage(self, classes, make_account, class_a):
        classes.add_admin(class_a.id, "late@school.org")
        late = make_account("teacher-4", "late@school.org", "teacher")
        assert not classes.can_manage(classes.get_class(class_a.id), late)


class TestDeleteClass:
    def test_owner_deletes_everything(
        self,
        db,
        classes,
        roster,
        accounts,
        store,
        reconciler,
        make_account,
        teacher,
        class_a,
        class_b,
    ):
        amy = roster.create_entry(class_a.id, teacher.id, "Amy", "Lee", [guardian("p@x.com")])
        ben = roster.create_entry(class_b.id, teacher.id, "Ben", "Lee", [guardian("p@x.com")])
        parent = make_account("guardian-1", "p@x.com")
        reconciler.reconcile_guardian(parent.id, parent.email, [])
        co = make_account("teacher-2", "co@school.org", "teacher")
        classes.add_admin(class_a.id, "co@school.org")
        HomeworkManager(db).create_homework(amy.id, teacher.id, homework())

        classes.delete_class(class_a.id, teacher.id)

        with pytest.raises(ClassNotFoundError):
            classes.get_class(class_a.id)
        assert store.where(COLLECTION_ROSTER_ENTRIES, "class_id", class_a.id) == []
        assert store.where(COLLECTION_HOMEWORK, "entry_id", amy.id) == []
        assert accounts.get_account(parent.id).linked_entry_ids == [ben.id]
        assert accounts.get_account(co.id).admin_class_ids == []
        assert accounts.get_account(teacher.id).class_ids == [class_b.id]

    def test_admin_cannot_delete(self, classes, make_account, class_a):
        co = make_account("teacher-2", "co@school.org", "teacher")
        classes.add_admin(class_a.id, "co@school.org")
        with pytest.raises(PermissionDeniedError):
            classes.delete_class(class_a.id, co.id)
