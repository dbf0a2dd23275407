"""Tests for guardian and admin reconciliation."""

from rosterlink.models import DocumentModel
from rosterlink.models.collections import COLLECTION_INVITES
from rosterlink.utils.reconciliation import ReconciliationEngine

from tests.factories import guardian, identity


def snapshot(db):
    db.expire_all()
    return {
        (m.collection, m.doc_id): (m.data, m.update_at)
        for m in db.query(DocumentModel).all()
    }


def _enroll(roster, class_roster, teacher, first_name="Amy", email="p@x.com"):
    return roster.create_entry(
        class_roster.id, teacher.id, first_name, "Lee", [guardian(email)]
    )


class TestGuardianReconciliation:
    """Linking guardian accounts to the entries they were invited to."""

    def test_links_every_invited_entry(
        self, roster, reconciler, accounts, ledger, make_account, teacher, class_a, class_b
    ):
        e1 = _enroll(roster, class_a, teacher)
        e2 = _enroll(roster, class_b, teacher)
        account = make_account("guardian-1", "P@X.com")

        newly_linked = reconciler.reconcile_guardian(account.id, account.email, [])

        assert set(newly_linked) == {e1.id, e2.id}
        assert set(accounts.get_account(account.id).linked_entry_ids) == {e1.id, e2.id}
        for invite in ledger.invites_for_email("p@x.com"):
            assert invite.status == "accepted"
            assert invite.account_id == account.id
        for entry_id in (e1.id, e2.id):
            ref = roster.get_entry(entry_id).find_guardian("p@x.com")
            assert ref.status == "accepted"
            assert ref.account_id == account.id

    def test_second_run_is_a_noop(
        self, db, roster, reconciler, accounts, make_account, teacher, class_a, class_b
    ):
        _enroll(roster, class_a, teacher)
        _enroll(roster, class_b, teacher)
        account = make_account("guardian-1", "p@x.com")
        reconciler.reconcile_guardian(account.id, account.email, [])
        account = accounts.get_account(account.id)
        before = snapshot(db)

        newly_linked = reconciler.reconcile_guardian(
            account.id, account.email, account.linked_entry_ids
        )

        assert newly_linked == []
        assert snapshot(db) == before

    def test_repairs_accepted_invite_with_pending_ref(
        self, store, roster, reconciler, accounts, ledger, make_account, teacher, class_a
    ):
        entry = _enroll(roster, class_a, teacher)
        account = make_account("guardian-1", "p@x.com")
        invite = ledger.invites_for_email("p@x.com")[0]
        ledger.accept_invite(invite.id, account.id)
        invite_doc = store.get(COLLECTION_INVITES, invite.id)

        newly_linked = reconciler.reconcile_guardian(account.id, account.email, [])

        assert newly_linked == [entry.id]
        assert store.get(COLLECTION_INVITES, invite.id) == invite_doc
        assert roster.get_entry(entry.id).guardians[0].status == "accepted"
        assert accounts.get_account(account.id).linked_entry_ids == [entry.id]

        # a stale second device repeats the work without double counting
        reconciler.reconcile_guardian(account.id, account.email, [])
        assert accounts.get_account(account.id).linked_entry_ids == [entry.id]

    def test_interleaved_runs_converge(
        self, session_factory, roster, accounts, make_account, teacher, class_a, class_b
    ):
        e1 = _enroll(roster, class_a, teacher)
        e2 = _enroll(roster, class_b, teacher)
        e3 = _enroll(roster, class_b, teacher, first_name="Ben")
        account = make_account("guardian-1", "p@x.com")
        phone, tablet = session_factory(), session_factory()
        try:
            first = ReconciliationEngine(phone, require_verified_email=True)
            second = ReconciliationEngine(tablet, require_verified_email=True)
            first.reconcile_guardian(account.id, account.email, [])
            second.reconcile_guardian(account.id, account.email, [])
            first.reconcile_guardian(account.id, account.email, [e1.id])
        finally:
            phone.close()
            tablet.close()

        linked = accounts.get_account(account.id).linked_entry_ids
        assert len(linked) == 3
        assert set(linked) == {e1.id, e2.id, e3.id}

    def test_deleted_entry_does_not_block_others(
        self, roster, reconciler, make_account, teacher, class_a, class_b
    ):
        gone = _enroll(roster, class_a, teacher)
        kept = _enroll(roster, class_b, teacher)
        roster.delete_entry(gone.id, class_a.id)
        account = make_account("guardian-1", "p@x.com")

        assert reconciler.reconcile_guardian(account.id, account.email, []) == [kept.id]

    def test_removed_guardian_is_not_relinked(
        self, roster, reconciler, accounts, make_account, teacher, class_a
    ):
        entry = _enroll(roster, class_a, teacher)
        roster.remove_guardian(entry.id, "p@x.com")
        account = make_account("guardian-1", "p@x.com")

        assert reconciler.reconcile_guardian(account.id, account.email, []) == []
        assert accounts.get_account(account.id).linked_entry_ids == []
        assert roster.get_entry(entry.id).guardians == []


class TestAdminReconciliation:
    def test_pending_admin_linked_on_signup(
        self, classes, reconciler, accounts, ledger, make_account, class_a
    ):
        classes.add_admin(class_a.id, "co@school.org")
        co = make_account("teacher-2", "co@school.org", "teacher")

        newly_linked = reconciler.reconcile_admin(co.id, co.email, [])

        assert newly_linked == [class_a.id]
        assert accounts.get_account(co.id).admin_class_ids == [class_a.id]
        admin = classes.get_class(class_a.id).find_admin("co@school.org")
        assert admin.status == "accepted"
        assert admin.account_id == co.id
        assert admin.accepted_at
        assert ledger.admin_invites_for_email("co@school.org")[0].status == "accepted"


class TestStartSession:
    def test_guardian_session_links_and_refetches(
        self, roster, reconciler, make_account, teacher, class_a
    ):
        entry = _enroll(roster, class_a, teacher)
        make_account("guardian-1", "p@x.com")

        account, newly_linked = reconciler.start_session(identity("guardian-1", "p@x.com"))

        assert newly_linked == [entry.id]
        assert account.linked_entry_ids == [entry.id]

    def test_unverified_email_is_not_reconciled(
        self, roster, reconciler, make_account, teacher, class_a
    ):
        _enroll(roster, class_a, teacher)
        make_account("guardian-1", "p@x.com")

        account, newly_linked = reconciler.start_session(
            identity("guardian-1", "p@x.com", verified=False)
        )

        assert newly_linked == []
        assert account.linked_entry_ids == []

    def test_unverified_allowed_when_not_required(
        self, db, roster, make_account, teacher, class_a
    ):
        entry = _enroll(roster, class_a, teacher)
        make_account("guardian-1", "p@x.com")
        engine = ReconciliationEngine(db, require_verified_email=False)

        _, newly_linked = engine.start_session(identity("guardian-1", "p@x.com", verified=False))

        assert newly_linked == [entry.id]
