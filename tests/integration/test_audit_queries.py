"""Audit trail reads: filters, visibility and the append-only ledger."""

from datetime import datetime, timedelta

import pytest

from taskboard.core.exceptions import PermissionDenied
from taskboard.models import AuditAction, AuditLogImmutableError, EntityType
from taskboard.services.audit import (
    describe,
    get_audit_log,
    get_audit_logs,
    get_audit_logs_for_entity,
    get_audit_logs_for_user,
    get_audit_stats,
    get_recent_audit_logs,
)
from taskboard.services.tasks import update_task
from taskboard.services.users import login_user, lock_user


class TestFilters:
    def test_newest_first(self, store, admin, task, alice):
        update_task(store, alice, task.id, {"notes": "first"})
        update_task(store, alice, task.id, {"notes": "second"})

        logs, total = get_audit_logs(store, admin, action="update")
        assert total == 2
        assert [log.new_values["notes"] for log in logs] == ["second", "first"]

    def test_entity_history(self, store, admin, task, alice):
        update_task(store, alice, task.id, {"notes": "x"})
        history = get_audit_logs_for_entity(store, admin, EntityType.TASK, task.id)
        assert [h.action for h in history] == [AuditAction.UPDATE, AuditAction.CREATE]

    def test_pagination(self, store, admin, task, alice):
        for i in range(5):
            update_task(store, alice, task.id, {"notes": str(i)})
        logs, total = get_audit_logs(store, admin, entity_id=task.id, limit=2, offset=2)
        assert total == 6
        assert len(logs) == 2

    def test_date_range(self, store, admin, task):
        now = datetime.utcnow()
        logs, _ = get_audit_logs(store, admin, start_date=now + timedelta(hours=1))
        assert logs == []
        logs, _ = get_audit_logs(store, admin, start_date=now - timedelta(hours=1), end_date=now + timedelta(hours=1))
        assert len(logs) == 2

    def test_recent(self, store, admin, task):
        assert len(get_recent_audit_logs(store, admin, limit=1)) == 1


class TestVisibility:
    def test_member_sees_board_and_own_user_entries(self, store, admin, alice, bob, task):
        login_user(store, "alice", "secret123")
        login_user(store, "bob", "secret123")
        lock_user(store, admin, bob.user_id)

        logs, _ = get_audit_logs(store, alice)
        visible = {(log.entity_type, log.username) for log in logs}
        assert (EntityType.TASK, "admin") in visible
        assert (EntityType.GROUP, "admin") in visible
        assert (EntityType.USER, "alice") in visible
        assert (EntityType.USER, "bob") not in visible
        assert all(log.action is not AuditAction.LOCK for log in logs)

    def test_member_sees_entries_about_self(self, store, admin, bob, alice):
        lock_user(store, admin, bob.user_id)
        logs, _ = get_audit_logs(store, admin, action="lock")
        entry = logs[0]
        with pytest.raises(PermissionDenied):
            get_audit_log(store, alice, entry.id)
        assert get_audit_log(store, bob, entry.id).id == entry.id

    def test_member_history_of_others_denied(self, store, alice, bob):
        with pytest.raises(PermissionDenied):
            get_audit_logs_for_user(store, alice, bob.user_id)

    def test_stats_for_admin_and_mod_only(self, store, admin, mod, alice, task):
        stats = get_audit_stats(store, mod)
        assert stats["total_events"] == 2
        assert stats["events_today"] == 2
        assert stats["by_action"]["create"] == 2
        assert stats["by_action"]["delete"] == 0
        with pytest.raises(PermissionDenied):
            get_audit_stats(store, alice)


class TestDescribe:
    def test_changes_and_message(self, store, admin, alice, task):
        update_task(store, alice, task.id, {"notes": "ready"})
        logs, _ = get_audit_logs(store, admin, action="update")
        detail = describe(logs[0])

        changes = {c["field"]: (c["old_value"], c["new_value"]) for c in detail["changes"]}
        assert changes["notes"] == ("", "ready")
        assert "id" not in changes
        assert detail["message"] == 'alice updated task "Build login page"'


class TestAppendOnly:
    def test_entries_cannot_be_modified(self, store, db, task):
        entry = store.list("audit_log")[0]
        entry.entity_name = "tampered"
        with pytest.raises(AuditLogImmutableError):
            db.commit()
        db.rollback()

    def test_entries_cannot_be_deleted(self, store, db, task):
        entry = store.list("audit_log")[0]
        db.delete(entry)
        with pytest.raises(AuditLogImmutableError):
            db.commit()
        db.rollback()

    def test_store_refuses_to_delete_entries(self, store, task):
        entry = store.list("audit_log")[0]
        with pytest.raises(AuditLogImmutableError):
            store.delete("audit_log", entry.id)
        assert store.get("audit_log", entry.id) is not None
