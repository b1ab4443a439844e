"""Tests for the per-field permission evaluator."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from taskboard.core.exceptions import PermissionDenied
from taskboard.models import LockableField, TaskStatus, UserRole, UserStatus
from taskboard.services.identity import Actor
from taskboard.services.permissions import (
    DONE_REVIEWER_ONLY,
    FIELD_LOCKED,
    NOT_ACTIVE,
    READ_ONLY,
    REVIEWER_ONLY,
    can_write,
    ensure_can_write,
    evaluate_changes,
    evaluate_new_task,
    touched_fields,
)

EDITABLE_LOCKABLE = [f.value for f in LockableField if f.value not in ("review",)]


def _actor(username="bob", role=UserRole.MEMBER, status=UserStatus.ACTIVE):
    return Actor(user_id=uuid4(), username=username, role=role, status=status)


def _task(**overrides):
    values = {
        "id": uuid4(),
        "task": "Write docs",
        "owner": "admin",
        "assign": "bob",
        "user_story": "",
        "acceptance_criteria": "",
        "status": TaskStatus.NOT_STARTED,
        "estimate_date": None,
        "notes": "",
        "reviewer": "alice",
        "review": "",
        "group_id": uuid4(),
        "sort_order": 0,
        "locked_fields": {},
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestLocks:
    """Locked fields stop members but not admins or mods."""

    @pytest.mark.parametrize("field", EDITABLE_LOCKABLE)
    def test_member_denied_on_locked_field(self, field):
        task = _task(locked_fields={field: True})
        decision = can_write(_actor(), task, field, "x")
        assert not decision.allowed
        assert decision.reason == FIELD_LOCKED

    @pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.MOD])
    @pytest.mark.parametrize("field", EDITABLE_LOCKABLE)
    def test_admin_and_mod_bypass_lock(self, role, field):
        task = _task(locked_fields={field: True})
        assert can_write(_actor("carol", role), task, field, "x").allowed

    def test_false_flag_is_unlocked(self):
        task = _task(locked_fields={"notes": False})
        assert can_write(_actor(), task, "notes", "x").allowed

    def test_truthy_non_bool_is_not_a_lock(self):
        task = _task(locked_fields={"notes": "yes"})
        assert can_write(_actor(), task, "notes", "x").allowed

    def test_missing_map(self):
        task = _task(locked_fields=None)
        assert can_write(_actor(), task, "notes", "x").allowed


class TestReviewerRules:
    @pytest.mark.parametrize("role", list(UserRole))
    def test_review_denied_to_non_reviewer_any_role(self, role):
        decision = can_write(_actor("carol", role), _task(), "review", "LGTM")
        assert not decision.allowed
        assert decision.reason == REVIEWER_ONLY

    def test_reviewer_may_write_review_even_when_locked(self):
        task = _task(locked_fields={"review": True})
        assert can_write(_actor("ALICE"), task, "review", "LGTM").allowed

    def test_blank_reviewer_blocks_everyone(self):
        task = _task(reviewer="")
        assert not can_write(_actor("alice"), task, "review", "x").allowed

    @pytest.mark.parametrize("role", list(UserRole))
    def test_done_requires_reviewer(self, role):
        decision = can_write(_actor("carol", role), _task(), "status", TaskStatus.DONE)
        assert not decision.allowed
        assert decision.reason == DONE_REVIEWER_ONLY

    def test_reviewer_may_mark_done(self):
        assert can_write(_actor("Alice"), _task(), "status", TaskStatus.DONE).allowed

    def test_done_as_plain_string(self):
        assert not can_write(_actor(), _task(), "status", "Done").allowed

    @pytest.mark.parametrize("status", [s for s in TaskStatus if s is not TaskStatus.DONE])
    def test_other_statuses_unrestricted(self, status):
        assert can_write(_actor(), _task(), "status", status).allowed

    def test_reviewer_still_subject_to_lock_for_done(self):
        task = _task(locked_fields={"status": True})
        decision = can_write(_actor("alice"), task, "status", TaskStatus.DONE)
        assert not decision.allowed
        assert decision.reason == FIELD_LOCKED


class TestOtherRules:
    @pytest.mark.parametrize("status", [UserStatus.PENDING, UserStatus.LOCKED])
    def test_inactive_denied_everything(self, status):
        actor = _actor("alice", UserRole.ADMIN, status)
        for field in ("notes", "review", "status"):
            decision = can_write(actor, _task(), field, "x")
            assert not decision.allowed
            assert decision.reason == NOT_ACTIVE

    @pytest.mark.parametrize("field", ["create_date", "locked_fields", "created_by", "id"])
    def test_system_fields_read_only(self, field):
        decision = can_write(_actor("root", UserRole.ADMIN), _task(), field, "x")
        assert not decision.allowed
        assert decision.reason == READ_ONLY

    @pytest.mark.parametrize("field", ["group_id", "sort_order"])
    def test_structural_fields_need_admin_or_mod(self, field):
        assert not can_write(_actor(), _task(), field, 3).allowed
        assert can_write(_actor("m", UserRole.MOD), _task(), field, 3).allowed


class TestEvaluateChanges:
    def test_unchanged_locked_value_is_not_a_write(self):
        task = _task(locked_fields={"assign": True})
        changes = {"assign": "bob", "notes": "new"}
        assert touched_fields(task, changes) == ["notes"]
        assert evaluate_changes(_actor(), task, changes) == []

    def test_every_denied_field_listed(self):
        task = _task(locked_fields={"assign": True, "notes": True})
        changes = {"assign": "carol", "notes": "x", "task": "ok", "review": "nice"}
        denied = {d.field for d in evaluate_changes(_actor(), task, changes)}
        assert denied == {"assign", "notes", "review"}

    def test_owner_read_only_after_creation(self):
        denials = evaluate_changes(_actor("root", UserRole.ADMIN), _task(), {"owner": "root"})
        assert [(d.field, d.reason) for d in denials] == [("owner", READ_ONLY)]

    def test_reviewer_from_pre_image(self):
        """Naming yourself reviewer in the same update does not unlock Done."""
        changes = {"reviewer": "bob", "status": TaskStatus.DONE}
        denied = {d.field for d in evaluate_changes(_actor("bob"), _task(), changes)}
        assert denied == {"status"}

    def test_ensure_can_write_raises_with_fields(self):
        task = _task(locked_fields={"assign": True})
        with pytest.raises(PermissionDenied) as exc_info:
            ensure_can_write(_actor(), task, {"assign": "carol"})
        assert exc_info.value.fields == ["assign"]
        assert exc_info.value.reasons == {"assign": FIELD_LOCKED}


class TestEvaluateNewTask:
    def test_review_needs_submitted_reviewer(self):
        denials = evaluate_new_task(_actor("bob"), {"reviewer": "alice", "review": "ok"})
        assert [d.field for d in denials] == ["review"]

    def test_creator_named_reviewer_may_mark_done(self):
        fields = {"reviewer": "bob", "status": TaskStatus.DONE, "review": "ok"}
        assert evaluate_new_task(_actor("Bob"), fields) == []

    def test_inactive_creator(self):
        actor = _actor(status=UserStatus.PENDING)
        assert evaluate_new_task(actor, {})[0].reason == NOT_ACTIVE
