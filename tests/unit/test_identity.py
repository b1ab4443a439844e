"""Tests for role and status predicates."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from taskboard.models import UserRole, UserStatus
from taskboard.services.identity import (
    Actor,
    can_delete_content,
    can_lock_cells,
    can_manage_groups,
    can_manage_users,
    can_toggle_user_lock,
    is_active,
    is_admin,
    is_admin_or_mod,
    is_mod,
    same_username,
)


def _actor(role=UserRole.MEMBER, status=UserStatus.ACTIVE, username="bob"):
    return Actor(user_id=uuid4(), username=username, role=role, status=status)


class TestRolePredicates:
    """Predicates look only at role and status."""

    def test_admin(self):
        actor = _actor(UserRole.ADMIN)
        assert is_admin(actor)
        assert not is_mod(actor)
        assert is_admin_or_mod(actor)

    def test_mod(self):
        actor = _actor(UserRole.MOD)
        assert is_mod(actor)
        assert not is_admin(actor)
        assert is_admin_or_mod(actor)

    def test_member(self):
        actor = _actor()
        assert not is_admin_or_mod(actor)

    def test_accepts_raw_strings(self):
        """Rows read from elsewhere may carry plain strings."""
        row = SimpleNamespace(role="admin", status="active")
        assert is_admin(row)
        assert is_active(row)

    def test_unknown_role_is_nothing(self):
        row = SimpleNamespace(role="owner", status="active")
        assert not is_admin_or_mod(row)

    def test_none_is_not_active(self):
        assert not is_active(None)


class TestCapabilities:
    """Capabilities need the role AND an active account."""

    @pytest.mark.parametrize("status", [UserStatus.PENDING, UserStatus.LOCKED])
    def test_inactive_admin_has_no_capability(self, status):
        actor = _actor(UserRole.ADMIN, status)
        assert not can_manage_users(actor)
        assert not can_lock_cells(actor)
        assert not can_delete_content(actor)
        assert not can_manage_groups(actor)
        assert not can_toggle_user_lock(actor)

    def test_admin_capabilities(self):
        actor = _actor(UserRole.ADMIN)
        assert can_manage_users(actor)
        assert can_lock_cells(actor)
        assert can_toggle_user_lock(actor)

    def test_mod_cannot_manage_users(self):
        actor = _actor(UserRole.MOD)
        assert not can_manage_users(actor)
        assert can_lock_cells(actor)
        assert can_delete_content(actor)
        assert can_manage_groups(actor)
        assert can_toggle_user_lock(actor)

    def test_member_capabilities(self):
        actor = _actor()
        assert not can_lock_cells(actor)
        assert not can_delete_content(actor)
        assert not can_manage_groups(actor)


class TestActor:
    def test_from_user_copies_fields(self):
        user = SimpleNamespace(id=uuid4(), username="alice", role="mod", status="locked")
        actor = Actor.from_user(user)
        assert actor.user_id == user.id
        assert actor.role is UserRole.MOD
        assert actor.status is UserStatus.LOCKED

    def test_is_immutable(self):
        actor = _actor()
        with pytest.raises(AttributeError):
            actor.role = UserRole.ADMIN


class TestSameUsername:
    def test_case_insensitive(self):
        assert same_username("Alice", "aLICE")

    def test_blank_never_matches(self):
        assert not same_username("", "")
        assert not same_username(None, None)
        assert not same_username("alice", "")
