"""Registration, login and account management."""

from uuid import uuid4

import pytest

from taskboard.core.exceptions import (
    AuthenticationFailed,
    DuplicateUsername,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from taskboard.models import AuditAction, EntityType, UserRole, UserStatus
from taskboard.services.groups import create_group
from taskboard.services.identity import Actor
from taskboard.services.tasks import create_task, get_task
from taskboard.services.users import (
    approve_user,
    delete_user,
    get_user,
    list_pending_users,
    list_users,
    lock_user,
    login_user,
    logout_user,
    register_user,
    reject_user,
    unlock_user,
    update_user,
)

ADMIN_CODE = "sprint-admin"


class TestRegister:
    def test_default_is_pending_member(self, store):
        user = register_user(store, "carol", "secret123", admin_invite_code=ADMIN_CODE)
        assert user.role is UserRole.MEMBER
        assert user.status is UserStatus.PENDING

    def test_admin_invite_code(self, store):
        user = register_user(store, "root", "secret123", invite_code=ADMIN_CODE, admin_invite_code=ADMIN_CODE)
        assert user.role is UserRole.ADMIN
        assert user.status is UserStatus.ACTIVE

    def test_invite_code_is_trimmed(self, store):
        user = register_user(store, "zed", "secret123", invite_code=" sprint-admin ", admin_invite_code=ADMIN_CODE)
        assert user.role is UserRole.ADMIN
        assert user.status is UserStatus.ACTIVE

    def test_wrong_code(self, store):
        user = register_user(store, "carol", "secret123", invite_code="guess", admin_invite_code=ADMIN_CODE)
        assert user.role is UserRole.MEMBER

    def test_unset_admin_code_matches_nothing(self, store):
        user = register_user(store, "carol", "secret123", invite_code="", admin_invite_code="")
        assert user.status is UserStatus.PENDING

    def test_username_trimmed(self, store):
        assert register_user(store, "  carol  ", "secret123").username == "carol"

    @pytest.mark.parametrize("username,password", [("ab", "secret123"), ("carol", "12345")])
    def test_length_rules(self, store, username, password, audit_entries):
        with pytest.raises(ValidationError):
            register_user(store, username, password)
        assert store.list("user") == []
        assert audit_entries() == []

    def test_duplicate(self, store, alice):
        with pytest.raises(DuplicateUsername):
            register_user(store, "alice", "secret123")

    def test_audit_excludes_password(self, store, audit_entries):
        user = register_user(store, "carol", "secret123")
        entry = audit_entries(action=AuditAction.CREATE, entity_type=EntityType.USER)[0]
        assert entry.user_id == user.id
        assert entry.new_values == {"username": "carol", "role": "member", "status": "pending"}


class TestLogin:
    def test_success_is_audited(self, store, alice, audit_entries):
        user = login_user(store, "alice", "secret123")
        assert user.id == alice.user_id
        assert audit_entries(action=AuditAction.LOGIN)[0].username == "alice"

    def test_bad_password(self, store, alice):
        with pytest.raises(AuthenticationFailed) as exc_info:
            login_user(store, "alice", "wrong-password")
        assert not exc_info.value.locked

    def test_unknown_user(self, store):
        with pytest.raises(AuthenticationFailed):
            login_user(store, "ghost", "secret123")

    def test_username_is_case_sensitive(self, store, alice):
        with pytest.raises(AuthenticationFailed):
            login_user(store, "ALICE", "secret123")

    def test_pending_may_log_in(self, store, make_user):
        make_user("newbie", status=UserStatus.PENDING)
        assert login_user(store, "newbie", "secret123").status is UserStatus.PENDING

    def test_locked_refused(self, store, make_user):
        make_user("dave", status=UserStatus.LOCKED)
        with pytest.raises(AuthenticationFailed) as exc_info:
            login_user(store, "dave", "secret123")
        assert exc_info.value.locked

    def test_logout_audited(self, store, alice, audit_entries):
        logout_user(store, alice)
        assert audit_entries(action=AuditAction.LOGOUT)[0].entity_id == alice.user_id


class TestApproval:
    def test_approve_sets_role_and_status(self, store, admin, make_user, audit_entries):
        pending = make_user("newbie", status=UserStatus.PENDING)
        user = approve_user(store, admin, pending.user_id, UserRole.MOD)
        assert (user.role, user.status) == (UserRole.MOD, UserStatus.ACTIVE)

        entry = audit_entries(action=AuditAction.APPROVE)[0]
        assert entry.old_values == {"role": "member", "status": "pending"}
        assert entry.new_values == {"role": "mod", "status": "active"}

    def test_only_pending_can_be_approved(self, store, admin, alice):
        with pytest.raises(ValidationError):
            approve_user(store, admin, alice.user_id)

    def test_mod_cannot_approve(self, store, mod, make_user):
        pending = make_user("newbie", status=UserStatus.PENDING)
        with pytest.raises(PermissionDenied):
            approve_user(store, mod, pending.user_id)

    def test_reject_deletes(self, store, admin, make_user, audit_entries):
        pending = make_user("newbie", status=UserStatus.PENDING)
        reject_user(store, admin, pending.user_id)
        with pytest.raises(NotFound):
            get_user(store, admin, pending.user_id)

        entry = audit_entries(action=AuditAction.REJECT)[0]
        assert entry.entity_name == "newbie"
        assert entry.new_values is None

    def test_pending_listing(self, store, admin, alice, make_user):
        make_user("newbie", status=UserStatus.PENDING)
        assert [u.username for u in list_pending_users(store, admin)] == ["newbie"]


class TestAccountLocks:
    def test_mod_locks_and_unlocks_member(self, store, mod, bob, audit_entries):
        assert lock_user(store, mod, bob.user_id).status is UserStatus.LOCKED
        assert unlock_user(store, mod, bob.user_id).status is UserStatus.ACTIVE
        assert audit_entries(action=AuditAction.LOCK)[0].new_values == {"status": "locked"}
        assert audit_entries(action=AuditAction.UNLOCK)[0].new_values == {"status": "active"}

    def test_mod_cannot_lock_admin(self, store, mod, admin):
        with pytest.raises(PermissionDenied):
            lock_user(store, mod, admin.user_id)

    def test_cannot_lock_self(self, store, admin):
        with pytest.raises(PermissionDenied):
            lock_user(store, admin, admin.user_id)

    def test_member_cannot_lock(self, store, alice, bob):
        with pytest.raises(PermissionDenied):
            lock_user(store, alice, bob.user_id)

    def test_locking_takes_effect_on_next_call(self, store, admin, bob, group):
        lock_user(store, admin, bob.user_id)
        fresh = Actor.from_user(store.get("user", bob.user_id))
        with pytest.raises(PermissionDenied):
            create_task(store, fresh, {"group_id": group.id})

    def test_cannot_lock_pending(self, store, admin, make_user):
        pending = make_user("newbie", status=UserStatus.PENDING)
        with pytest.raises(ValidationError):
            lock_user(store, admin, pending.user_id)


class TestUpdateAndDelete:
    def test_admin_changes_role(self, store, admin, bob, audit_entries):
        user = update_user(store, admin, bob.user_id, {"role": "mod"})
        assert user.role is UserRole.MOD
        entry = audit_entries(action=AuditAction.UPDATE, entity_type=EntityType.USER)[0]
        assert entry.old_values == {"role": "member", "status": "active"}
        assert entry.new_values == {"role": "mod"}

    def test_mod_cannot_grant_roles(self, store, mod, bob):
        with pytest.raises(PermissionDenied):
            update_user(store, mod, bob.user_id, {"role": "mod"})

    def test_only_role_and_status(self, store, admin, bob):
        with pytest.raises(ValidationError):
            update_user(store, admin, bob.user_id, {"username": "robert"})

    def test_delete_keeps_content_and_history(self, store, admin, bob, audit_entries):
        group = create_group(store, admin, {"name": "Sprint"})
        task = create_task(store, bob, {"group_id": group.id, "task": "Bob's task"})

        delete_user(store, admin, bob.user_id)

        assert store.get("user", bob.user_id) is None
        remaining = get_task(store, task.id)
        assert remaining.created_by is None
        assert remaining.owner == "bob"

        created = audit_entries(action=AuditAction.CREATE, entity_id=task.id)[0]
        assert created.user_id is None
        assert created.username == "bob"

    def test_cannot_delete_self(self, store, admin):
        with pytest.raises(PermissionDenied):
            delete_user(store, admin, admin.user_id)

    def test_delete_missing(self, store, admin):
        with pytest.raises(NotFound):
            delete_user(store, admin, uuid4())


class TestListing:
    def test_active_users_can_list(self, store, admin, alice, bob):
        assert {u.username for u in list_users(store, alice)} == {"admin", "alice", "bob"}

    def test_role_filter(self, store, admin, alice):
        assert [u.username for u in list_users(store, alice, role="admin")] == ["admin"]

    def test_status_filter_needs_admin(self, store, alice):
        with pytest.raises(PermissionDenied):
            list_users(store, alice, status="pending")

    def test_pending_user_sees_only_self(self, store, alice, make_user):
        pending = make_user("newbie", status=UserStatus.PENDING)
        assert get_user(store, pending, pending.user_id).username == "newbie"
        with pytest.raises(PermissionDenied):
            get_user(store, pending, alice.user_id)
