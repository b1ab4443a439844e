"""Group mutations: cascade delete, reorder and its weak atomicity."""

from uuid import uuid4

import pytest

from taskboard.core.exceptions import NotFound, PermissionDenied, StoreFailure, ValidationError
from taskboard.models import AuditAction, DEFAULT_GROUP_COLOR, EntityType
from taskboard.services.files import attach_file
from taskboard.services.groups import (
    create_group,
    delete_group,
    get_group,
    list_groups,
    reorder_groups,
    update_group,
)
from taskboard.store import Store


class TestCreateGroup:
    def test_defaults(self, store, admin):
        group = create_group(store, admin, {})
        assert group.name == "New Group"
        assert group.color == DEFAULT_GROUP_COLOR
        assert group.is_expanded is True
        assert group.sort_order == 0
        assert create_group(store, admin, {"name": "Next"}).sort_order == 1

    def test_mod_may_create(self, store, mod):
        assert create_group(store, mod, {"name": "Sprint"}).name == "Sprint"

    def test_member_may_not(self, store, bob, audit_entries):
        with pytest.raises(PermissionDenied):
            create_group(store, bob, {"name": "Sprint"})
        assert audit_entries() == []

    def test_blank_name_rejected(self, store, admin):
        with pytest.raises(ValidationError):
            create_group(store, admin, {"name": "   "})


class TestUpdateGroup:
    def test_audit_has_pre_image_and_delta(self, store, admin, group, audit_entries):
        update_group(store, admin, group.id, {"name": "Sprint 1b", "is_expanded": False})

        entry = audit_entries(action=AuditAction.UPDATE, entity_type=EntityType.GROUP)[0]
        assert entry.old_values["name"] == "Sprint 1"
        assert entry.old_values["color"] == DEFAULT_GROUP_COLOR
        assert entry.new_values == {"name": "Sprint 1b", "is_expanded": False}

    def test_dates(self, store, admin, group):
        updated = update_group(store, admin, group.id, {"start_date": "2026-01-05", "end_date": "2026-01-19"})
        assert updated.start_date.isoformat() == "2026-01-05"

    def test_missing_group(self, store, admin):
        with pytest.raises(NotFound):
            update_group(store, admin, uuid4(), {"name": "x"})


class TestDeleteGroup:
    def test_cascades_to_tasks_and_files(self, store, admin, group, task):
        task_file = attach_file(store, admin, task.id, "wireframe.pdf", 1024, "application/pdf")
        delete_group(store, admin, group.id)

        assert store.list("task", {"group_id": group.id}) == []
        assert store.get("task_file", task_file.id) is None
        with pytest.raises(NotFound):
            get_group(store, group.id)

    def test_single_delete_audit(self, store, admin, group, task, audit_entries):
        delete_group(store, admin, group.id)
        deletes = audit_entries(action=AuditAction.DELETE)
        assert len(deletes) == 1
        assert deletes[0].entity_type is EntityType.GROUP
        assert deletes[0].entity_name == "Sprint 1"

    def test_member_may_not(self, store, bob, group):
        with pytest.raises(PermissionDenied):
            delete_group(store, bob, group.id)

    def test_deleting_twice_is_silent(self, store, admin, group, audit_entries):
        delete_group(store, admin, group.id)
        delete_group(store, admin, group.id)
        assert len(audit_entries(action=AuditAction.DELETE)) == 1


class TestReorder:
    def test_sets_sort_order_by_position(self, store, admin):
        a, b, c = (create_group(store, admin, {"name": n}) for n in "abc")
        reorder_groups(store, admin, [c.id, a.id, b.id])
        assert [g.name for g in list_groups(store)] == ["c", "a", "b"]

    def test_single_audit_entry(self, store, admin, audit_entries):
        a, b = (create_group(store, admin, {"name": n}) for n in "ab")
        reorder_groups(store, admin, [b.id, a.id])

        entries = audit_entries(action=AuditAction.UPDATE)
        assert len(entries) == 1
        assert entries[0].entity_id is None
        assert entries[0].entity_name == "Group order"
        assert entries[0].new_values == {"order": [str(b.id), str(a.id)]}

    def test_rejects_empty_and_duplicates(self, store, admin, group):
        with pytest.raises(ValidationError):
            reorder_groups(store, admin, [])
        with pytest.raises(ValidationError):
            reorder_groups(store, admin, [group.id, group.id])

    def test_unknown_id_stops_at_that_row(self, store, admin):
        a, b, c = (create_group(store, admin, {"name": n}) for n in "abc")
        with pytest.raises(NotFound):
            reorder_groups(store, admin, [c.id, uuid4(), a.id])

        orders = {g.name: g.sort_order for g in list_groups(store)}
        assert orders == {"c": 0, "b": 1, "a": 0}

    def test_store_failure_leaves_earlier_rows_updated(self, db, admin, audit_entries):
        class FailingStore(Store):
            """Fails the second sort_order write."""

            writes = 0

            def update(self, entity_type, entity_id, fields):
                if "sort_order" in fields:
                    FailingStore.writes += 1
                    if FailingStore.writes == 2:
                        raise StoreFailure("connection lost")
                return super().update(entity_type, entity_id, fields)

        store = FailingStore(db)
        a, b, c = (create_group(store, admin, {"name": n}) for n in "abc")

        with pytest.raises(StoreFailure):
            reorder_groups(store, admin, [c.id, b.id, a.id])

        orders = {g.name: g.sort_order for g in list_groups(store)}
        assert orders == {"a": 0, "b": 1, "c": 0}
        assert audit_entries(action=AuditAction.UPDATE) == []

    def test_member_may_not(self, store, bob, group):
        with pytest.raises(PermissionDenied):
            reorder_groups(store, bob, [group.id])
