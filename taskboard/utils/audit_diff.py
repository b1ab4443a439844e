"""
Audit Diff Engine - Field-level changes and readable messages for audit entries
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import json

# Bookkeeping columns never reported as changes
IGNORED_FIELDS = frozenset({"id", "created_at", "updated_at", "created_by"})

@dataclass(frozen=True)
class FieldChange:
    field: str
    old_value: Any
    new_value: Any

_MISSING = object()

def _canonical(value: Any) -> Optional[str]:
    # Structural equality: key order and container identity do not matter.
    # An absent key differs from an explicit null.
    if value is _MISSING:
        return None
    return json.dumps(value, sort_keys=True, default=str)

def diff_fields(
    old_values: Optional[Dict[str, Any]],
    new_values: Optional[Dict[str, Any]],
) -> List[FieldChange]:
    """
    Changed fields between two snapshots.

    Keys from both sides are considered, so a field present on only one
    side still shows up (reported with None on the missing side). Order
    follows the combined key set and is not meaningful.
    """
    old_values = old_values or {}
    new_values = new_values or {}

    keys = list(old_values)
    keys.extend(key for key in new_values if key not in old_values)

    changes = []
    for key in keys:
        if key in IGNORED_FIELDS:
            continue
        old_value = old_values.get(key, _MISSING)
        new_value = new_values.get(key, _MISSING)
        if _canonical(old_value) != _canonical(new_value):
            changes.append(FieldChange(
                field=key,
                old_value=None if old_value is _MISSING else old_value,
                new_value=None if new_value is _MISSING else new_value,
            ))
    return changes

def _get(entry: Any, name: str) -> Any:
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)

def _text(value: Any) -> str:
    return str(getattr(value, "value", value))

def format_message(entry: Any) -> str:
    """
    One-line description of an audit entry (dict or AuditLog row).

    Unknown actions fall back to a generic sentence; this never raises.
    """
    try:
        username = _get(entry, "username") or "Unknown user"
        entity_type = _text(_get(entry, "entity_type") or "entity")
        name = _get(entry, "entity_name") or _get(entry, "entity_id") or "unknown"
        action = _text(_get(entry, "action"))

        templates = {
            "create": f'{username} created {entity_type} "{name}"',
            "update": f'{username} updated {entity_type} "{name}"',
            "delete": f'{username} deleted {entity_type} "{name}"',
            "login": f"{username} logged in",
            "logout": f"{username} logged out",
            "approve": f'{username} approved user "{name}"',
            "reject": f'{username} rejected user "{name}"',
            "lock": f'{username} locked {entity_type} "{name}"',
            "unlock": f'{username} unlocked {entity_type} "{name}"',
        }
        return templates.get(action, f"{username} performed {action} on {entity_type}")
    except Exception:  # noqa: BLE001 - message rendering must not break the audit view
        return "Unknown user performed an action"
