"""
Audit Log Model - Immutable record of every state change on the board
"""

from sqlalchemy import Column, String, Text, DateTime, JSON, Uuid, ForeignKey, Enum as SQLEnum, event
from datetime import datetime
import uuid

from taskboard.database import Base
from taskboard.models.enums import AuditAction, EntityType, enum_values

class AuditLog(Base):
    """
    Audit log table - append-only ledger.

    CRITICAL: the application never updates or deletes a row here (enforced
    by the mapper hooks below). Entries outlive the entities they describe:
    user_id is nulled by the database when the user is deleted, while the
    denormalized username and entity_name keep the record readable.
    """
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Who
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    username = Column(String(100), nullable=True)  # Snapshot at write time

    # What
    action = Column(SQLEnum(AuditAction, name="audit_action", values_callable=enum_values), nullable=False, index=True)
    entity_type = Column(SQLEnum(EntityType, name="entity_type", values_callable=enum_values), nullable=False, index=True)
    entity_id = Column(Uuid, nullable=True, index=True)  # Null for bulk operations (group reorder)
    entity_name = Column(String(500), nullable=True)  # Descriptive label snapshot

    # Change snapshots - either side may be null
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)

    # Request context
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.username,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": self.created_at,
        }

    def __repr__(self):
        return f"<AuditLog {self.action} {self.entity_type} by {self.username} at {self.created_at}>"

class AuditLogImmutableError(RuntimeError):
    """Raised when code tries to modify or remove an audit entry"""

@event.listens_for(AuditLog, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise AuditLogImmutableError(f"Audit log {target.id} is append-only and cannot be modified")

@event.listens_for(AuditLog, "before_delete")
def _reject_audit_delete(mapper, connection, target):
    raise AuditLogImmutableError(f"Audit log {target.id} is append-only and cannot be deleted")
