"""
Store - Generic row store over a SQLAlchemy session

The service layer only talks to the database through this class. Every
single-row write is committed on its own; multi-row sequences (group
reorder) are therefore NOT atomic, which is the documented behaviour.
"""

from sqlalchemy import Uuid, delete as sa_delete, or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from taskboard.core.exceptions import (
    AuditWriteFailure,
    DuplicateUsername,
    NotFound,
    StoreFailure,
    ValidationError,
)
from taskboard.core.security import hash_password, verify_password
from taskboard.models import AuditLog, AuditLogImmutableError, EntityType, Task, TaskFile, TaskGroup, User, UserRole, UserStatus

logger = logging.getLogger(__name__)

ENTITY_MODELS = {
    "task": Task,
    "group": TaskGroup,
    "user": User,
    "task_file": TaskFile,
    "audit_log": AuditLog,
}

def as_uuid(value: Any) -> Optional[uuid.UUID]:
    """Coerce an id to UUID; None when it cannot be one (treated as not found)"""
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None

class Store:
    """
    Query interface used by the mutation pipeline.

    Rows are returned as ORM instances; callers snapshot them with
    `to_dict()` when they need a pre-image.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---- helpers -----------------------------------------------------

    def _model(self, entity_type: str):
        model = ENTITY_MODELS.get(str(getattr(entity_type, "value", entity_type)))
        if model is None:
            raise ValidationError(f"Unknown entity type: {entity_type}")
        return model

    def _column(self, model, name: str):
        column = model.__table__.columns.get(name)
        if column is None:
            raise ValidationError(f"Unknown field '{name}' for {model.__tablename__}", field=name)
        return getattr(model, name)

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Store {action} failed: {str(e)}", exc_info=True)
            raise StoreFailure(f"Store {action} failed") from e

    # ---- generic row access -----------------------------------------

    def get(self, entity_type: str, entity_id: Any):
        """Return the row or None"""
        model = self._model(entity_type)
        key = as_uuid(entity_id)
        if key is None:
            return None
        try:
            return self.db.get(model, key, populate_existing=True)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Store get {entity_type} {entity_id} failed: {str(e)}", exc_info=True)
            raise StoreFailure(f"Failed to load {entity_type}") from e

    def _query(self, entity_type: str, filters: Optional[Dict[str, Any]]):
        model = self._model(entity_type)
        # Rows can change underneath the session (FK SET NULL, other sessions)
        query = self.db.query(model).populate_existing()
        for key, value in (filters or {}).items():
            if key.endswith("__gte"):
                query = query.filter(self._column(model, key[:-5]) >= value)
            elif key.endswith("__lte"):
                query = query.filter(self._column(model, key[:-5]) <= value)
            else:
                column = self._column(model, key)
                if isinstance(column.type, Uuid):
                    value = as_uuid(value)
                query = query.filter(column == value)
        return model, query

    def list(
        self,
        entity_type: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Any]:
        """
        Rows matching equality filters.

        Filter keys ending in `__gte` / `__lte` become range predicates,
        e.g. {"created_at__gte": start}. Ties in order_by keep insertion order.
        """
        model, query = self._query(entity_type, filters)
        if order_by:
            column = self._column(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        if "created_at" in model.__table__.columns and order_by != "created_at":
            query = query.order_by(model.created_at.asc())
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Store list {entity_type} failed: {str(e)}", exc_info=True)
            raise StoreFailure(f"Failed to list {entity_type}") from e

    def count(self, entity_type: str, filters: Optional[Dict[str, Any]] = None) -> int:
        _, query = self._query(entity_type, filters)
        try:
            return query.count()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailure(f"Failed to count {entity_type}") from e

    def insert(self, entity_type: str, fields: Dict[str, Any]):
        """Insert a row; id and timestamps are assigned here"""
        model = self._model(entity_type)
        for name in fields:
            self._column(model, name)
        row = model(**fields)
        self.db.add(row)
        self._commit(f"insert {entity_type}")
        self.db.refresh(row)
        return row

    def update(self, entity_type: str, entity_id: Any, fields: Dict[str, Any]):
        """Write fields to one row; NotFound when the row is gone"""
        row = self.get(entity_type, entity_id)
        if row is None:
            raise NotFound(entity_type, entity_id)
        model = type(row)
        for name, value in fields.items():
            self._column(model, name)
            setattr(row, name, value)
        self._commit(f"update {entity_type}")
        self.db.refresh(row)
        return row

    def delete(self, entity_type: str, entity_id: Any) -> bool:
        """
        Delete one row by id, without loading it first.

        Child rows follow the foreign key rules (ON DELETE CASCADE / SET NULL).
        Returns False when no row matched.
        """
        model = self._model(entity_type)
        if model is AuditLog:
            raise AuditLogImmutableError("Audit logs are append-only and cannot be deleted")
        key = as_uuid(entity_id)
        if key is None:
            return False
        try:
            result = self.db.execute(
                sa_delete(model)
                .where(model.id == key)
                .execution_options(synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Store delete {entity_type} {entity_id} failed: {str(e)}", exc_info=True)
            raise StoreFailure(f"Store delete {entity_type} failed") from e
        self._commit(f"delete {entity_type}")
        return result.rowcount > 0

    # ---- authentication primitives -----------------------------------

    def register_user(self, username: str, password: str, role: UserRole, status: UserStatus) -> User:
        """Create a user with a hashed password"""
        user = User(username=username, password_hash=hash_password(password), role=role, status=status)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateUsername(username) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Store register_user failed: {str(e)}", exc_info=True)
            raise StoreFailure("Failed to register user") from e
        self.db.refresh(user)
        return user

    def login_user(self, username: str, password: str) -> Optional[User]:
        """User with this exact username and password, else None"""
        try:
            user = self.db.query(User).filter(User.username == username).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreFailure("Failed to load user") from e
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    # ---- audit --------------------------------------------------------

    def log_audit(
        self,
        user_id: Any,
        action: str,
        entity_type: str,
        entity_id: Any = None,
        entity_name: Optional[str] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> uuid.UUID:
        """
        Append an audit entry and return its id.
        The username is read from the users table so it survives user deletion.
        """
        try:
            user_key = as_uuid(user_id)
            user = self.db.get(User, user_key) if user_key else None
            entry = AuditLog(
                user_id=user.id if user else None,
                username=user.username if user else None,
                action=action,
                entity_type=entity_type,
                entity_id=as_uuid(entity_id),
                entity_name=entity_name,
                old_values=old_values,
                new_values=new_values,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise AuditWriteFailure(f"Failed to write audit entry: {str(e)}") from e
        return entry.id

    def list_audit_logs(
        self,
        filters: Optional[Dict[str, Any]] = None,
        visible_to: Optional[uuid.UUID] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Tuple[List[AuditLog], int]:
        """
        Audit entries newest first, with the total before pagination.

        With `visible_to`, user entries are limited to the ones about or by
        that user; board entries (tasks, groups, files) are all kept.
        """
        _, query = self._query("audit_log", filters)
        if visible_to is not None:
            query = query.filter(or_(
                AuditLog.entity_type != EntityType.USER,
                AuditLog.entity_id == visible_to,
                AuditLog.user_id == visible_to,
            ))
        try:
            total = query.count()
            query = query.order_by(AuditLog.created_at.desc())
            if offset:
                query = query.offset(offset)
            if limit:
                query = query.limit(limit)
            return query.all(), total
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Store list audit logs failed: {str(e)}", exc_info=True)
            raise StoreFailure("Failed to list audit logs") from e
