"""
User Model - Board members, their role and account status
"""

from sqlalchemy import Column, String, DateTime, Uuid, Enum as SQLEnum
from datetime import datetime
import uuid

from taskboard.database import Base
from taskboard.models.enums import UserRole, UserStatus, enum_values

class User(Base):
    """
    User table.

    Deleting a user is permanent; rows that point at it (created_by,
    locked_by, audit user_id) are weak references nulled by the database.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(100), unique=True, nullable=False, index=True)  # Case-sensitive lookup key
    password_hash = Column(String(255), nullable=False)

    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.MEMBER, nullable=False, index=True,
    )
    status = Column(
        SQLEnum(UserStatus, name="user_status", values_callable=enum_values),
        default=UserStatus.PENDING, nullable=False, index=True,
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        """Public snapshot - never includes the password hash"""
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self):
        return f"<User {self.username} ({self.role}, {self.status})>"
