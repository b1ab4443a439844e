"""
User Schemas - Pydantic models for request/response validation
"""

from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from taskboard.models.enums import UserRole, UserStatus

class UserRegister(BaseModel):
    """Schema for registration - length rules are enforced by the service"""
    username: str
    password: str  # Plaintext password (hashed before storage)
    invite_code: Optional[str] = None  # Admin invite code, optional

    @field_validator('username')
    @classmethod
    def strip_username(cls, v):
        return v.strip()

class UserLogin(BaseModel):
    """Schema for login request"""
    username: str
    password: str

class UserResponse(BaseModel):
    """Schema for user data in responses - excludes password hash"""
    id: UUID
    username: str
    role: UserRole
    status: UserStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True  # Allow creation from SQLAlchemy models

class UserUpdate(BaseModel):
    """Admin update - only role and status can change"""
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None

class UserApprove(BaseModel):
    """Role granted when a pending user is approved"""
    role: UserRole = UserRole.MEMBER

class TokenResponse(BaseModel):
    """Schema for authentication token response"""
    access_token: str  # JWT token
    token_type: str = "bearer"
    user: UserResponse
