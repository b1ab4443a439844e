"""
FastAPI Dependencies - Current user, Actor session and Store per request
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Dict, Optional
import logging

from taskboard.database import get_db
from taskboard.core.security import decode_token
from taskboard.models import User
from taskboard.services.identity import Actor
from taskboard.store import Store, as_uuid

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme - expects "Authorization: Bearer <token>" header
security = HTTPBearer()

def get_store(db: Session = Depends(get_db)) -> Store:
    """Store bound to this request's session"""
    return Store(db)

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the authenticated user from the JWT.

    Pending and locked users are returned too: the pipeline decides what
    they may do, so a pending user can still read their own status.

    Raises:
        HTTPException 401: token invalid/expired or user no longer exists
    """
    user_id = as_uuid(decode_token(credentials.credentials))
    if user_id is None:
        logger.warning("⚠️  Invalid or expired token provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.get(User, user_id, populate_existing=True)
    if not user:
        logger.warning(f"⚠️  Token valid but user {user_id} not found")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    logger.debug(f"✅ Authenticated user: {user.username}")
    return user

def get_current_actor(current_user: User = Depends(get_current_user)) -> Actor:
    """
    The session object every pipeline call receives.
    Rebuilt per request, so role or status changes apply immediately.
    """
    return Actor.from_user(current_user)

def get_request_context(request: Request) -> Dict[str, Optional[str]]:
    """IP address and user agent recorded on audit entries"""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }
