"""
Authentication API - User registration, login, logout endpoints
"""

from fastapi import APIRouter, Depends, status
import logging

from taskboard.schemas import UserRegister, UserLogin, TokenResponse, UserResponse
from taskboard.models import User
from taskboard.core.security import create_access_token
from taskboard.core.dependencies import get_current_actor, get_current_user, get_request_context, get_store
from taskboard.services import users
from taskboard.services.identity import Actor
from taskboard.store import Store

logger = logging.getLogger(__name__)
router = APIRouter()

def _token_response(user: User) -> TokenResponse:
    access_token = create_access_token(data={"sub": str(user.id)})
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user),
    )

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    context: dict = Depends(get_request_context),
    store: Store = Depends(get_store)
):
    """
    Register a new account.

    Without a valid admin invite code the account is pending until an admin
    approves it; the returned token only lets it see its own status.

    Raises:
        400: Username or password too short
        409: Username already taken
    """
    logger.info(f"➡️  Registration attempt for username: {user_data.username}")
    user = users.register_user(store, user_data.username, user_data.password,
                               invite_code=user_data.invite_code, **context)
    return _token_response(user)

@router.post("/login", response_model=TokenResponse)
def login(
    credentials: UserLogin,
    context: dict = Depends(get_request_context),
    store: Store = Depends(get_store)
):
    """
    Authenticate and return a JWT.

    Raises:
        401: Invalid credentials
        403: Account locked
    """
    logger.info(f"➡️  Login attempt for username: {credentials.username}")
    user = users.login_user(store, credentials.username, credentials.password, **context)
    return _token_response(user)

@router.post("/logout", status_code=status.HTTP_200_OK)
def logout(
    context: dict = Depends(get_request_context),
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store)
):
    """
    Logout current user.

    JWT tokens are stateless; the client deletes its token. This endpoint
    records the logout in the audit trail.
    """
    logger.info(f"➡️  Logout request from: {actor.username}")
    users.logout_user(store, actor, **context)
    return {"message": "Successfully logged out"}

@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Current user's account, including a pending or locked status"""
    logger.debug(f"➡️  Profile request from: {current_user.username}")
    return UserResponse.model_validate(current_user)
