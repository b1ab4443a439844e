"""
Security Module - Password hashing and JWT session tokens
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
import logging

from taskboard.core.config import settings

logger = logging.getLogger(__name__)

# Password hashing context - bcrypt with configurable cost factor
pwd_context = CryptContext(
    schemes=["bcrypt"],  # bcrypt only
    deprecated="auto",  # Rehash anything older on next verify
    bcrypt__rounds=settings.BCRYPT_ROUNDS,  # Cost factor (tests run with the minimum of 4)
)

def hash_password(password: str) -> str:
    """
    Hash a plaintext password using bcrypt.

    This is the only place plaintext is consumed; the store keeps the hash
    and the account services never see either.

    Args:
        password: Plaintext password from the registration form

    Returns:
        Salted bcrypt hash (60 characters)

    Example:
        hashed = hash_password("secret123")
        # Returns: $2b$10$abc...xyz
    """
    return pwd_context.hash(password)  # Salt is generated per hash

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plaintext password against a stored bcrypt hash.

    Args:
        plain_password: Password provided at login
        hashed_password: Hash stored on the user row

    Returns:
        True if the password matches, False otherwise (including a
        corrupted or unrecognised hash)

    Example:
        if verify_password(form.password, user.password_hash):
            # Proceed with login
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)  # Constant-time comparison
    except (ValueError, TypeError) as e:
        logger.error(f"❌ Password verification error: {str(e)}")
        return False  # Unreadable hash never authenticates

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT for the session.

    JWT Structure:
        Header: {alg: HS256, typ: JWT}
        Payload: {sub: user_id, exp: timestamp}
        Signature: HMAC(header + payload, SECRET_KEY)

    Args:
        data: Claims to encode, normally {"sub": <user id>}
        expires_delta: Optional custom lifetime

    Returns:
        Encoded token string

    Example:
        token = create_access_token({"sub": str(user.id)})
    """
    to_encode = data.copy()  # Leave the caller's dict untouched

    # Set expiration time
    if expires_delta:
        expire = datetime.utcnow() + expires_delta  # Custom lifetime
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)  # Default lifetime

    to_encode.update({"exp": expire})  # Expiration claim

    # Sign the token
    encoded_jwt = jwt.encode(
        to_encode,  # Payload
        settings.SECRET_KEY,  # Signing key
        algorithm=settings.ALGORITHM,  # HS256
    )

    logger.debug(f"✅ Created access token expiring at {expire}")
    return encoded_jwt

def verify_token(token: str) -> Optional[dict]:
    """
    Verify and decode a JWT.

    Args:
        token: JWT string from the Authorization header

    Returns:
        Decoded payload if valid, None if expired, tampered with, or malformed

    Example:
        payload = verify_token(credentials.credentials)
        if payload is None:
            # Respond 401
    """
    try:
        return jwt.decode(
            token,  # Token string
            settings.SECRET_KEY,  # Verify signature with this key
            algorithms=[settings.ALGORITHM],  # Only the configured algorithm
        )

    except jwt.ExpiredSignatureError:
        logger.warning("⚠️  Token expired")  # Valid signature, past exp
        return None

    except JWTError as e:
        logger.warning(f"⚠️  Invalid token: {str(e)}")  # Bad signature or malformed
        return None

def decode_token(token: str) -> Optional[str]:
    """
    Extract the user id from a JWT.

    Returns:
        The "sub" claim if the token is valid, None otherwise

    Usage:
        user_id = decode_token(token)
        if user_id:
            user = db.get(User, as_uuid(user_id))
    """
    payload = verify_token(token)  # Verify and decode
    if payload:
        return payload.get("sub")  # "sub" holds the user id
    return None
