"""
Security Utilities
Password hashing, session tokens and one-time codes
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ACCESS_TOKEN_SECRET,
    REFRESH_TOKEN_EXPIRE_DAYS,
    REFRESH_TOKEN_SECRET,
)

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

EMAIL_CODE_EXPIRE_MINUTES = 15
RESET_TOKEN_EXPIRE_HOURS = 1
MIN_PASSWORD_LENGTH = 8

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


def check_password_strength(password: str) -> Optional[str]:
    """Return a message describing why the password is too weak, or None"""
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    if not password.strip():
        return "Password cannot be blank"
    return None


# ============================================================================
# TOKEN GENERATION & VALIDATION
# ============================================================================


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token"""
    return secrets.token_urlsafe(length)


def generate_verification_code() -> str:
    """Six digit e-mail verification code"""
    return f"{secrets.randbelow(1_000_000):06d}"


def _create_token(data: dict[str, Any], secret: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.utcnow() + expires_delta})
    return jose_jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def _verify_token(token: str, secret: str) -> Optional[dict[str, Any]]:
    try:
        return jose_jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


def create_access_token(user_id: int) -> str:
    """Short-lived session token carried in the accessToken cookie"""
    return _create_token(
        {"sub": str(user_id), "type": "access"},
        ACCESS_TOKEN_SECRET,
        timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: int) -> str:
    """
    Long-lived token carried in the refreshToken cookie.

    A random jti makes every issued token unique so the copy stored on the
    user row identifies exactly one session.
    """
    return _create_token(
        {"sub": str(user_id), "type": "refresh", "jti": generate_secure_token(16)},
        REFRESH_TOKEN_SECRET,
        timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
    )


def verify_access_token(token: str) -> Optional[dict[str, Any]]:
    payload = _verify_token(token, ACCESS_TOKEN_SECRET)
    if payload and payload.get("type") == "access":
        return payload
    return None


def verify_refresh_token(token: str) -> Optional[dict[str, Any]]:
    payload = _verify_token(token, REFRESH_TOKEN_SECRET)
    if payload and payload.get("type") == "refresh":
        return payload
    return None


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks

    Args:
        a: First string
        b: Second string

    Returns:
        True if strings are equal, False otherwise
    """
    return secrets.compare_digest(a.encode(), b.encode())


def mask_email(email: str) -> str:
    """Mask an e-mail address for logging"""
    local, _, domain = email.partition("@")
    if len(local) <= 2:
        return f"{'*' * len(local)}@{domain}"
    return f"{local[:2]}{'*' * (len(local) - 2)}@{domain}"
