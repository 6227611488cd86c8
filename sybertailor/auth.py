import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security_utils import verify_access_token

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# Cookie first; Authorization header accepted for API clients
security = HTTPBearer(auto_error=False)


def _extract_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    if credentials and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return None


def _load_user(db: Session, token: str) -> Optional[User]:
    payload = verify_access_token(token)
    if not payload:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        logger.warning("⚠️ Access token carried a malformed subject")
        return None
    return db.query(User).filter(User.id == user_id).first()


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the signed-in user from the accessToken cookie (401 otherwise)"""
    token = _extract_token(request, credentials)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = _load_user(db, token)
    if not user:
        logger.warning("❌ Rejected request with invalid or stale access token")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    logger.debug(f"✅ User authenticated: {user.id}")
    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Same as get_current_user but anonymous callers get None instead of 401"""
    token = _extract_token(request, credentials)
    if not token:
        return None
    return _load_user(db, token)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """
    Get current user and verify the admin role flag.
    Use this dependency for every catalog write and /admin route.
    """
    if not user.is_admin:
        logger.warning(f"⚠️ User {user.id} attempted to access an admin route")
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
