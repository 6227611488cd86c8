"""Account router - Authentication, profile and admin user endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from ...auth import ACCESS_COOKIE, REFRESH_COOKIE, get_current_user, get_optional_user, require_admin
from ...config import ACCESS_TOKEN_EXPIRE_MINUTES, COOKIE_SECURE, REFRESH_TOKEN_EXPIRE_DAYS
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from ...schemas import MessageResponse
from ...services.job_queue import get_job_queue
from .schemas import (
    AdminUserUpdate,
    AuthResponse,
    DashboardStats,
    EmailRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UserListResponse,
    UserResponse,
    VerifyEmailRequest,
)
from .service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

login_limiter = create_rate_limiter(limit=10, window_seconds=900, key_prefix="login")
register_limiter = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="register")
resend_limiter = create_rate_limiter(limit=3, window_seconds=900, key_prefix="resend_code")
reset_limiter = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="password_reset")


def get_account_service(
    db: Session = Depends(get_db), queue=Depends(get_job_queue)
) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(db, queue)


def _cookie_options() -> dict:
    # Cross-site frontend needs SameSite=None, which browsers only accept with Secure
    return {
        "httponly": True,
        "secure": COOKIE_SECURE,
        "samesite": "none" if COOKIE_SECURE else "lax",
        "path": "/",
    }


def _set_session_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    options = _cookie_options()
    response.set_cookie(
        ACCESS_COOKIE, access_token, max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60, **options
    )
    response.set_cookie(
        REFRESH_COOKIE, refresh_token, max_age=REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600, **options
    )


def _clear_session_cookies(response: Response) -> None:
    options = _cookie_options()
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            name,
            path=options["path"],
            secure=options["secure"],
            httponly=True,
            samesite=options["samesite"],
        )


# ============================================================================
# REGISTRATION & VERIFICATION
# ============================================================================


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    data: RegisterRequest,
    _: None = Depends(register_limiter),
    service: AccountService = Depends(get_account_service),
):
    user = await service.register(data)
    return RegisterResponse(
        message="Registered! A 6-digit code has been sent to your email.",
        uniqueId=user.public_id,
    )


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(data: VerifyEmailRequest, service: AccountService = Depends(get_account_service)):
    service.verify_email(data.email, data.code)
    return MessageResponse(message="Email verified!")


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    data: EmailRequest,
    _: None = Depends(resend_limiter),
    service: AccountService = Depends(get_account_service),
):
    await service.resend_verification(data.email)
    return MessageResponse(message="Verification code resent")


# ============================================================================
# SESSIONS
# ============================================================================


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    response: Response,
    _: None = Depends(login_limiter),
    service: AccountService = Depends(get_account_service),
):
    """Sets the accessToken / refreshToken cookies"""
    user, access_token, refresh_token = service.login(data)
    _set_session_cookies(response, access_token, refresh_token)
    return AuthResponse(message="Logged in", user=UserResponse.from_user(user))


@router.post("/refresh", response_model=MessageResponse)
async def refresh(
    request: Request, response: Response, service: AccountService = Depends(get_account_service)
):
    _user, access_token, refresh_token = service.refresh(request.cookies.get(REFRESH_COOKIE))
    _set_session_cookies(response, access_token, refresh_token)
    return MessageResponse(message="Tokens refreshed")


@router.post("/logout", status_code=204)
async def logout(
    current_user: Optional[User] = Depends(get_optional_user),
    service: AccountService = Depends(get_account_service),
):
    service.logout(current_user)
    response = Response(status_code=204)
    _clear_session_cookies(response)
    return response


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return UserResponse.from_user(current_user)


# ============================================================================
# PROFILE
# ============================================================================


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return UserResponse.from_user(current_user)


@router.put("/profile", response_model=AuthResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    user = service.update_profile(current_user, data)
    return AuthResponse(message="Profile updated successfully", user=UserResponse.from_user(user))


# ============================================================================
# PASSWORD RESET
# ============================================================================


@router.post("/request-reset", response_model=MessageResponse)
async def request_reset(
    data: EmailRequest,
    _: None = Depends(reset_limiter),
    service: AccountService = Depends(get_account_service),
):
    await service.request_password_reset(data.email)
    return MessageResponse(message="If the email exists, a reset link has been sent")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    _: None = Depends(reset_limiter),
    service: AccountService = Depends(get_account_service),
):
    service.reset_password(data)
    return MessageResponse(message="Password reset successful")


# ============================================================================
# ADMIN
# ============================================================================


@router.get("/admin/users", response_model=UserListResponse)
async def admin_list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    _admin: User = Depends(require_admin),
    service: AccountService = Depends(get_account_service),
):
    users, pagination = service.admin_list_users(page, limit, search)
    return UserListResponse(users=[UserResponse.from_user(u) for u in users], pagination=pagination)


@router.get("/admin/dashboard-stats", response_model=DashboardStats)
async def admin_dashboard_stats(
    _admin: User = Depends(require_admin),
    service: AccountService = Depends(get_account_service),
):
    return service.dashboard_stats()


@router.get("/admin/users/{user_id}", response_model=UserResponse)
async def admin_get_user(
    user_id: int,
    _admin: User = Depends(require_admin),
    service: AccountService = Depends(get_account_service),
):
    return UserResponse.from_user(service.admin_get_user(user_id))


@router.put("/admin/users/{user_id}", response_model=AuthResponse)
async def admin_update_user(
    user_id: int,
    data: AdminUserUpdate,
    admin: User = Depends(require_admin),
    service: AccountService = Depends(get_account_service),
):
    user = service.admin_update_user(user_id, data, admin)
    return AuthResponse(message="User updated", user=UserResponse.from_user(user))


@router.delete("/admin/users/{user_id}", status_code=204)
async def admin_delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    service: AccountService = Depends(get_account_service),
):
    await service.admin_delete_user(user_id, admin)
    return Response(status_code=204)
