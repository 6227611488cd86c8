"""Account service - Registration, sessions, profile and admin user management"""

import logging
from datetime import timedelta
from typing import Optional
from urllib.parse import urlencode

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import email_service
from ...config import CLIENT_URL
from ...models import Order, User, utcnow
from ...security_utils import (
    EMAIL_CODE_EXPIRE_MINUTES,
    RESET_TOKEN_EXPIRE_HOURS,
    constant_time_compare,
    create_access_token,
    create_refresh_token,
    generate_secure_token,
    generate_verification_code,
    hash_password,
    mask_email,
    verify_password,
    verify_refresh_token,
)
from ...services.order_scheduler import cancel_order_notifications
from ...shared.pagination import paginate
from ...utils import image_storage
from ..appointments.service import business_now
from .repository import DashboardRepository, UserRepository
from .schemas import (
    AdminUserUpdate,
    DashboardStats,
    LoginRequest,
    ProfileUpdate,
    RecentOrder,
    RegisterRequest,
    ResetPasswordRequest,
)

logger = logging.getLogger(__name__)


class AccountService:
    """Service layer for account business logic"""

    def __init__(self, db: Session, queue=None):
        self.db = db
        self.repo = UserRepository()
        self.queue = queue

    # ========================================================================
    # REGISTRATION & VERIFICATION
    # ========================================================================

    async def register(self, data: RegisterRequest) -> User:
        if self.repo.email_taken(self.db, data.email):
            raise HTTPException(status_code=400, detail="Email already in use")

        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            email_token=generate_verification_code(),
            email_token_expires=utcnow() + timedelta(minutes=EMAIL_CODE_EXPIRE_MINUTES),
        )
        user = self.repo.create(self.db, user)
        logger.info(f"👤 Registered user {user.id} ({mask_email(user.email)})")

        await email_service.send_verification_code_email(self.queue, user)
        return user

    def verify_email(self, email: str, code: str) -> User:
        user = self.repo.get_by_email(self.db, email)
        if (
            not user
            or not user.email_token
            or not constant_time_compare(user.email_token, code.strip())
            or not user.email_token_expires
            or user.email_token_expires < utcnow()
        ):
            raise HTTPException(status_code=400, detail="Invalid or expired verification code")

        user.is_verified = True
        user.email_token = None
        user.email_token_expires = None
        self.db.commit()
        logger.info(f"✅ User {user.id} verified their email")
        return user

    async def resend_verification(self, email: str) -> None:
        user = self.repo.get_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        if user.is_verified:
            raise HTTPException(status_code=400, detail="User already verified")

        user.email_token = generate_verification_code()
        user.email_token_expires = utcnow() + timedelta(minutes=EMAIL_CODE_EXPIRE_MINUTES)
        self.db.commit()

        await email_service.send_verification_code_email(self.queue, user)

    # ========================================================================
    # SESSIONS
    # ========================================================================

    def _issue_tokens(self, user: User) -> tuple[str, str]:
        access_token = create_access_token(user.id)
        refresh_token = create_refresh_token(user.id)
        user.refresh_token = refresh_token
        self.db.commit()
        return access_token, refresh_token

    def login(self, data: LoginRequest) -> tuple[User, str, str]:
        user = self.repo.get_by_email(self.db, data.email)
        if not user or not verify_password(data.password, user.password_hash):
            logger.warning(f"🔒 Failed login for {mask_email(data.email)}")
            raise HTTPException(status_code=400, detail="Invalid credentials")
        if not user.is_verified:
            raise HTTPException(status_code=403, detail="Please verify your email first")

        access_token, refresh_token = self._issue_tokens(user)
        logger.info(f"🔑 User {user.id} logged in")
        return user, access_token, refresh_token

    def refresh(self, token: Optional[str]) -> tuple[User, str, str]:
        """Rotate both tokens. Only the refresh token stored on the user is accepted."""
        if not token:
            raise HTTPException(status_code=401, detail="Refresh token missing")

        payload = verify_refresh_token(token)
        user = None
        if payload:
            try:
                user = self.repo.get_by_id(self.db, int(payload.get("sub")))
            except (TypeError, ValueError):
                user = None
        if not user or not user.refresh_token or not constant_time_compare(user.refresh_token, token):
            logger.warning("🔒 Rejected refresh with an unknown or rotated token")
            raise HTTPException(status_code=403, detail="Invalid refresh token")

        access_token, refresh_token = self._issue_tokens(user)
        return user, access_token, refresh_token

    def logout(self, user: Optional[User]) -> None:
        if user and user.refresh_token:
            user.refresh_token = None
            self.db.commit()
            logger.info(f"👋 User {user.id} logged out")

    # ========================================================================
    # PASSWORD RESET
    # ========================================================================

    async def request_password_reset(self, email: str) -> None:
        """Silent when the address is unknown so accounts can't be enumerated"""
        user = self.repo.get_by_email(self.db, email)
        if not user:
            logger.info(f"🔍 Reset requested for unknown address {mask_email(email)}")
            return

        user.reset_token = generate_secure_token()
        user.reset_token_expires = utcnow() + timedelta(hours=RESET_TOKEN_EXPIRE_HOURS)
        self.db.commit()

        query = urlencode({"token": user.reset_token, "id": user.public_id})
        reset_link = f"{CLIENT_URL.rstrip('/')}/reset-password?{query}"
        await email_service.send_password_reset_email(self.queue, user, reset_link)

    def reset_password(self, data: ResetPasswordRequest) -> None:
        user = self.repo.get_by_public_id(self.db, data.id)
        if (
            not user
            or not user.reset_token
            or not constant_time_compare(user.reset_token, data.token)
            or not user.reset_token_expires
            or user.reset_token_expires <= utcnow()
        ):
            raise HTTPException(status_code=400, detail="Invalid or expired reset token")

        user.password_hash = hash_password(data.password)
        user.reset_token = None
        user.reset_token_expires = None
        # Existing sessions end with the old password
        user.refresh_token = None
        self.db.commit()
        logger.info(f"🔐 Password reset for user {user.id}")

    # ========================================================================
    # PROFILE
    # ========================================================================

    def _apply_profile(self, user: User, data: ProfileUpdate) -> None:
        if data.email and data.email != user.email:
            if self.repo.email_taken(self.db, data.email, exclude_user_id=user.id):
                raise HTTPException(status_code=400, detail="Email already in use")
            user.email = data.email
        if data.name is not None:
            if not data.name.strip():
                raise HTTPException(status_code=400, detail="Name cannot be empty")
            user.name = data.name.strip()
        if data.phone is not None:
            user.phone = data.phone or None
        if data.address is not None:
            user.address = data.address.strip() or None

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        self._apply_profile(user, data)
        self.db.commit()
        self.db.refresh(user)
        return user

    # ========================================================================
    # ADMIN
    # ========================================================================

    def admin_list_users(self, page: int, limit: int, search: Optional[str] = None):
        return paginate(self.repo.get_admin_query(self.db, search), page, limit)

    def admin_get_user(self, user_id: int) -> User:
        user = self.repo.get_by_id(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    def admin_update_user(self, user_id: int, data: AdminUserUpdate, admin: User) -> User:
        user = self.admin_get_user(user_id)
        self._apply_profile(user, data)
        if data.isAdmin is not None:
            if user.id == admin.id and not data.isAdmin:
                raise HTTPException(status_code=400, detail="You cannot remove your own admin role")
            user.is_admin = data.isAdmin
        if data.isVerified is not None:
            user.is_verified = data.isVerified
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"🛠️ Admin {admin.id} updated user {user.id}")
        return user

    async def admin_delete_user(self, user_id: int, admin: User) -> None:
        """Removes the user with their measurements, orders and notifications"""
        user = self.admin_get_user(user_id)
        if user.id == admin.id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")

        order_ids = [order.id for order in user.orders]
        photo_keys = [m.photo_key for m in user.measurements if m.photo_key]

        self.repo.delete(self.db, user)
        logger.info(f"🗑️ Admin {admin.id} deleted user {user_id} with {len(order_ids)} orders")

        for order_id in order_ids:
            await cancel_order_notifications(self.queue, order_id)
        for key in photo_keys:
            image_storage.delete_image(key)

    def dashboard_stats(self) -> DashboardStats:
        dash = DashboardRepository()
        styles, fabrics = dash.count_catalog(self.db)
        return DashboardStats(
            totalUsers=dash.count_users(self.db),
            totalOrders=dash.count_orders(self.db),
            ordersByStatus=dash.orders_by(self.db, Order.status),
            ordersByPaymentStatus=dash.orders_by(self.db, Order.payment_status),
            totalRevenue=dash.paid_revenue(self.db),
            upcomingAppointments=dash.upcoming_appointments(self.db, business_now()),
            totalStyles=styles,
            totalFabrics=fabrics,
            recentOrders=[
                RecentOrder(
                    id=o.id,
                    customerName=o.customer_name,
                    totalPrice=o.total_price,
                    status=o.status,
                    paymentStatus=o.payment_status,
                    createdAt=o.created_at,
                )
                for o in dash.recent_orders(self.db)
            ],
        )
