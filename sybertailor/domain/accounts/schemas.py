"""Account domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import User
from ...security_utils import check_password_strength
from ...shared.pagination import PaginationMeta
from ...shared.validators import validate_email, validate_phone


def _strong_password(v: str) -> str:
    problem = check_password_strength(v)
    if problem:
        raise ValueError(problem)
    return v


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str
    password: str = Field(..., max_length=128)

    @field_validator("name")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return _strong_password(v)


class RegisterResponse(BaseModel):
    message: str
    uniqueId: str


class VerifyEmailRequest(BaseModel):
    email: str
    code: str = Field(..., min_length=1, max_length=10)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class EmailRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class ResetPasswordRequest(BaseModel):
    id: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)
    password: str = Field(..., max_length=128)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return _strong_password(v)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=1000)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v) if v else v


class AdminUserUpdate(ProfileUpdate):
    isAdmin: Optional[bool] = None
    isVerified: Optional[bool] = None


class UserResponse(BaseModel):
    """Public view of an account - never includes hashes or tokens"""

    id: int
    uniqueId: str
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    isVerified: bool
    isAdmin: bool
    createdAt: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            uniqueId=user.public_id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            address=user.address,
            isVerified=bool(user.is_verified),
            isAdmin=bool(user.is_admin),
            createdAt=user.created_at,
        )


class AuthResponse(BaseModel):
    message: str
    user: UserResponse


class UserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: PaginationMeta


class RecentOrder(BaseModel):
    id: int
    customerName: Optional[str] = None
    totalPrice: float
    status: str
    paymentStatus: str
    createdAt: Optional[datetime] = None


class DashboardStats(BaseModel):
    totalUsers: int
    totalOrders: int
    ordersByStatus: dict[str, int]
    ordersByPaymentStatus: dict[str, int]
    totalRevenue: float
    upcomingAppointments: int
    totalStyles: int
    totalFabrics: int
    recentOrders: list[RecentOrder]
