"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date as date_type, datetime, time as time_type
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Appointment
from ...shared.pagination import PaginationMeta
from ...shared.validators import validate_email, validate_phone

AppointmentStatus = Literal["pending", "confirmed", "in-progress", "completed", "cancelled"]

TIME_FORMATS = ("%H:%M", "%I:%M %p", "%I:%M%p", "%I %p", "%I%p")


def parse_appointment_date(value: str) -> date_type:
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError) as e:
        raise ValueError("Date must be in YYYY-MM-DD format") from e


def parse_appointment_time(value: str) -> time_type:
    """Accepts 24-hour "14:30" or 12-hour "2:30 PM" """
    cleaned = " ".join(str(value).strip().upper().split())
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).time()
        except ValueError:
            continue
    raise ValueError("Time must look like 14:30 or 2:30 PM")


class AppointmentCreate(BaseModel):
    """Schema for booking an in-person fitting"""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    email: Optional[str] = None
    address: str = Field(..., min_length=1, max_length=1000)
    date: str
    time: str
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("name", "address")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("This field is required")
        return v.strip()

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else None

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        parse_appointment_date(v)
        return v.strip()

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        parse_appointment_time(v)
        return " ".join(v.strip().split())


class AppointmentAdminUpdate(BaseModel):
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)
    date: Optional[str] = None
    time: Optional[str] = None

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        if v is not None:
            parse_appointment_date(v)
            return v.strip()
        return v

    @field_validator("time")
    @classmethod
    def check_time(cls, v):
        if v is not None:
            parse_appointment_time(v)
            return " ".join(v.strip().split())
        return v


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: str
    name: str
    phone: str
    email: Optional[str] = None
    address: str
    date: date_type
    time: str
    scheduledAt: datetime
    status: str
    notes: Optional[str] = None
    userId: Optional[int] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.public_id,
            name=appointment.name,
            phone=appointment.phone,
            email=appointment.email,
            address=appointment.address,
            date=appointment.date,
            time=appointment.time,
            scheduledAt=appointment.scheduled_at,
            status=appointment.status,
            notes=appointment.notes,
            userId=appointment.user_id,
            createdAt=appointment.created_at,
        )


class AppointmentMessageResponse(BaseModel):
    message: str
    appointment: AppointmentResponse


class AppointmentListResponse(BaseModel):
    appointments: list[AppointmentResponse]
    pagination: Optional[PaginationMeta] = None
