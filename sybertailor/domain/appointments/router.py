"""Appointment router - FastAPI endpoints for in-person fittings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user, require_admin
from ...database import get_db
from ...models import User
from ...services.job_queue import get_job_queue
from .schemas import (
    AppointmentAdminUpdate,
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentMessageResponse,
    AppointmentResponse,
    AppointmentStatus,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/order", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db), queue=Depends(get_job_queue)
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, queue)


def _list(appointments, pagination=None) -> AppointmentListResponse:
    return AppointmentListResponse(
        appointments=[AppointmentResponse.from_appointment(a) for a in appointments],
        pagination=pagination,
    )


# ============================================================================
# ADMIN OPERATIONS
# ============================================================================


@router.get("/admin/in-person", response_model=AppointmentListResponse)
async def admin_list_appointments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[AppointmentStatus] = Query(None),
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointments, pagination = service.admin_list(page, limit, status)
    return _list(appointments, pagination)


@router.get("/admin/in-person/date-range", response_model=AppointmentListResponse)
async def admin_appointments_in_range(
    start: str = Query(..., description="YYYY-MM-DD"),
    end: str = Query(..., description="YYYY-MM-DD"),
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments whose day falls within [start, end] (calendar view)"""
    return _list(service.admin_date_range(start, end))


@router.put("/admin/in-person/{appointment_id}", response_model=AppointmentMessageResponse)
async def admin_update_appointment(
    appointment_id: str,
    data: AppointmentAdminUpdate,
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.admin_update(appointment_id, data)
    return AppointmentMessageResponse(
        message="Appointment updated",
        appointment=AppointmentResponse.from_appointment(appointment),
    )


@router.delete("/admin/in-person/{appointment_id}", status_code=204)
async def admin_delete_appointment(
    appointment_id: str,
    _admin: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    await service.admin_delete(appointment_id)
    return Response(status_code=204)


# ============================================================================
# CLIENT OPERATIONS
# ============================================================================


@router.post("/in-person", response_model=AppointmentMessageResponse, status_code=201)
async def book_appointment(
    data: AppointmentCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book a fitting. Signed-in callers get the booking linked to their account."""
    appointment = await service.create_appointment(data, current_user)
    return AppointmentMessageResponse(
        message="Appointment booked successfully",
        appointment=AppointmentResponse.from_appointment(appointment),
    )


@router.get("/in-person", response_model=AppointmentListResponse)
async def list_my_appointments(
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _list(service.list_user_appointments(current_user))


@router.get("/in-person/{appointment_id}", response_model=AppointmentResponse)
async def get_my_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_appointment(
        service.get_user_appointment(appointment_id, current_user)
    )


@router.post("/in-person/{appointment_id}/cancel", response_model=AppointmentMessageResponse)
async def cancel_my_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.cancel_appointment(appointment_id, current_user)
    return AppointmentMessageResponse(
        message="Appointment cancelled",
        appointment=AppointmentResponse.from_appointment(appointment),
    )
