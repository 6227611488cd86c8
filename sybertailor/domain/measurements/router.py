"""Measurement router - Owner CRUD and admin review of measurement profiles"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from ...schemas import MessageResponse
from .schemas import (
    HasMeasurementResponse,
    MeasurementListResponse,
    MeasurementMessageResponse,
    MeasurementResponse,
)
from .service import MeasurementService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/measurements", tags=["Measurements"])


def get_measurement_service(db: Session = Depends(get_db)) -> MeasurementService:
    """Dependency injection for MeasurementService"""
    return MeasurementService(db)


# ============================================================================
# ADMIN OPERATIONS
# ============================================================================


@router.get("/admin", response_model=MeasurementListResponse)
async def admin_list_measurements(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    gender: Optional[str] = Query(None),
    unit: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    _admin: User = Depends(require_admin),
    service: MeasurementService = Depends(get_measurement_service),
):
    """Filter by gender/unit ("All" means no filter); search matches owner name and e-mail too"""
    measurements, pagination = service.admin_list(page, limit, gender, unit, search)
    return MeasurementListResponse(
        measurements=[MeasurementResponse.from_measurement(m) for m in measurements],
        pagination=pagination,
    )


@router.get("/admin/{measurement_id}", response_model=MeasurementMessageResponse)
async def admin_get_measurement(
    measurement_id: int,
    _admin: User = Depends(require_admin),
    service: MeasurementService = Depends(get_measurement_service),
):
    measurement = service.admin_get(measurement_id)
    return MeasurementMessageResponse(
        message="Measurement retrieved successfully",
        measurement=MeasurementResponse.from_measurement(measurement),
    )


@router.put("/admin/{measurement_id}", response_model=MeasurementMessageResponse)
async def admin_update_measurement(
    measurement_id: int,
    name: Optional[str] = Form(None),
    unit: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    size: Optional[str] = Form(None),
    ageBracket: Optional[str] = Form(None),
    data: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    _admin: User = Depends(require_admin),
    service: MeasurementService = Depends(get_measurement_service),
):
    fields = {"name": name, "unit": unit, "gender": gender, "size": size, "ageBracket": ageBracket, "data": data}
    measurement = await service.admin_update(measurement_id, fields, photo)
    return MeasurementMessageResponse(
        message="Measurement updated successfully",
        measurement=MeasurementResponse.from_measurement(measurement),
    )


@router.delete("/admin/{measurement_id}", response_model=MessageResponse)
async def admin_delete_measurement(
    measurement_id: int,
    _admin: User = Depends(require_admin),
    service: MeasurementService = Depends(get_measurement_service),
):
    service.admin_delete(measurement_id)
    return MessageResponse(message="Measurement deleted")


# ============================================================================
# OWNER OPERATIONS
# ============================================================================


@router.post("", response_model=MeasurementResponse, status_code=201)
async def create_measurement(
    name: str = Form(...),
    unit: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    size: Optional[str] = Form(None),
    ageBracket: Optional[str] = Form(None),
    data: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    service: MeasurementService = Depends(get_measurement_service),
):
    """Multipart form; `data` is a JSON object such as {"chest": 40, "waist": 32}"""
    fields = {"name": name, "unit": unit, "gender": gender, "size": size, "ageBracket": ageBracket, "data": data}
    measurement = await service.create(fields, photo, current_user)
    return MeasurementResponse.from_measurement(measurement)


@router.get("", response_model=list[MeasurementResponse])
async def list_measurements(
    current_user: User = Depends(get_current_user),
    service: MeasurementService = Depends(get_measurement_service),
):
    return [MeasurementResponse.from_measurement(m) for m in service.list_mine(current_user)]


@router.get("/has", response_model=HasMeasurementResponse)
async def has_measurement(
    current_user: User = Depends(get_current_user),
    service: MeasurementService = Depends(get_measurement_service),
):
    return HasMeasurementResponse(hasMeasurement=service.has_any(current_user))


@router.get("/{measurement_id}", response_model=MeasurementResponse)
async def get_measurement(
    measurement_id: int,
    current_user: User = Depends(get_current_user),
    service: MeasurementService = Depends(get_measurement_service),
):
    return MeasurementResponse.from_measurement(service.get_mine(measurement_id, current_user))


@router.put("/{measurement_id}", response_model=MeasurementResponse)
async def update_measurement(
    measurement_id: int,
    name: Optional[str] = Form(None),
    unit: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    size: Optional[str] = Form(None),
    ageBracket: Optional[str] = Form(None),
    data: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    service: MeasurementService = Depends(get_measurement_service),
):
    fields = {"name": name, "unit": unit, "gender": gender, "size": size, "ageBracket": ageBracket, "data": data}
    measurement = await service.update_mine(measurement_id, fields, photo, current_user)
    return MeasurementResponse.from_measurement(measurement)


@router.delete("/{measurement_id}", response_model=MessageResponse)
async def delete_measurement(
    measurement_id: int,
    current_user: User = Depends(get_current_user),
    service: MeasurementService = Depends(get_measurement_service),
):
    service.delete_mine(measurement_id, current_user)
    return MessageResponse(message="Measurement deleted")
