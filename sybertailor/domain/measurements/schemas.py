"""Measurement domain schemas - Pydantic models and data parsing"""

import json
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Measurement
from ...shared.pagination import PaginationMeta


def parse_measurement_data(raw: Optional[str]) -> dict[str, float]:
    """
    Parse the multipart `data` field: a JSON object of named numeric values.

    Raises:
        ValueError: when it isn't an object or a value isn't a number
    """
    if raw is None or raw.strip() == "":
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError("data must be a JSON object") from e
    if not isinstance(parsed, dict):
        raise ValueError("data must be a JSON object")

    cleaned = {}
    for key, value in parsed.items():
        name = str(key).strip()
        if not name:
            raise ValueError("data field names cannot be empty")
        if isinstance(value, bool):
            raise ValueError(f"data.{name} must be a number")
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError as e:
                raise ValueError(f"data.{name} must be a number") from e
        if not isinstance(value, (int, float)):
            raise ValueError(f"data.{name} must be a number")
        cleaned[name] = float(value)
    return cleaned


class MeasurementOwner(BaseModel):
    id: int
    name: str
    email: str


class MeasurementResponse(BaseModel):
    id: int
    name: str
    unit: str
    gender: Optional[str] = None
    size: Optional[str] = None
    ageBracket: Optional[str] = None
    data: dict[str, float] = {}
    photoUrl: Optional[str] = None
    user: Optional[MeasurementOwner] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_measurement(cls, measurement: Measurement) -> "MeasurementResponse":
        owner = measurement.user
        return cls(
            id=measurement.id,
            name=measurement.name,
            unit=measurement.unit,
            gender=measurement.gender,
            size=measurement.size,
            ageBracket=measurement.age_bracket,
            data=measurement.data or {},
            photoUrl=measurement.photo_url,
            user=MeasurementOwner(id=owner.id, name=owner.name, email=owner.email) if owner else None,
            createdAt=measurement.created_at,
            updatedAt=measurement.updated_at,
        )


class MeasurementListResponse(BaseModel):
    measurements: list[MeasurementResponse]
    pagination: PaginationMeta


class MeasurementMessageResponse(BaseModel):
    message: str
    measurement: MeasurementResponse


class HasMeasurementResponse(BaseModel):
    hasMeasurement: bool
