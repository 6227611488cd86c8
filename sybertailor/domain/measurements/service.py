"""Measurement service - Business logic for body-measurement profiles"""

import logging
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from ...models import MEASUREMENT_UNITS, Measurement, User
from ...shared.pagination import paginate
from ...utils import image_storage
from .repository import MeasurementRepository
from .schemas import parse_measurement_data

logger = logging.getLogger(__name__)

PHOTO_FOLDER = "measurements"


def _has_photo(photo: Optional[UploadFile]) -> bool:
    return photo is not None and bool(photo.filename)


class MeasurementService:
    """Service layer for measurement business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = MeasurementRepository()

    @staticmethod
    def _clean(fields: dict) -> dict:
        """Validate the multipart fields that were sent (400 on bad input)"""
        values = {}
        for name, value in fields.items():
            if value is None:
                continue
            if name == "data":
                try:
                    values["data"] = parse_measurement_data(value)
                except ValueError as e:
                    raise HTTPException(status_code=400, detail=str(e)) from e
                continue
            value = value.strip()
            if name == "name" and not value:
                raise HTTPException(status_code=400, detail="Name is required")
            if name == "unit" and value not in MEASUREMENT_UNITS:
                raise HTTPException(
                    status_code=400, detail=f"unit must be one of: {', '.join(MEASUREMENT_UNITS)}"
                )
            values[name] = value or None
        return values

    def _apply(self, measurement: Measurement, values: dict) -> None:
        columns = {"ageBracket": "age_bracket"}
        for name, value in values.items():
            setattr(measurement, columns.get(name, name), value)

    async def _save_with_photo(self, measurement: Measurement, photo: Optional[UploadFile]) -> Measurement:
        """Persist, swapping in a new photo when one was sent"""
        uploaded = None
        old_key = measurement.photo_key
        if _has_photo(photo):
            uploaded = await image_storage.upload_file(photo, PHOTO_FOLDER)
            measurement.photo_url = uploaded["url"]
            measurement.photo_key = uploaded["key"]

        try:
            measurement = self.repo.save(self.db, measurement)
        except Exception:
            self.db.rollback()
            if uploaded:
                image_storage.delete_image(uploaded["key"])
            raise

        if uploaded and old_key:
            image_storage.delete_image(old_key)
        return measurement

    # ========================================================================
    # OWNER OPERATIONS
    # ========================================================================

    async def create(self, fields: dict, photo: Optional[UploadFile], user: User) -> Measurement:
        values = self._clean(fields)
        if not values.get("name"):
            raise HTTPException(status_code=400, detail="Name is required")
        values.setdefault("unit", "cm")
        values.setdefault("data", {})

        measurement = Measurement(user_id=user.id)
        self._apply(measurement, values)
        measurement = await self._save_with_photo(measurement, photo)
        logger.info(f"📏 User {user.id} saved measurement {measurement.id}")
        return measurement

    def list_mine(self, user: User) -> list[Measurement]:
        return self.repo.list_for_user(self.db, user.id)

    def has_any(self, user: User) -> bool:
        return self.repo.user_has_any(self.db, user.id)

    def get_mine(self, measurement_id: int, user: User) -> Measurement:
        measurement = self.repo.get_for_user(self.db, measurement_id, user.id)
        if not measurement:
            raise HTTPException(status_code=404, detail="Measurement not found")
        return measurement

    async def update_mine(
        self, measurement_id: int, fields: dict, photo: Optional[UploadFile], user: User
    ) -> Measurement:
        measurement = self.get_mine(measurement_id, user)
        self._apply(measurement, self._clean(fields))
        return await self._save_with_photo(measurement, photo)

    def delete_mine(self, measurement_id: int, user: User) -> None:
        measurement = self.get_mine(measurement_id, user)
        self._delete(measurement)

    def _delete(self, measurement: Measurement) -> None:
        key = measurement.photo_key
        measurement_id = measurement.id
        self.repo.delete(self.db, measurement)
        if key:
            image_storage.delete_image(key)
        logger.info(f"🗑️ Deleted measurement {measurement_id}")

    # ========================================================================
    # ADMIN OPERATIONS
    # ========================================================================

    def admin_list(self, page: int, limit: int, gender=None, unit=None, search=None):
        return paginate(self.repo.get_admin_query(self.db, gender, unit, search), page, limit)

    def admin_get(self, measurement_id: int) -> Measurement:
        measurement = self.repo.get(self.db, measurement_id)
        if not measurement:
            raise HTTPException(status_code=404, detail="Measurement not found")
        return measurement

    async def admin_update(
        self, measurement_id: int, fields: dict, photo: Optional[UploadFile]
    ) -> Measurement:
        measurement = self.admin_get(measurement_id)
        self._apply(measurement, self._clean(fields))
        return await self._save_with_photo(measurement, photo)

    def admin_delete(self, measurement_id: int) -> None:
        self._delete(self.admin_get(measurement_id))
