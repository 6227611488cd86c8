"""Catalog service - Admin-owned styles and fabrics with their images"""

import logging
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import (
    FABRIC_CARE,
    FABRIC_COLORS,
    FABRIC_MATERIALS,
    FABRIC_QUALITIES,
    FABRIC_WEIGHTS,
    STYLE_AGE_GROUPS,
    STYLE_GENDERS,
    Fabric,
    Style,
    User,
)
from ...shared.validators import split_csv, validate_choice
from ...utils import image_storage
from .repository import CatalogRepository

logger = logging.getLogger(__name__)

# form field -> column
STYLE_COLUMNS = {
    "title": "title",
    "type": "type",
    "gender": "gender",
    "ageGroup": "age_group",
    "price": "price",
    "yardsRequired": "yards_required",
    "description": "description",
    "details": "details",
    "colour": "colour",
    "recommendedMaterials": "recommended_materials",
    "tags": "tags",
}
STYLE_LIST_FIELDS = ("type", "recommendedMaterials", "tags")
STYLE_CHOICES = {"gender": STYLE_GENDERS, "ageGroup": STYLE_AGE_GROUPS}

FABRIC_COLUMNS = {
    "title": "title",
    "material": "material",
    "color": "color",
    "quality": "quality",
    "price": "price",
    "description": "description",
    "details": "details",
    "width": "width",
    "weight": "weight",
    "care": "care",
    "tags": "tags",
}
FABRIC_LIST_FIELDS = ("tags",)
FABRIC_CHOICES = {
    "material": FABRIC_MATERIALS,
    "color": FABRIC_COLORS,
    "quality": FABRIC_QUALITIES,
    "weight": FABRIC_WEIGHTS,
    "care": FABRIC_CARE,
}


def _clean_fields(fields: dict, list_fields, choices: dict) -> dict:
    """Drop unset values, split comma lists and check enumerations (400 on a bad value)"""
    cleaned = {}
    for name, value in fields.items():
        if value is None:
            continue
        if name in list_fields:
            value = split_csv(value)
        elif isinstance(value, str):
            value = value.strip()
        if name in choices and value == "":
            value = None
        elif name in choices:
            try:
                validate_choice(value, choices[name], name)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
        cleaned[name] = value
    if "title" in cleaned and not cleaned["title"]:
        raise HTTPException(status_code=400, detail="Title is required")
    if "price" in cleaned and cleaned["price"] < 0:
        raise HTTPException(status_code=400, detail="Price cannot be negative")
    return cleaned


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    # ========================================================================
    # SHARED
    # ========================================================================

    async def _create(self, model, label: str, folder: str, columns: dict, values: dict,
                      image: UploadFile, admin: User):
        uploaded = await image_storage.upload_file(image, folder)

        if self.repo.title_taken(self.db, model, values["title"]):
            image_storage.delete_image(uploaded["key"])
            raise HTTPException(status_code=400, detail=f"A {label} with this title already exists.")

        item = model(
            **{columns[name]: value for name, value in values.items()},
            image=uploaded["url"],
            image_key=uploaded["key"],
            added_by=admin.id,
        )
        try:
            item = self.repo.save(self.db, item)
        except IntegrityError as e:
            self.db.rollback()
            image_storage.delete_image(uploaded["key"])
            raise HTTPException(
                status_code=400, detail=f"A {label} with this title already exists."
            ) from e

        logger.info(f"✅ Admin {admin.id} added {label} {item.id}: {item.title}")
        return item

    async def _update(self, item, model, label: str, folder: str, columns: dict, values: dict,
                      image: Optional[UploadFile]):
        if "title" in values and self.repo.title_taken(self.db, model, values["title"], exclude_id=item.id):
            raise HTTPException(status_code=400, detail=f"A {label} with this title already exists.")

        uploaded = None
        if image is not None and image.filename:
            uploaded = await image_storage.upload_file(image, folder)

        old_key = item.image_key
        for name, value in values.items():
            setattr(item, columns[name], value)
        if uploaded:
            item.image = uploaded["url"]
            item.image_key = uploaded["key"]

        try:
            item = self.repo.save(self.db, item)
        except IntegrityError as e:
            self.db.rollback()
            if uploaded:
                image_storage.delete_image(uploaded["key"])
            raise HTTPException(
                status_code=400, detail=f"A {label} with this title already exists."
            ) from e

        if uploaded and old_key:
            image_storage.delete_image(old_key)
        logger.info(f"✏️ Updated {label} {item.id}")
        return item

    def _delete(self, item, label: str) -> None:
        key = item.image_key
        item_id = item.id
        self.repo.delete(self.db, item)
        image_storage.delete_image(key)
        logger.info(f"🗑️ Deleted {label} {item_id}")

    # ========================================================================
    # STYLES
    # ========================================================================

    def list_styles(self, gender=None, age_group=None, search=None) -> list[Style]:
        return self.repo.list_styles(self.db, gender, age_group, search)

    def get_style(self, style_id: int) -> Style:
        style = self.repo.get_style(self.db, style_id)
        if not style:
            raise HTTPException(status_code=404, detail="Style not found")
        return style

    async def create_style(self, fields: dict, image: UploadFile, admin: User) -> Style:
        values = _clean_fields(fields, STYLE_LIST_FIELDS, STYLE_CHOICES)
        if not values.get("gender"):
            raise HTTPException(status_code=400, detail="Gender is required")
        values.setdefault("yardsRequired", 0)
        return await self._create(Style, "style", "styles", STYLE_COLUMNS, values, image, admin)

    async def update_style(self, style_id: int, fields: dict, image: Optional[UploadFile]) -> Style:
        style = self.get_style(style_id)
        values = _clean_fields(fields, STYLE_LIST_FIELDS, STYLE_CHOICES)
        if "gender" in values and values["gender"] is None:
            raise HTTPException(status_code=400, detail="Gender is required")
        return await self._update(style, Style, "style", "styles", STYLE_COLUMNS, values, image)

    def delete_style(self, style_id: int) -> None:
        self._delete(self.get_style(style_id), "style")

    # ========================================================================
    # FABRICS
    # ========================================================================

    def list_fabrics(self, material=None, color=None, quality=None, search=None) -> list[Fabric]:
        return self.repo.list_fabrics(self.db, material, color, quality, search)

    def get_fabric(self, fabric_id: int) -> Fabric:
        fabric = self.repo.get_fabric(self.db, fabric_id)
        if not fabric:
            raise HTTPException(status_code=404, detail="Fabric not found")
        return fabric

    async def create_fabric(self, fields: dict, image: UploadFile, admin: User) -> Fabric:
        values = _clean_fields(fields, FABRIC_LIST_FIELDS, FABRIC_CHOICES)
        # Empty enumerations fall back to the column defaults
        for name in FABRIC_CHOICES:
            if name in values and values[name] is None:
                values.pop(name)
        return await self._create(Fabric, "fabric", "fabrics", FABRIC_COLUMNS, values, image, admin)

    async def update_fabric(self, fabric_id: int, fields: dict, image: Optional[UploadFile]) -> Fabric:
        fabric = self.get_fabric(fabric_id)
        values = _clean_fields(fields, FABRIC_LIST_FIELDS, FABRIC_CHOICES)
        for name in FABRIC_CHOICES:
            if name in values and values[name] is None:
                values.pop(name)
        return await self._update(fabric, Fabric, "fabric", "fabrics", FABRIC_COLUMNS, values, image)

    def delete_fabric(self, fabric_id: int) -> None:
        self._delete(self.get_fabric(fabric_id), "fabric")
