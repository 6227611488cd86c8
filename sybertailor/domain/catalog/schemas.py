"""Catalog domain schemas - Style and fabric responses"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ...models import Fabric, Style


class StyleResponse(BaseModel):
    id: int
    title: str
    type: list[str] = []
    gender: str
    ageGroup: Optional[str] = None
    price: float
    yardsRequired: float
    image: str
    description: Optional[str] = None
    details: Optional[str] = None
    colour: Optional[str] = None
    recommendedMaterials: list[str] = []
    tags: list[str] = []
    addedBy: Optional[int] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_style(cls, style: Style) -> "StyleResponse":
        return cls(
            id=style.id,
            title=style.title,
            type=style.type or [],
            gender=style.gender,
            ageGroup=style.age_group,
            price=style.price,
            yardsRequired=style.yards_required or 0,
            image=style.image,
            description=style.description,
            details=style.details,
            colour=style.colour,
            recommendedMaterials=style.recommended_materials or [],
            tags=style.tags or [],
            addedBy=style.added_by,
            createdAt=style.created_at,
            updatedAt=style.updated_at,
        )


class FabricResponse(BaseModel):
    id: int
    title: str
    material: str
    color: str
    quality: str
    price: float
    image: str
    description: Optional[str] = None
    details: Optional[str] = None
    width: Optional[str] = None
    weight: str
    care: str
    tags: list[str] = []
    addedBy: Optional[int] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_fabric(cls, fabric: Fabric) -> "FabricResponse":
        return cls(
            id=fabric.id,
            title=fabric.title,
            material=fabric.material,
            color=fabric.color,
            quality=fabric.quality,
            price=fabric.price,
            image=fabric.image,
            description=fabric.description,
            details=fabric.details,
            width=fabric.width,
            weight=fabric.weight,
            care=fabric.care,
            tags=fabric.tags or [],
            addedBy=fabric.added_by,
            createdAt=fabric.created_at,
            updatedAt=fabric.updated_at,
        )


class StyleMessageResponse(BaseModel):
    message: str
    style: StyleResponse


class FabricMessageResponse(BaseModel):
    message: str
    fabric: FabricResponse
