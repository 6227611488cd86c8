"""Catalog routers - Public browsing and admin management of styles and fabrics"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ...schemas import MessageResponse
from .schemas import FabricMessageResponse, FabricResponse, StyleMessageResponse, StyleResponse
from .service import CatalogService

logger = logging.getLogger(__name__)

styles_router = APIRouter(prefix="/api/styles", tags=["Styles"])
fabrics_router = APIRouter(prefix="/api/fabrics", tags=["Fabrics"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


# ============================================================================
# STYLES
# ============================================================================


@styles_router.get("", response_model=list[StyleResponse])
async def list_styles(
    gender: Optional[str] = Query(None),
    ageGroup: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    service: CatalogService = Depends(get_catalog_service),
):
    return [StyleResponse.from_style(s) for s in service.list_styles(gender, ageGroup, search)]


@styles_router.get("/{style_id}", response_model=StyleResponse)
async def get_style(style_id: int, service: CatalogService = Depends(get_catalog_service)):
    return StyleResponse.from_style(service.get_style(style_id))


@styles_router.post("", response_model=StyleMessageResponse, status_code=201)
async def create_style(
    title: str = Form(...),
    gender: str = Form(...),
    price: float = Form(..., ge=0),
    yardsRequired: float = Form(0, ge=0),
    type: Optional[str] = Form(None),
    ageGroup: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    details: Optional[str] = Form(None),
    colour: Optional[str] = Form(None),
    recommendedMaterials: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    image: UploadFile = File(...),
    admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    """Multipart form; comma-separated type / recommendedMaterials / tags"""
    fields = {
        "title": title,
        "type": type,
        "gender": gender,
        "ageGroup": ageGroup,
        "price": price,
        "yardsRequired": yardsRequired,
        "description": description,
        "details": details,
        "colour": colour,
        "recommendedMaterials": recommendedMaterials,
        "tags": tags,
    }
    style = await service.create_style(fields, image, admin)
    return StyleMessageResponse(message="Style added successfully", style=StyleResponse.from_style(style))


@styles_router.put("/{style_id}", response_model=StyleMessageResponse)
async def update_style(
    style_id: int,
    title: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    price: Optional[float] = Form(None, ge=0),
    yardsRequired: Optional[float] = Form(None, ge=0),
    type: Optional[str] = Form(None),
    ageGroup: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    details: Optional[str] = Form(None),
    colour: Optional[str] = Form(None),
    recommendedMaterials: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    """Only the fields sent are changed; a new image replaces the stored one"""
    fields = {
        "title": title,
        "type": type,
        "gender": gender,
        "ageGroup": ageGroup,
        "price": price,
        "yardsRequired": yardsRequired,
        "description": description,
        "details": details,
        "colour": colour,
        "recommendedMaterials": recommendedMaterials,
        "tags": tags,
    }
    style = await service.update_style(style_id, fields, image)
    return StyleMessageResponse(message="Style updated", style=StyleResponse.from_style(style))


@styles_router.delete("/{style_id}", response_model=MessageResponse)
async def delete_style(
    style_id: int,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    service.delete_style(style_id)
    return MessageResponse(message="Style removed")


# ============================================================================
# FABRICS
# ============================================================================


@fabrics_router.get("", response_model=list[FabricResponse])
async def list_fabrics(
    material: Optional[str] = Query(None),
    color: Optional[str] = Query(None),
    quality: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    service: CatalogService = Depends(get_catalog_service),
):
    fabrics = service.list_fabrics(material, color, quality, search)
    return [FabricResponse.from_fabric(f) for f in fabrics]


@fabrics_router.get("/{fabric_id}", response_model=FabricResponse)
async def get_fabric(fabric_id: int, service: CatalogService = Depends(get_catalog_service)):
    return FabricResponse.from_fabric(service.get_fabric(fabric_id))


@fabrics_router.post("", response_model=FabricMessageResponse, status_code=201)
async def create_fabric(
    title: str = Form(...),
    price: float = Form(..., ge=0),
    material: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    quality: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    details: Optional[str] = Form(None),
    width: Optional[str] = Form(None),
    weight: Optional[str] = Form(None),
    care: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    image: UploadFile = File(...),
    admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    fields = {
        "title": title,
        "material": material,
        "color": color,
        "quality": quality,
        "price": price,
        "description": description,
        "details": details,
        "width": width,
        "weight": weight,
        "care": care,
        "tags": tags,
    }
    fabric = await service.create_fabric(fields, image, admin)
    return FabricMessageResponse(
        message="Fabric added successfully", fabric=FabricResponse.from_fabric(fabric)
    )


@fabrics_router.put("/{fabric_id}", response_model=FabricMessageResponse)
async def update_fabric(
    fabric_id: int,
    title: Optional[str] = Form(None),
    price: Optional[float] = Form(None, ge=0),
    material: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    quality: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    details: Optional[str] = Form(None),
    width: Optional[str] = Form(None),
    weight: Optional[str] = Form(None),
    care: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    fields = {
        "title": title,
        "material": material,
        "color": color,
        "quality": quality,
        "price": price,
        "description": description,
        "details": details,
        "width": width,
        "weight": weight,
        "care": care,
        "tags": tags,
    }
    fabric = await service.update_fabric(fabric_id, fields, image)
    return FabricMessageResponse(message="Fabric updated", fabric=FabricResponse.from_fabric(fabric))


@fabrics_router.delete("/{fabric_id}", response_model=MessageResponse)
async def delete_fabric(
    fabric_id: int,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    service.delete_fabric(fabric_id)
    return MessageResponse(message="Fabric removed")
