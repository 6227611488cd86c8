"""Catalog repository - Database operations for styles and fabrics"""

from typing import Optional

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from ...models import Fabric, Style


class CatalogRepository:
    """Repository for catalog database operations"""

    @staticmethod
    def get_style(db: Session, style_id: int) -> Optional[Style]:
        return db.query(Style).filter(Style.id == style_id).first()

    @staticmethod
    def get_fabric(db: Session, fabric_id: int) -> Optional[Fabric]:
        return db.query(Fabric).filter(Fabric.id == fabric_id).first()

    @staticmethod
    def title_taken(db: Session, model, title: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(model.id).filter(func.lower(model.title) == title.strip().lower())
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def list_styles(
        db: Session,
        gender: Optional[str] = None,
        age_group: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Style]:
        query = db.query(Style)
        if gender:
            query = query.filter(Style.gender == gender)
        if age_group:
            query = query.filter(Style.age_group == age_group)
        if search:
            term = f"%{search.strip()}%"
            # JSON list columns are matched on their serialized text
            query = query.filter(
                or_(
                    Style.title.ilike(term),
                    cast(Style.tags, String).ilike(term),
                    cast(Style.type, String).ilike(term),
                )
            )
        return query.order_by(Style.created_at.desc(), Style.id.desc()).all()

    @staticmethod
    def list_fabrics(
        db: Session,
        material: Optional[str] = None,
        color: Optional[str] = None,
        quality: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Fabric]:
        query = db.query(Fabric)
        if material:
            query = query.filter(Fabric.material == material)
        if color:
            query = query.filter(Fabric.color == color)
        if quality:
            query = query.filter(Fabric.quality == quality)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(Fabric.title.ilike(term), cast(Fabric.tags, String).ilike(term)))
        return query.order_by(Fabric.created_at.desc(), Fabric.id.desc()).all()

    @staticmethod
    def save(db: Session, item):
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def delete(db: Session, item) -> None:
        db.delete(item)
        db.commit()
