"""Offset pagination shared by the admin listings"""

import math

from pydantic import BaseModel

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


def paginate(query, page: int = 1, limit: int = DEFAULT_PAGE_SIZE):
    """Return (items, PaginationMeta) for an ordered SQLAlchemy query"""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, PaginationMeta(
        page=page, limit=limit, total=total, pages=math.ceil(total / limit) if total else 0
    )
