# app/shared/database/pagination.py
import math
from typing import Any, List, Tuple

from sqlalchemy.orm import Query

from app.config.settings import settings


def clamp_page(page: int, size: int) -> Tuple[int, int]:
    page = max(page or 1, 1)
    size = min(max(size or settings.default_page_size, 1), settings.max_page_size)
    return page, size


def paginate(query: Query, page: int, size: int) -> Tuple[List[Any], int, int, int, int]:
    """Devuelve (items, total, page, size, pages) para un query ya ordenado"""
    page, size = clamp_page(page, size)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * size).limit(size).all()
    pages = math.ceil(total / size) if total else 0
    return items, total, page, size, pages
