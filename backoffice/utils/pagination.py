"""
Utilidades de paginación para los endpoints de listado.
"""

import math
from typing import Any, Dict

from fastapi import Query

from backoffice.core.config import get_settings

settings = get_settings()


class PaginationParams:
    """
    Parámetros de paginación recibidos por query string.

    Se usa como dependencia de FastAPI: ``params: PaginationParams = Depends()``.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Número de página"),
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=settings.MAX_PAGE_SIZE,
            description="Cantidad de registros por página",
        ),
    ):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    """
    Calcula los metadatos de paginación.

    Args:
        page: Página actual (1-based)
        limit: Registros por página
        total: Total de registros

    Returns:
        Dict: page, limit, total, total_pages, has_next, has_prev
    """
    total_pages = math.ceil(total / limit) if limit > 0 else 0

    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }
