"""
Endpoints de fornecedores.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from backoffice.api.dependencies import get_supplier_service
from backoffice.api.responses import success_response
from backoffice.api.v1.schemas import PerformanceRatingUpdate, SupplierCreate, SupplierUpdate
from backoffice.core.config import get_settings
from backoffice.services.supplier_service import SupplierService

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED, summary="Criar fornecedor")
async def create_supplier(
    payload: SupplierCreate,
    service: SupplierService = Depends(get_supplier_service),
) -> Dict[str, Any]:
    """
    Crea un fornecedor.

    El CNPJ, si viene, se valida (formato y dígitos verificadores); un CNPJ
    duplicado devuelve 409.
    """
    supplier = await service.create_supplier(payload.model_dump(exclude_none=True))
    return success_response(supplier, message="Fornecedor criado com sucesso")


@router.get("/", summary="Listar fornecedores")
async def list_suppliers(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.SUPPLIER_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="Razão social, nome fantasia, CNPJ ou email"),
    active_only: bool = Query(False),
    service: SupplierService = Depends(get_supplier_service),
) -> Dict[str, Any]:
    items, pagination = await service.list_suppliers(page, limit, search=search, active_only=active_only)
    return success_response(items, pagination=pagination)


@router.get("/cnpj/{cnpj}", summary="Buscar fornecedor por CNPJ")
async def get_supplier_by_cnpj(cnpj: str, service: SupplierService = Depends(get_supplier_service)) -> Dict[str, Any]:
    return success_response(await service.get_supplier_by_cnpj(cnpj))


@router.get("/{supplier_id}", summary="Obter fornecedor")
async def get_supplier(supplier_id: str, service: SupplierService = Depends(get_supplier_service)) -> Dict[str, Any]:
    return success_response(await service.get_supplier(supplier_id))


@router.put("/{supplier_id}", summary="Atualizar fornecedor")
async def update_supplier(
    supplier_id: str,
    payload: SupplierUpdate,
    service: SupplierService = Depends(get_supplier_service),
) -> Dict[str, Any]:
    supplier = await service.update_supplier(supplier_id, payload.model_dump(exclude_unset=True))
    return success_response(supplier, message="Fornecedor atualizado com sucesso")


@router.patch("/{supplier_id}/toggle-status", summary="Ativar/desativar fornecedor")
async def toggle_supplier_status(
    supplier_id: str, service: SupplierService = Depends(get_supplier_service)
) -> Dict[str, Any]:
    supplier = await service.toggle_status(supplier_id)
    message = "Fornecedor ativado" if supplier["active"] else "Fornecedor desativado"
    return success_response(supplier, message=message)


@router.patch("/{supplier_id}/performance-rating", summary="Atualizar avaliação")
async def update_performance_rating(
    supplier_id: str,
    payload: PerformanceRatingUpdate,
    service: SupplierService = Depends(get_supplier_service),
) -> Dict[str, Any]:
    supplier = await service.update_performance_rating(supplier_id, payload.rating)
    return success_response(supplier, message="Avaliação atualizada com sucesso")


@router.get("/{supplier_id}/stats", summary="Estatísticas do fornecedor")
async def get_supplier_stats(
    supplier_id: str, service: SupplierService = Depends(get_supplier_service)
) -> Dict[str, Any]:
    return success_response(await service.get_supplier_stats(supplier_id))
