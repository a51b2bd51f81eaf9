"""
Endpoints de clientes.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from backoffice.api.dependencies import get_customer_service
from backoffice.api.responses import success_response
from backoffice.api.v1.schemas import CustomerCreate, CustomerUpdate
from backoffice.services.customer_service import CustomerService
from backoffice.utils.pagination import PaginationParams

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED, summary="Criar cliente")
async def create_customer(
    payload: CustomerCreate,
    service: CustomerService = Depends(get_customer_service),
) -> Dict[str, Any]:
    """
    Crea un cliente.

    Si no se envía ``preferred_language`` se infiere del prefijo del
    teléfono y luego del país.
    """
    customer = await service.create_customer(payload.model_dump(exclude_none=True))
    return success_response(customer, message="Cliente criado com sucesso")


@router.get("/", summary="Listar clientes")
async def list_customers(
    params: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Nome, email ou telefone"),
    service: CustomerService = Depends(get_customer_service),
) -> Dict[str, Any]:
    items, pagination = await service.list_customers(params.page, params.limit, search=search)
    return success_response(items, pagination=pagination)


@router.get("/{customer_id}", summary="Obter cliente")
async def get_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)) -> Dict[str, Any]:
    return success_response(await service.get_customer(customer_id))


@router.put("/{customer_id}", summary="Atualizar cliente")
async def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    service: CustomerService = Depends(get_customer_service),
) -> Dict[str, Any]:
    customer = await service.update_customer(customer_id, payload.model_dump(exclude_unset=True))
    return success_response(customer, message="Cliente atualizado com sucesso")


@router.delete("/{customer_id}", summary="Excluir cliente")
async def delete_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)) -> Dict[str, Any]:
    await service.delete_customer(customer_id)
    return success_response(None, message="Cliente excluído com sucesso")
