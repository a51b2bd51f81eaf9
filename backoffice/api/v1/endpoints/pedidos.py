"""
Endpoints de pedidos.

Las rutas fijas (``/health``, ``/stats``, ``/shopify/...``, ``/process``)
se declaran antes de ``/{pedido_id}`` para que no sean capturadas por ella.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from backoffice.api.dependencies import get_pedido_service
from backoffice.api.responses import success_response
from backoffice.api.v1.schemas import PedidoCancel, PedidoCreate, PedidoUpdate, ShopifyOrderPayload
from backoffice.domain.models import StatusPedido
from backoffice.services.pedido_service import PedidoService
from backoffice.utils.pagination import PaginationParams

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", summary="Health do módulo de pedidos")
async def pedidos_health(service: PedidoService = Depends(get_pedido_service)) -> Dict[str, Any]:
    return success_response(await service.health_check())


@router.get("/stats", summary="Estatísticas de pedidos")
async def pedidos_stats(service: PedidoService = Depends(get_pedido_service)) -> Dict[str, Any]:
    """
    total_pedidos, pedidos_hoje, pedidos_mes, valor_total_mes y
    status_distribution. Día y mes en SCHEDULER_TIMEZONE.
    """
    return success_response(await service.get_stats())


@router.get("/shopify/{shopify_order_id}", summary="Buscar pedido pelo ID do Shopify")
async def get_pedido_by_shopify_id(
    shopify_order_id: str, service: PedidoService = Depends(get_pedido_service)
) -> Dict[str, Any]:
    return success_response(await service.get_by_shopify_id(shopify_order_id))


@router.post("/process", status_code=status.HTTP_202_ACCEPTED, summary="Processar pedido Shopify em background")
async def process_shopify_order(
    payload: ShopifyOrderPayload,
    service: PedidoService = Depends(get_pedido_service),
) -> Dict[str, Any]:
    """
    Encola un pedido Shopify crudo en ``order-processing``.

    La validación de negocio la hace el worker; la respuesta sólo confirma
    que el job fue aceptado.
    """
    job = await service.enqueue_shopify_order(payload.order)
    return success_response(job, message="Pedido enviado para processamento")


@router.get("/", summary="Listar pedidos")
async def list_pedidos(
    params: PaginationParams = Depends(),
    status_filter: Optional[StatusPedido] = Query(None, alias="status"),
    cliente_id: Optional[str] = Query(None),
    supplier_id: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    shopify_order_id: Optional[str] = Query(None),
    service: PedidoService = Depends(get_pedido_service),
) -> Dict[str, Any]:
    filters = {
        "status": status_filter.value if status_filter else None,
        "cliente_id": cliente_id,
        "supplier_id": supplier_id,
        "start_date": start_date,
        "end_date": end_date,
        "shopify_order_id": shopify_order_id,
    }
    items, pagination = await service.list_pedidos(
        params.page, params.limit, {key: value for key, value in filters.items() if value is not None}
    )
    return success_response(items, pagination=pagination)


@router.get("/{pedido_id}", summary="Obter pedido")
async def get_pedido(pedido_id: str, service: PedidoService = Depends(get_pedido_service)) -> Dict[str, Any]:
    return success_response(await service.get_pedido(pedido_id))


@router.post("/", status_code=status.HTTP_201_CREATED, summary="Criar pedido")
async def create_pedido(
    payload: PedidoCreate,
    service: PedidoService = Depends(get_pedido_service),
) -> Dict[str, Any]:
    pedido = await service.create_pedido(payload.model_dump())
    return success_response(pedido, message="Pedido criado com sucesso")


@router.put("/{pedido_id}", summary="Atualizar pedido")
async def update_pedido(
    pedido_id: str,
    payload: PedidoUpdate,
    service: PedidoService = Depends(get_pedido_service),
) -> Dict[str, Any]:
    pedido = await service.update_pedido(pedido_id, payload.model_dump(exclude_unset=True))
    return success_response(pedido, message="Pedido atualizado com sucesso")


@router.post("/{pedido_id}/cancel", summary="Cancelar pedido")
async def cancel_pedido(
    pedido_id: str,
    payload: Optional[PedidoCancel] = Body(None),
    service: PedidoService = Depends(get_pedido_service),
) -> Dict[str, Any]:
    motivo = payload.motivo if payload else None
    pedido = await service.cancel_pedido(pedido_id, motivo)
    return success_response(pedido, message="Pedido cancelado com sucesso")
