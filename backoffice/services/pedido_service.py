"""
PedidoService: ciclo de vida de los pedidos.

Creación manual y desde Shopify, actualización con invalidación de cache,
cancelación, estadísticas cacheadas y encolado de procesamiento.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from backoffice.core.config import get_settings
from backoffice.core.redis_client import delete_cache, get_cached_json, set_cached_json
from backoffice.db.repositories import CustomerRepository, PedidoRepository
from backoffice.domain.models import CustomerDomain, PedidoDomain, PedidoItemDomain, StatusPedido
from backoffice.domain.models.pedido import FINAL_STATUSES, append_cancellation_note, can_cancel
from backoffice.domain.value_objects import Money
from backoffice.services.customer_service import CustomerService
from backoffice.utils.error_handler import ConflictException, NotFoundException, ValidationException
from backoffice.utils.pagination import build_pagination
from backoffice.utils.time_utils import generate_order_number, start_of_day, start_of_month
from backoffice.workers.queue import (
    JOB_PROCESS_NEW_ORDER,
    JOB_UPDATE_ORDER_STATUS,
    ORDER_PROCESSING_QUEUE,
    JobQueue,
    get_queue,
)

settings = get_settings()
logger = logging.getLogger(__name__)

STATS_CACHE_KEY = "pedidos:stats"

UPDATABLE_FIELDS = ("status", "codigo_rastreamento", "observacoes", "data_entrega_prevista")

ORDER_NUMBER_ATTEMPTS = 5


def pedido_cache_key(pedido_id: str) -> str:
    return f"pedido:{pedido_id}"


def is_order_number_collision(exc: IntegrityError) -> bool:
    """Indica si la violación de integridad viene del índice único de numero_pedido."""
    return "numero_pedido" in str(exc.orig if exc.orig is not None else exc)


class PedidoService:
    """Operaciones de negocio sobre pedidos."""

    def __init__(
        self,
        repository: Optional[PedidoRepository] = None,
        customer_repository: Optional[CustomerRepository] = None,
        customer_service: Optional[CustomerService] = None,
        order_queue: Optional[JobQueue] = None,
    ):
        self.repository = repository or PedidoRepository()
        self.customer_repository = customer_repository or CustomerRepository()
        self.customer_service = customer_service or CustomerService(self.customer_repository)
        self._order_queue = order_queue

    @property
    def order_queue(self) -> JobQueue:
        if self._order_queue is None:
            self._order_queue = get_queue(ORDER_PROCESSING_QUEUE)
        return self._order_queue

    async def health_check(self) -> Dict[str, Any]:
        return await self.repository.health_check()

    async def list_pedidos(
        self, page: int, limit: int, filters: Optional[Dict[str, Any]] = None
    ) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        offset = (page - 1) * limit
        items, total = await self.repository.list(offset, limit, filters=filters or {})
        return items, build_pagination(page, limit, total)

    async def get_pedido(self, pedido_id: str) -> Dict[str, Any]:
        """
        Obtiene un pedido, usando el cache Redis (PEDIDO_CACHE_TTL).

        Raises:
            NotFoundException: Pedido inexistente
        """
        cache_key = pedido_cache_key(pedido_id)

        cached = await get_cached_json(cache_key)
        if cached is not None:
            return cached

        pedido = await self.repository.get_by_id(pedido_id)
        if pedido is None:
            raise NotFoundException("Pedido não encontrado", resource="pedido", resource_id=pedido_id)

        await set_cached_json(cache_key, pedido, expire=settings.PEDIDO_CACHE_TTL)
        return pedido

    async def get_by_shopify_id(self, shopify_order_id: str) -> Dict[str, Any]:
        pedido = await self.repository.get_by_shopify_id(shopify_order_id)
        if pedido is None:
            raise NotFoundException(
                "Pedido não encontrado para este ID do Shopify",
                resource="pedido",
                resource_id=shopify_order_id,
            )
        return pedido

    async def create_pedido(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea un pedido en estado PENDENTE.

        ``valor_total`` se calcula como la suma de quantidade × preco_unitario.

        Args:
            data: cliente_id, itens, y opcionales shopify_order_id, supplier_id,
                  currency, endereco_entrega, observacoes, data_entrega_prevista

        Raises:
            NotFoundException: Cliente inexistente
            ConflictException: Ya existe un pedido para el shopify_order_id
        """
        shopify_order_id = data.get("shopify_order_id")
        if shopify_order_id and await self.repository.get_by_shopify_id(str(shopify_order_id)):
            raise ConflictException(
                "Já existe um pedido para este ID do Shopify",
                field="shopify_order_id",
                value=shopify_order_id,
            )

        cliente = await self.customer_repository.get_by_id(data["cliente_id"])
        if cliente is None:
            raise NotFoundException("Cliente não encontrado", resource="customer", resource_id=data["cliente_id"])

        currency = (data.get("currency") or "BRL").upper()
        try:
            itens = [
                PedidoItemDomain(
                    sku=item.get("sku"),
                    nome=item["nome"],
                    quantidade=int(item["quantidade"]),
                    preco_unitario=Money(amount=Decimal(str(item["preco_unitario"])), currency=currency),
                )
                for item in data.get("itens") or []
            ]
            domain = PedidoDomain(
                cliente_id=data["cliente_id"],
                itens=itens,
                currency=currency,
                shopify_order_id=str(shopify_order_id) if shopify_order_id else None,
                supplier_id=data.get("supplier_id"),
                endereco_entrega=data.get("endereco_entrega"),
                observacoes=data.get("observacoes"),
                customer_language=cliente.get("preferred_language"),
            )
        except ValueError as e:
            raise ValidationException(f"Dados inválidos: {e}", field="itens") from e

        return await self._persist(domain, data_entrega_prevista=data.get("data_entrega_prevista"))

    async def _persist(self, domain: PedidoDomain, **extra) -> Dict[str, Any]:
        """
        Persiste el pedido con un numero_pedido nuevo.

        El sufijo del número es aleatorio; ante una colisión con un número
        existente se reintenta con otro hasta ORDER_NUMBER_ATTEMPTS veces.
        """
        items = [item.to_dict() for item in domain.itens]

        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            pedido_data = domain.to_dict()
            pedido_data["numero_pedido"] = generate_order_number()
            pedido_data.update({key: value for key, value in extra.items() if value is not None})

            try:
                pedido = await self.repository.create(pedido_data, items)
                break
            except IntegrityError as e:
                if not is_order_number_collision(e) or attempt == ORDER_NUMBER_ATTEMPTS:
                    raise
                logger.warning(f"⚠️ numero_pedido {pedido_data['numero_pedido']} já existe, gerando outro")

        await delete_cache(STATS_CACHE_KEY)
        return pedido

    async def create_from_shopify(self, order: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """
        Crea el pedido (y el cliente si hace falta) a partir de un pedido Shopify.

        Es idempotente: si ya existe un pedido para el id de Shopify, se devuelve ese.

        Args:
            order: Pedido Shopify ya validado

        Returns:
            Tuple: (pedido, created); created es False si el pedido ya existía
        """
        shopify_order_id = str(order["id"])

        existing = await self.repository.get_by_shopify_id(shopify_order_id)
        if existing:
            logger.info(
                f"♻️ Pedido for Shopify order {shopify_order_id} already exists: {existing['numero_pedido']}"
            )
            return existing, False

        cliente = await self.customer_service.resolve_or_create(CustomerDomain.from_shopify(order))

        currency = (order.get("currency") or "BRL").upper()
        domain = PedidoDomain(
            cliente_id=cliente["id"],
            itens=[PedidoItemDomain.from_shopify_line_item(item, currency) for item in order["line_items"]],
            currency=currency,
            shopify_order_id=shopify_order_id,
            endereco_entrega=order.get("shipping_address"),
            observacoes=order.get("note"),
            customer_language=cliente.get("preferred_language"),
        )

        pedido = await self._persist(domain)
        logger.info(f"✅ Pedido {pedido['numero_pedido']} created from Shopify order {shopify_order_id}")
        return pedido, True

    async def update_pedido(self, pedido_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualiza status, código de rastreo, observaciones o fecha de entrega prevista.

        Un cambio de status encola ``update-order-status``. Pasar a CANCELADO
        se hace vía ``cancel_pedido``; las observacoes enviadas junto con el
        cambio se registran como motivo.

        Raises:
            NotFoundException: Pedido inexistente
            ConflictException: Cambio de status de un pedido CANCELADO o ENTREGUE
        """
        current = await self.repository.get_by_id(pedido_id)
        if current is None:
            raise NotFoundException("Pedido não encontrado", resource="pedido", resource_id=pedido_id)

        changes = {key: value for key, value in data.items() if key in UPDATABLE_FIELDS and value is not None}
        if isinstance(changes.get("status"), StatusPedido):
            changes["status"] = changes["status"].value

        new_status = changes.get("status")
        status_changed = new_status is not None and new_status != current["status"]

        if status_changed and StatusPedido(current["status"]) in FINAL_STATUSES:
            raise ConflictException(
                f"Pedido com status {current['status']} não pode mudar de status",
                field="status",
                value=current["status"],
            )

        if status_changed and new_status == StatusPedido.CANCELADO.value:
            changes.pop("status")
            motivo = changes.pop("observacoes", None)
            if changes:
                await self.repository.update(pedido_id, changes)
            pedido = await self.cancel_pedido(pedido_id, motivo)
        else:
            pedido = await self.repository.update(pedido_id, changes) if changes else current
            await self._invalidate(pedido_id)

        if status_changed:
            await self.order_queue.add(
                JOB_UPDATE_ORDER_STATUS,
                {
                    "pedido_id": pedido_id,
                    "status": new_status,
                    "previous_status": current["status"],
                    "codigo_rastreamento": pedido.get("codigo_rastreamento"),
                },
            )
            logger.info(f"🔄 Pedido {pedido_id}: {current['status']} -> {new_status}")

        return pedido

    async def cancel_pedido(self, pedido_id: str, motivo: Optional[str] = None) -> Dict[str, Any]:
        """
        Cancela un pedido.

        Raises:
            NotFoundException: Pedido inexistente
            ConflictException: Pedido ya CANCELADO o ENTREGUE
        """
        current = await self.repository.get_by_id(pedido_id)
        if current is None:
            raise NotFoundException("Pedido não encontrado", resource="pedido", resource_id=pedido_id)

        if not can_cancel(current["status"]):
            raise ConflictException(
                f"Pedido com status {current['status']} não pode ser cancelado",
                field="status",
                value=current["status"],
            )

        pedido = await self.repository.update(
            pedido_id,
            {
                "status": StatusPedido.CANCELADO.value,
                "observacoes": append_cancellation_note(current.get("observacoes"), motivo),
            },
        )
        await self._invalidate(pedido_id)

        logger.info(f"🚫 Pedido {pedido_id} cancelled{f': {motivo}' if motivo else ''}")
        return pedido

    async def assign_supplier(self, pedido_id: str, supplier: Dict[str, Any]) -> Dict[str, Any]:
        """
        Asigna el fornecedor y pasa el pedido a CONFIRMADO.

        Raises:
            NotFoundException: Pedido inexistente
            ConflictException: El pedido ya no está PENDENTE
        """
        current = await self.repository.get_by_id(pedido_id)
        if current is None:
            raise NotFoundException("Pedido não encontrado", resource="pedido", resource_id=pedido_id)

        if current["status"] != StatusPedido.PENDENTE.value:
            raise ConflictException(
                f"Pedido com status {current['status']} não aceita atribuição de fornecedor",
                field="status",
                value=current["status"],
            )

        pedido = await self.repository.update(
            pedido_id,
            {
                "supplier_id": supplier["id"],
                "supplier_language": supplier.get("preferred_language") or settings.DEFAULT_LANGUAGE,
                "status": StatusPedido.CONFIRMADO.value,
            },
        )
        if pedido is None:
            raise NotFoundException("Pedido não encontrado", resource="pedido", resource_id=pedido_id)

        await self._invalidate(pedido_id)
        return pedido

    async def set_status(self, pedido_id: str, status: str) -> Dict[str, Any]:
        pedido = await self.repository.update(pedido_id, {"status": status})
        if pedido is None:
            raise NotFoundException("Pedido não encontrado", resource="pedido", resource_id=pedido_id)

        await self._invalidate(pedido_id)
        return pedido

    async def get_stats(self) -> Dict[str, Any]:
        """Estadísticas de pedidos, cacheadas STATS_CACHE_TTL segundos."""
        cached = await get_cached_json(STATS_CACHE_KEY)
        if cached is not None:
            return cached

        stats = await self.repository.get_stats(start_of_day(), start_of_month())
        await set_cached_json(STATS_CACHE_KEY, stats, expire=settings.STATS_CACHE_TTL)
        return stats

    async def enqueue_shopify_order(self, order: Dict[str, Any]) -> Dict[str, Any]:
        """
        Encola un pedido Shopify crudo para procesamiento en background.

        Returns:
            Dict: job_id, queue y status
        """
        job = await self.order_queue.add(JOB_PROCESS_NEW_ORDER, {"order": order})
        logger.info(f"📥 Shopify order {order.get('id')} queued as job {job.id}")
        return {"job_id": job.id, "queue": job.queue, "status": job.status}

    async def _invalidate(self, pedido_id: str) -> None:
        await delete_cache(pedido_cache_key(pedido_id))
        await delete_cache(STATS_CACHE_KEY)
