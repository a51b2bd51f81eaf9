"""
PedidoRepository: persistence of pedidos and their items, listing with
filters and aggregate statistics.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select

from backoffice.db.models import Pedido, PedidoItem
from backoffice.db.repositories.base import BaseRepository, log_operation, with_retry
from backoffice.domain.models.pedido import StatusPedido

logger = logging.getLogger(__name__)

_RELATIONS = ["itens", "cliente", "supplier"]


class PedidoRepository(BaseRepository):
    """Repository for pedido operations."""

    @staticmethod
    def _build_conditions(filters: Dict[str, Any]) -> list:
        conditions = []
        if filters.get("status"):
            conditions.append(Pedido.status == filters["status"])
        if filters.get("cliente_id"):
            conditions.append(Pedido.cliente_id == filters["cliente_id"])
        if filters.get("supplier_id"):
            conditions.append(Pedido.supplier_id == filters["supplier_id"])
        if filters.get("shopify_order_id"):
            conditions.append(Pedido.shopify_order_id == str(filters["shopify_order_id"]))
        if filters.get("start_date"):
            conditions.append(Pedido.data_criacao >= filters["start_date"])
        if filters.get("end_date"):
            conditions.append(Pedido.data_criacao <= filters["end_date"])
        return conditions

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def list(self, offset: int, limit: int, filters: Optional[Dict[str, Any]] = None) -> Tuple[List[Dict], int]:
        """
        Lists pedidos ordered by data_criacao descending.

        Args:
            offset: Rows to skip
            limit: Max rows to return
            filters: status, cliente_id, supplier_id, start_date, end_date, shopify_order_id

        Returns:
            Tuple: (pedidos, total matching rows)
        """
        conditions = self._build_conditions(filters or {})

        async with self.get_session() as session:
            total = await session.scalar(select(func.count(Pedido.id)).where(*conditions))
            result = await session.execute(
                select(Pedido).where(*conditions).order_by(Pedido.data_criacao.desc()).offset(offset).limit(limit)
            )
            return [pedido.to_dict() for pedido in result.scalars().all()], int(total or 0)

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_by_id(self, pedido_id: str) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            pedido = await session.get(Pedido, pedido_id)
            return pedido.to_dict() if pedido else None

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_by_shopify_id(self, shopify_order_id: str) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            pedido = await session.scalar(select(Pedido).where(Pedido.shopify_order_id == str(shopify_order_id)))
            return pedido.to_dict() if pedido else None

    @log_operation()
    async def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Creates a pedido together with its items in one transaction.

        Args:
            data: Pedido columns
            items: Item columns (sku, nome, quantidade, preco_unitario)

        Returns:
            Dict: Created pedido with relations
        """
        async with self.get_session() as session:
            pedido = Pedido(**data)
            pedido.itens = [PedidoItem(**item) for item in items]
            session.add(pedido)
            await session.commit()
            await session.refresh(pedido, attribute_names=_RELATIONS)
            logger.info(f"✅ Pedido created: {pedido.numero_pedido} ({len(items)} itens)")
            return pedido.to_dict()

    @log_operation()
    async def update(self, pedido_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            pedido = await session.get(Pedido, pedido_id)
            if pedido is None:
                return None

            for key, value in data.items():
                setattr(pedido, key, value)

            await session.commit()
            await session.refresh(pedido, attribute_names=_RELATIONS)
            return pedido.to_dict()

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_stats(self, day_start: datetime, month_start: datetime) -> Dict[str, Any]:
        """
        Aggregates pedido statistics.

        Args:
            day_start: Start of the current day in the business timezone
            month_start: Start of the current month in the business timezone

        Returns:
            Dict: total_pedidos, pedidos_hoje, pedidos_mes, valor_total_mes, status_distribution
        """
        async with self.get_session() as session:
            total = await session.scalar(select(func.count(Pedido.id)))
            today = await session.scalar(select(func.count(Pedido.id)).where(Pedido.data_criacao >= day_start))
            month = await session.scalar(select(func.count(Pedido.id)).where(Pedido.data_criacao >= month_start))
            month_value = await session.scalar(
                select(func.coalesce(func.sum(Pedido.valor_total), 0)).where(
                    Pedido.data_criacao >= month_start,
                    Pedido.status != StatusPedido.CANCELADO.value,
                )
            )
            result = await session.execute(select(Pedido.status, func.count(Pedido.id)).group_by(Pedido.status))
            distribution = {status: count for status, count in result.all()}

        return {
            "total_pedidos": int(total or 0),
            "pedidos_hoje": int(today or 0),
            "pedidos_mes": int(month or 0),
            "valor_total_mes": float(Decimal(str(month_value or 0))),
            "status_distribution": distribution,
        }

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def list_shipped_before(self, cutoff: datetime) -> List[Dict[str, Any]]:
        """Pedidos ENVIADO whose last update is older than ``cutoff``."""
        async with self.get_session() as session:
            result = await session.execute(
                select(Pedido).where(
                    Pedido.status == StatusPedido.ENVIADO.value,
                    Pedido.data_atualizacao < cutoff,
                )
            )
            return [pedido.to_dict(include_relations=False) for pedido in result.scalars().all()]
