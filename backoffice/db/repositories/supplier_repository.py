"""
SupplierRepository: persistence of suppliers (fornecedores) and their
order statistics.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select

from backoffice.db.models import Pedido, Supplier
from backoffice.db.repositories.base import BaseRepository, log_operation, with_retry
from backoffice.domain.models.pedido import OPEN_STATUSES, StatusPedido

logger = logging.getLogger(__name__)


class SupplierRepository(BaseRepository):
    """Repository for supplier CRUD and workload queries."""

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def list(
        self,
        offset: int,
        limit: int,
        search: Optional[str] = None,
        active_only: bool = False,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Lists suppliers ordered by company name.

        Args:
            offset: Rows to skip
            limit: Max rows to return
            search: Case-insensitive term over company_name, trade_name, cnpj and email
            active_only: Only active suppliers

        Returns:
            Tuple: (suppliers, total matching rows)
        """
        conditions = []
        if search:
            term = f"%{search}%"
            conditions.append(
                or_(
                    Supplier.company_name.ilike(term),
                    Supplier.trade_name.ilike(term),
                    Supplier.cnpj.ilike(term),
                    Supplier.email.ilike(term),
                )
            )
        if active_only:
            conditions.append(Supplier.active.is_(True))

        async with self.get_session() as session:
            total = await session.scalar(select(func.count(Supplier.id)).where(*conditions))
            result = await session.execute(
                select(Supplier).where(*conditions).order_by(Supplier.company_name).offset(offset).limit(limit)
            )
            return [supplier.to_dict() for supplier in result.scalars().all()], int(total or 0)

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_by_id(self, supplier_id: str) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            supplier = await session.get(Supplier, supplier_id)
            return supplier.to_dict() if supplier else None

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_by_cnpj(self, cnpj: str) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            supplier = await session.scalar(select(Supplier).where(Supplier.cnpj == cnpj))
            return supplier.to_dict() if supplier else None

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_contact(self, supplier_id: str) -> Optional[Dict[str, Any]]:
        """Datos de contacto incluyendo la credencial de API (uso interno de workers)."""
        async with self.get_session() as session:
            supplier = await session.get(Supplier, supplier_id)
            if supplier is None:
                return None
            data = supplier.to_dict()
            data["api_key"] = supplier.api_key
            return data

    @log_operation()
    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        async with self.get_session() as session:
            supplier = Supplier(**data)
            session.add(supplier)
            await session.commit()
            await session.refresh(supplier)
            logger.info(f"✅ Supplier created: {supplier.id} ({supplier.company_name})")
            return supplier.to_dict()

    @log_operation()
    async def update(self, supplier_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Applies a partial update.

        Returns:
            Optional[Dict]: Updated supplier, None when it does not exist
        """
        async with self.get_session() as session:
            supplier = await session.get(Supplier, supplier_id)
            if supplier is None:
                return None

            for key, value in data.items():
                setattr(supplier, key, value)

            await session.commit()
            await session.refresh(supplier)
            return supplier.to_dict()

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_order_stats(self, supplier_id: str) -> Dict[str, int]:
        """
        Counts the supplier's orders by bucket.

        Returns:
            Dict: total_orders, pending_orders (open statuses), completed_orders (ENTREGUE)
        """
        open_values = [status.value for status in OPEN_STATUSES]

        async with self.get_session() as session:
            result = await session.execute(
                select(Pedido.status, func.count(Pedido.id))
                .where(Pedido.supplier_id == supplier_id)
                .group_by(Pedido.status)
            )
            counts = {status: count for status, count in result.all()}

        return {
            "total_orders": sum(counts.values()),
            "pending_orders": sum(counts.get(value, 0) for value in open_values),
            "completed_orders": counts.get(StatusPedido.ENTREGUE.value, 0),
        }

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def find_least_loaded_active(self) -> Optional[Dict[str, Any]]:
        """
        Finds the active supplier with the fewest open orders.
        Ties are broken by the higher performance_rating.

        Returns:
            Optional[Dict]: Supplier, None when no supplier is active
        """
        open_values = [status.value for status in OPEN_STATUSES]

        open_orders = (
            select(Pedido.supplier_id, func.count(Pedido.id).label("open_count"))
            .where(Pedido.status.in_(open_values))
            .group_by(Pedido.supplier_id)
            .subquery()
        )

        query = (
            select(Supplier, func.coalesce(open_orders.c.open_count, 0).label("open_count"))
            .outerjoin(open_orders, open_orders.c.supplier_id == Supplier.id)
            .where(Supplier.active.is_(True))
            .order_by(func.coalesce(open_orders.c.open_count, 0).asc(), Supplier.performance_rating.desc())
            .limit(1)
        )

        async with self.get_session() as session:
            row = (await session.execute(query)).first()
            if row is None:
                return None

            supplier, open_count = row
            data = supplier.to_dict()
            data["open_orders"] = int(open_count)
            return data
