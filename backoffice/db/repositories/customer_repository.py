"""
CustomerRepository: customer lookup, creation and maintenance.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select

from backoffice.db.models import Customer, Pedido
from backoffice.db.repositories.base import BaseRepository, log_operation, with_retry

logger = logging.getLogger(__name__)


class CustomerRepository(BaseRepository):
    """Repository for customer-related operations."""

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def list(self, offset: int, limit: int, search: Optional[str] = None) -> Tuple[List[Dict[str, Any]], int]:
        conditions = []
        if search:
            term = f"%{search}%"
            conditions.append(or_(Customer.name.ilike(term), Customer.email.ilike(term), Customer.phone.ilike(term)))

        async with self.get_session() as session:
            total = await session.scalar(select(func.count(Customer.id)).where(*conditions))
            result = await session.execute(
                select(Customer).where(*conditions).order_by(Customer.created_at.desc()).offset(offset).limit(limit)
            )
            return [customer.to_dict() for customer in result.scalars().all()], int(total or 0)

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def get_by_id(self, customer_id: str) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            customer = await session.get(Customer, customer_id)
            return customer.to_dict() if customer else None

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            customer = await session.scalar(select(Customer).where(func.lower(Customer.email) == email.lower()))
            return customer.to_dict() if customer else None

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def find_by_phone(self, phone: str) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            customer = await session.scalar(select(Customer).where(Customer.phone == phone).limit(1))
            return customer.to_dict() if customer else None

    @log_operation()
    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        async with self.get_session() as session:
            customer = Customer(**data)
            session.add(customer)
            await session.commit()
            await session.refresh(customer)
            logger.info(f"✅ Customer created: {customer.id}")
            return customer.to_dict()

    @log_operation()
    async def update(self, customer_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        async with self.get_session() as session:
            customer = await session.get(Customer, customer_id)
            if customer is None:
                return None

            for key, value in data.items():
                setattr(customer, key, value)

            await session.commit()
            await session.refresh(customer)
            return customer.to_dict()

    @with_retry(max_attempts=3, delay=1.0)
    @log_operation()
    async def count_pedidos(self, customer_id: str) -> int:
        async with self.get_session() as session:
            total = await session.scalar(select(func.count(Pedido.id)).where(Pedido.cliente_id == customer_id))
            return int(total or 0)

    @log_operation()
    async def delete(self, customer_id: str) -> bool:
        """
        Deletes a customer.

        Returns:
            bool: False when the customer does not exist

        Raises:
            IntegrityError: When the customer still has pedidos
        """
        async with self.get_session() as session:
            customer = await session.get(Customer, customer_id)
            if customer is None:
                return False

            await session.delete(customer)
            await session.commit()
            logger.info(f"🗑️ Customer deleted: {customer_id}")
            return True
