"""
OrderServicesFactory - Factory pattern for wiring the order pipeline (OCP).

This factory encapsulates how the worker collaborators are built,
so the queue workers and the tests can swap any of them.
"""

from typing import Optional

from backoffice.db.repositories import SupplierRepository
from backoffice.services.orders.notifier import OrderNotifier
from backoffice.services.orders.supplier_assigner import SupplierAssigner
from backoffice.services.orders.validators import OrderValidator
from backoffice.services.pedido_service import PedidoService
from backoffice.workers.queue import NOTIFICATION_QUEUE, ORDER_PROCESSING_QUEUE, JobQueue, get_queue


class OrderServicesFactory:
    """Factory for the order worker collaborators with production defaults."""

    @staticmethod
    def create_validator() -> OrderValidator:
        return OrderValidator()

    @staticmethod
    def create_pedido_service(order_queue: Optional[JobQueue] = None) -> PedidoService:
        return PedidoService(order_queue=order_queue or get_queue(ORDER_PROCESSING_QUEUE))

    @staticmethod
    def create_supplier_assigner(pedido_service: PedidoService) -> SupplierAssigner:
        return SupplierAssigner(supplier_repository=SupplierRepository(), pedido_service=pedido_service)

    @staticmethod
    def create_notifier(notification_queue: Optional[JobQueue] = None) -> OrderNotifier:
        return OrderNotifier(notification_queue=notification_queue or get_queue(NOTIFICATION_QUEUE))
