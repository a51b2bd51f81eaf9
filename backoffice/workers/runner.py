"""
Arranque y parada de los workers de las colas dentro del proceso de la API.
"""

import logging
from typing import Any, Dict, List

from backoffice.services.orders.factories import OrderServicesFactory
from backoffice.workers.order_worker import OrderWorker
from backoffice.workers.queue import NOTIFICATION_QUEUE, ORDER_PROCESSING_QUEUE, TRACKING_QUEUE, get_queue
from backoffice.workers.worker import QueueWorker

logger = logging.getLogger(__name__)

_workers: List[QueueWorker] = []


def build_order_worker() -> OrderWorker:
    order_queue = get_queue(ORDER_PROCESSING_QUEUE)
    pedido_service = OrderServicesFactory.create_pedido_service(order_queue)

    return OrderWorker(
        order_queue=order_queue,
        validator=OrderServicesFactory.create_validator(),
        pedido_service=pedido_service,
        supplier_assigner=OrderServicesFactory.create_supplier_assigner(pedido_service),
        notifier=OrderServicesFactory.create_notifier(get_queue(NOTIFICATION_QUEUE)),
    )


async def start_workers():
    """
    Inicia un worker por cola (order-processing, notification, tracking).
    """
    if _workers:
        logger.warning("Workers ya están ejecutándose")
        return

    order_worker = build_order_worker()
    _workers.extend(
        [
            QueueWorker(get_queue(ORDER_PROCESSING_QUEUE), order_worker.order_processors()),
            QueueWorker(get_queue(NOTIFICATION_QUEUE), order_worker.notification_processors()),
            QueueWorker(get_queue(TRACKING_QUEUE), order_worker.tracking_processors()),
        ]
    )

    for worker in _workers:
        await worker.start()

    logger.info(f"✅ {len(_workers)} queue workers iniciados")


async def stop_workers():
    """Detiene todos los workers esperando la cancelación de sus tareas."""
    for worker in _workers:
        await worker.stop()

    _workers.clear()
    logger.info("✅ Queue workers detenidos")


def get_workers_status() -> Dict[str, Any]:
    return {
        "running": any(worker.is_running for worker in _workers),
        "workers": [worker.get_status() for worker in _workers],
    }
