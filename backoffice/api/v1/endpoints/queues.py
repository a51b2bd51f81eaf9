"""
Endpoints de monitoreo de las colas de trabajos.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter

from backoffice.api.responses import success_response
from backoffice.utils.error_handler import NotFoundException
from backoffice.workers.queue import JOB_PROCESS_NEW_ORDER, ORDER_PROCESSING_QUEUE, get_all_queues, get_queue
from backoffice.workers.runner import get_workers_status

logger = logging.getLogger(__name__)

router = APIRouter()


def _resolve_queue(queue_name: str):
    try:
        return get_queue(queue_name)
    except KeyError:
        raise NotFoundException(f"Fila {queue_name} não encontrada", resource="queue", resource_id=queue_name)


def build_sample_order() -> Dict[str, Any]:
    """Pedido Shopify de ejemplo para probar el pipeline de punta a punta."""
    order_id = int(datetime.now(timezone.utc).timestamp() * 1000)
    return {
        "id": order_id,
        "name": f"#TEST-{order_id}",
        "email": "cliente.teste@example.com",
        "currency": "BRL",
        "customer": {
            "first_name": "Cliente",
            "last_name": "Teste",
            "email": "cliente.teste@example.com",
            "phone": "+5511987654321",
        },
        "line_items": [
            {"sku": "TEST-001", "title": "Produto Teste", "quantity": 2, "price": "49.90"},
        ],
        "shipping_address": {
            "address1": "Rua Teste, 123",
            "city": "São Paulo",
            "province": "SP",
            "zip": "01001-000",
            "country_code": "BR",
            "phone": "+5511987654321",
        },
    }


@router.get("/", summary="Contadores por fila")
async def get_queue_counts() -> Dict[str, Any]:
    counts = {name: await queue.get_counts() for name, queue in get_all_queues().items()}
    return success_response({"queues": counts, "workers": get_workers_status()})


@router.get("/{queue_name}/jobs/{job_id}", summary="Estado de um job")
async def get_job(queue_name: str, job_id: str) -> Dict[str, Any]:
    queue = _resolve_queue(queue_name)
    job = await queue.get_job(job_id)
    if job is None:
        raise NotFoundException("Job não encontrado", resource="job", resource_id=job_id)
    return success_response(job.to_dict())


@router.post("/test/process-order", summary="Enfileirar pedido de teste")
async def enqueue_test_order() -> Dict[str, Any]:
    order = build_sample_order()
    job = await get_queue(ORDER_PROCESSING_QUEUE).add(JOB_PROCESS_NEW_ORDER, {"order": order})
    logger.info(f"🧪 Pedido de teste {order['id']} enfileirado (job {job.id})")
    return success_response(
        {"job_id": job.id, "queue": job.queue, "status": job.status},
        message="Pedido de teste enfileirado",
    )
