"""
Processors de los jobs de pedidos.

``process_new_order`` ejecuta en orden estricto: validar, crear, asignar
fornecedor y notificar, reportando progreso después de cada paso. Ante un
error se registra y se relanza; la cola decide el reintento.
"""

import logging
import time
from typing import Any, Dict, Optional

from backoffice.core.config import get_settings
from backoffice.db.repositories import PedidoRepository
from backoffice.domain.models import StatusPedido
from backoffice.services.orders.interfaces import (
    IOrderNotifier,
    IOrderValidator,
    IPedidoCreator,
    ISupplierAssigner,
)
from backoffice.utils.notifications import deliver_message
from backoffice.utils.time_utils import days_ago
from backoffice.workers.queue import (
    JOB_DETECT_DELAYED_ORDERS,
    JOB_PROCESS_NEW_ORDER,
    JOB_SEND_NOTIFICATION,
    JOB_UPDATE_ORDER_STATUS,
    Job,
    JobQueue,
)

settings = get_settings()
logger = logging.getLogger(__name__)

PROGRESS_VALIDATED = 20
PROGRESS_CREATED = 40
PROGRESS_SUPPLIER_ASSIGNED = 60
PROGRESS_CUSTOMER_NOTIFIED = 80
PROGRESS_SUPPLIER_NOTIFIED = 90
PROGRESS_DONE = 100


class OrderWorker:
    """
    Worker para procesamiento de pedidos en background.

    Recibe sus colaboradores por constructor; ver ``OrderServicesFactory``.
    """

    def __init__(
        self,
        order_queue: JobQueue,
        validator: IOrderValidator,
        pedido_service: IPedidoCreator,
        supplier_assigner: ISupplierAssigner,
        notifier: IOrderNotifier,
        pedido_repository: Optional[PedidoRepository] = None,
    ):
        self.order_queue = order_queue
        self.validator = validator
        self.pedido_service = pedido_service
        self.supplier_assigner = supplier_assigner
        self.notifier = notifier
        self.pedido_repository = pedido_repository or PedidoRepository()

    async def process_new_order(self, job: Job) -> Dict[str, Any]:
        """
        Procesa un pedido nuevo recibido de Shopify.

        Un reintento del mismo job retoma desde el último paso completado
        (según ``job.progress``). Si el pedido ya existía y ya salió de
        PENDENTE o tiene fornecedor, otro job para el mismo pedido Shopify
        no lo reasigna ni vuelve a notificar.

        Args:
            job: Job con ``data["order"]`` (pedido Shopify crudo)

        Returns:
            Dict: pedido_id, numero_pedido, supplier_id, status final y duplicate
        """
        order = job.data.get("order") or job.data.get("shopify_order_data") or {}
        started = time.time()
        resumed_from = job.progress
        duplicate = False

        logger.info(f"🔄 Iniciando processamento do pedido Shopify {order.get('id')} (job {job.id})")

        try:
            # 1. Validar dados do pedido
            self.validator.validate(order)
            await self._report_progress(job, PROGRESS_VALIDATED, resumed_from)

            # 2. Criar pedido (reutiliza o existente em redelivery)
            pedido, created = await self.pedido_service.create_from_shopify(order)
            await self._report_progress(job, PROGRESS_CREATED, resumed_from)

            already_assigned = bool(pedido.get("supplier_id")) or pedido["status"] != StatusPedido.PENDENTE.value

            if not created and already_assigned and resumed_from < PROGRESS_SUPPLIER_ASSIGNED:
                duplicate = True
                logger.info(
                    f"♻️ Pedido {pedido['numero_pedido']} já processado (status {pedido['status']}), "
                    f"ignorando job {job.id}"
                )
            else:
                # 3. Atribuir fornecedor
                if not already_assigned:
                    pedido = await self.supplier_assigner.assign(pedido)
                await self._report_progress(job, PROGRESS_SUPPLIER_ASSIGNED, resumed_from)

                # 4. Notificar cliente e fornecedor
                if resumed_from < PROGRESS_CUSTOMER_NOTIFIED:
                    await self.notifier.notify_customer(pedido)
                await self._report_progress(job, PROGRESS_CUSTOMER_NOTIFIED, resumed_from)

                if resumed_from < PROGRESS_SUPPLIER_NOTIFIED:
                    await self.notifier.notify_supplier(pedido)
                await self._report_progress(job, PROGRESS_SUPPLIER_NOTIFIED, resumed_from)

            await self._report_progress(job, PROGRESS_DONE, resumed_from)

        except Exception as e:
            logger.error(
                f"❌ Erro ao processar pedido Shopify {order.get('id')}: {e}",
                extra={"job_id": job.id, "attempts_made": job.attempts_made},
                exc_info=True,
            )
            raise

        logger.info(
            f"✅ Pedido processado com sucesso: {pedido['numero_pedido']} "
            f"({round((time.time() - started) * 1000)}ms)"
        )
        return {
            "pedido_id": pedido["id"],
            "numero_pedido": pedido["numero_pedido"],
            "supplier_id": pedido.get("supplier_id"),
            "status": pedido["status"],
            "duplicate": duplicate,
        }

    async def _report_progress(self, job: Job, value: int, floor: int) -> None:
        # Nunca retrocede: un reintento conserva el avance del intento anterior
        await self.order_queue.update_progress(job, max(value, floor))

    async def update_order_status(self, job: Job) -> Dict[str, Any]:
        """
        Aplica el status del job; en ENVIADO con código de rastreo notifica al cliente.

        Args:
            job: Job con pedido_id, status y codigo_rastreamento opcional
        """
        pedido_id = job.data["pedido_id"]
        status = StatusPedido(job.data["status"]).value

        pedido = await self.pedido_service.get_pedido(pedido_id)
        if pedido["status"] != status:
            pedido = await self.pedido_service.set_status(pedido_id, status)

        notified = False
        tracking_code = job.data.get("codigo_rastreamento") or pedido.get("codigo_rastreamento")
        if status == StatusPedido.ENVIADO.value and tracking_code:
            await self.notifier.notify_customer({**pedido, "codigo_rastreamento": tracking_code}, "order_shipped")
            notified = True

        logger.info(f"✅ Pedido {pedido_id} status {status} (notificação: {notified})")
        return {"pedido_id": pedido_id, "status": status, "notified": notified}

    async def send_notification(self, job: Job) -> Dict[str, Any]:
        """Entrega un mensaje ya renderizado en su canal."""
        data = job.data
        return await deliver_message(
            channel=data.get("channel", "email"),
            recipient=data.get("recipient"),
            body=data.get("body", ""),
            subject=data.get("subject"),
            language=data.get("language"),
        )

    async def detect_delayed_orders(self, job: Job) -> Dict[str, Any]:
        """
        Lista los pedidos ENVIADO sin actualización hace más de ``max_delivery_days``.

        Returns:
            Dict: cantidad e ids de los pedidos atrasados
        """
        max_days = job.data.get("max_delivery_days")
        max_days = int(max_days) if max_days is not None else settings.MAX_DELIVERY_DAYS
        delayed = await self.pedido_repository.list_shipped_before(days_ago(max_days))

        ids = [pedido["id"] for pedido in delayed]
        if ids:
            logger.warning(f"⚠️ {len(ids)} pedidos atrasados (> {max_days} dias em ENVIADO)")
        else:
            logger.info(f"✅ Nenhum pedido atrasado (> {max_days} dias)")

        return {"count": len(ids), "pedido_ids": ids, "max_delivery_days": max_days}

    def order_processors(self) -> Dict[str, Any]:
        return {
            JOB_PROCESS_NEW_ORDER: self.process_new_order,
            JOB_UPDATE_ORDER_STATUS: self.update_order_status,
        }

    def notification_processors(self) -> Dict[str, Any]:
        return {JOB_SEND_NOTIFICATION: self.send_notification}

    def tracking_processors(self) -> Dict[str, Any]:
        return {JOB_DETECT_DELAYED_ORDERS: self.detect_delayed_orders}
