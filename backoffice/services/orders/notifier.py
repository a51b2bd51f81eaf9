"""
OrderNotifier: customer and supplier notifications for pedidos.

Customer messages are rendered in the customer's language and queued on the
notification queue. Suppliers with an API endpoint receive the pedido over
HTTP; the others get an email in their own language.
"""

import logging
from typing import Any, Dict, Optional

from backoffice.core.config import get_settings
from backoffice.db.repositories import SupplierRepository
from backoffice.db.supplier_api_client import SupplierApiClient, get_supplier_api_client
from backoffice.services.templates import render_template
from backoffice.utils.error_handler import NotFoundException
from backoffice.workers.queue import JOB_SEND_NOTIFICATION, NOTIFICATION_QUEUE, JobQueue, get_queue

settings = get_settings()
logger = logging.getLogger(__name__)


def format_shipping_address(address: Optional[Dict[str, Any]]) -> str:
    if not address:
        return ""
    parts = [
        address.get("address1"),
        address.get("address2"),
        address.get("city"),
        address.get("province_code") or address.get("province"),
        address.get("zip"),
        address.get("country_code") or address.get("country"),
    ]
    return ", ".join(str(part) for part in parts if part)


def build_template_variables(pedido: Dict[str, Any]) -> Dict[str, Any]:
    cliente = pedido.get("cliente") or {}
    return {
        "customer_name": cliente.get("name"),
        "customer_phone": cliente.get("phone"),
        "order_number": pedido.get("numero_pedido"),
        "total_amount": pedido.get("valor_total"),
        "currency": pedido.get("currency"),
        "item_count": len(pedido.get("itens") or []),
        "tracking_code": pedido.get("codigo_rastreamento"),
        "shipping_address": format_shipping_address(pedido.get("endereco_entrega")),
        "order_date": pedido.get("data_criacao"),
    }


class OrderNotifier:
    """
    Sends pedido notifications.

    Responsibilities:
    - Render and queue customer messages
    - Push new pedidos to supplier APIs, or queue supplier emails
    """

    def __init__(
        self,
        notification_queue: Optional[JobQueue] = None,
        supplier_repository: Optional[SupplierRepository] = None,
        api_client: Optional[SupplierApiClient] = None,
    ):
        self._notification_queue = notification_queue
        self.supplier_repository = supplier_repository or SupplierRepository()
        self._api_client = api_client

    @property
    def notification_queue(self) -> JobQueue:
        if self._notification_queue is None:
            self._notification_queue = get_queue(NOTIFICATION_QUEUE)
        return self._notification_queue

    @property
    def api_client(self) -> SupplierApiClient:
        if self._api_client is None:
            self._api_client = get_supplier_api_client()
        return self._api_client

    @staticmethod
    def _customer_channel(cliente: Dict[str, Any]) -> tuple[str, Optional[str]]:
        if cliente.get("whatsapp_consent") and cliente.get("phone"):
            return "whatsapp", cliente["phone"]
        if cliente.get("email"):
            return "email", cliente["email"]
        return "sms", cliente.get("phone")

    async def notify_customer(self, pedido: Dict[str, Any], template: str = "order_confirmation") -> Dict[str, Any]:
        """
        Queues a customer message rendered with ``template``.

        Args:
            pedido: Pedido with its ``cliente`` relation
            template: Built-in template name

        Returns:
            Dict: job_id, channel and language of the queued message
        """
        cliente = pedido.get("cliente") or {}
        language = pedido.get("customer_language") or cliente.get("preferred_language") or settings.DEFAULT_LANGUAGE

        rendered = render_template(template, language, build_template_variables(pedido))
        if rendered is None:
            raise NotFoundException(f"Template {template} não encontrado", resource="template", resource_id=template)

        channel, recipient = self._customer_channel(cliente)
        job = await self.notification_queue.add(
            JOB_SEND_NOTIFICATION,
            {
                "pedido_id": pedido["id"],
                "template": template,
                "channel": channel,
                "recipient": recipient,
                "subject": rendered["subject"],
                "body": rendered["content"],
                "language": rendered["language"],
            },
        )

        logger.info(
            f"📨 Customer notification queued for {pedido['numero_pedido']} ({channel}, {rendered['language']})"
        )
        return {"job_id": job.id, "channel": channel, "language": rendered["language"]}

    async def notify_supplier(self, pedido: Dict[str, Any]) -> Dict[str, Any]:
        """
        Notifies the supplier assigned to the pedido.

        Returns:
            Dict: Channel used (api or email) and outcome

        Raises:
            NotFoundException: If the assigned supplier no longer exists
            ExternalServiceException: If the supplier API rejects the pedido
        """
        if not settings.SUPPLIER_NOTIFICATIONS_ENABLED:
            logger.info("Supplier notifications disabled, skipping")
            return {"notified": False, "reason": "disabled"}

        supplier = await self.supplier_repository.get_contact(pedido["supplier_id"])
        if supplier is None:
            raise NotFoundException(
                "Fornecedor não encontrado", resource="supplier", resource_id=pedido["supplier_id"]
            )

        language = pedido.get("supplier_language") or supplier.get("preferred_language") or settings.DEFAULT_LANGUAGE
        variables = build_template_variables(pedido)

        if supplier.get("api_endpoint"):
            payload = {
                "order_number": pedido["numero_pedido"],
                "customer_info": {
                    "name": variables["customer_name"],
                    "phone": variables["customer_phone"],
                    "address": variables["shipping_address"],
                },
                "items": [
                    {"sku": item.get("sku"), "name": item.get("nome"), "quantity": item.get("quantidade")}
                    for item in pedido.get("itens") or []
                ],
                "total_amount": pedido.get("valor_total"),
                "currency": pedido.get("currency"),
                "language": language,
            }
            response = await self.api_client.notify_new_order(
                supplier["api_endpoint"], payload, api_key=supplier.get("api_key")
            )
            logger.info(f"✅ Supplier {supplier['company_name']} notified via API for {pedido['numero_pedido']}")
            return {"notified": True, "channel": "api", "response": response}

        rendered = render_template("supplier_new_order", language, variables)
        job = await self.notification_queue.add(
            JOB_SEND_NOTIFICATION,
            {
                "pedido_id": pedido["id"],
                "template": "supplier_new_order",
                "channel": "email",
                "recipient": supplier.get("notification_email") or supplier.get("email"),
                "subject": rendered["subject"],
                "body": rendered["content"],
                "language": rendered["language"],
            },
        )

        logger.info(f"📨 Supplier email queued for {pedido['numero_pedido']} ({rendered['language']})")
        return {"notified": True, "channel": "email", "job_id": job.id}
