"""Tests unitarios para OrderNotifier."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from backoffice.services.orders.notifier import OrderNotifier, format_shipping_address
from backoffice.utils.error_handler import NotFoundException
from backoffice.workers.queue import JOB_SEND_NOTIFICATION


def make_pedido(**cliente_overrides):
    cliente = {"name": "Ana", "email": "ana@example.com", "phone": "+5511987654321", "whatsapp_consent": False}
    cliente.update(cliente_overrides)
    return {
        "id": "p1",
        "numero_pedido": "PED202601010001",
        "valor_total": Decimal("99.80"),
        "currency": "BRL",
        "customer_language": "pt-BR",
        "supplier_id": "s1",
        "cliente": cliente,
        "itens": [{"sku": "CAM-01", "nome": "Camiseta", "quantidade": 2}],
        "endereco_entrega": {"address1": "Rua A, 10", "city": "São Paulo", "zip": "01001-000"},
    }


@pytest.fixture
def notification_queue():
    queue = MagicMock()
    queue.add = AsyncMock(return_value=MagicMock(id="42"))
    return queue


@pytest.fixture
def supplier_repository():
    repo = AsyncMock()
    repo.get_contact.return_value = {
        "id": "s1",
        "company_name": "Fábrica",
        "email": "vendas@fabrica.com",
        "preferred_language": "zh-CN",
    }
    return repo


@pytest.fixture
def api_client():
    client = MagicMock()
    client.notify_new_order = AsyncMock(return_value={"accepted": True})
    return client


@pytest.fixture
def notifier(notification_queue, supplier_repository, api_client):
    return OrderNotifier(
        notification_queue=notification_queue,
        supplier_repository=supplier_repository,
        api_client=api_client,
    )


class TestNotifyCustomer:
    """Tests para notify_customer."""

    @pytest.mark.asyncio
    async def test_email_when_no_consent(self, notifier, notification_queue):
        """Sin consentimiento de WhatsApp debe usar email en el idioma del pedido."""
        result = await notifier.notify_customer(make_pedido())

        assert result == {"job_id": "42", "channel": "email", "language": "pt-BR"}
        name, data = notification_queue.add.await_args.args
        assert name == JOB_SEND_NOTIFICATION
        assert data["recipient"] == "ana@example.com"
        assert "PED202601010001" in data["subject"]

    @pytest.mark.asyncio
    async def test_whatsapp_with_consent(self, notifier):
        """Con consentimiento y teléfono debe usar WhatsApp."""
        result = await notifier.notify_customer(make_pedido(whatsapp_consent=True))

        assert result["channel"] == "whatsapp"

    @pytest.mark.asyncio
    async def test_sms_without_email(self, notifier):
        """Sin email ni consentimiento debe usar SMS."""
        result = await notifier.notify_customer(make_pedido(email=None))

        assert result["channel"] == "sms"

    @pytest.mark.asyncio
    async def test_unknown_template(self, notifier):
        """Un template inexistente debe lanzar NotFoundException."""
        with pytest.raises(NotFoundException):
            await notifier.notify_customer(make_pedido(), template="nope")


class TestNotifySupplier:
    """Tests para notify_supplier."""

    @pytest.mark.asyncio
    async def test_email_in_supplier_language(self, notifier, notification_queue, api_client):
        """Sin api_endpoint debe encolar un email en el idioma del fornecedor."""
        result = await notifier.notify_supplier(make_pedido())

        assert result == {"notified": True, "channel": "email", "job_id": "42"}
        data = notification_queue.add.await_args.args[1]
        assert data["language"] == "zh-CN"
        assert data["recipient"] == "vendas@fabrica.com"
        api_client.notify_new_order.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_endpoint(self, notifier, supplier_repository, api_client, notification_queue):
        """Con api_endpoint debe enviar el pedido por HTTP."""
        supplier_repository.get_contact.return_value.update({"api_endpoint": "https://api.fabrica.com", "api_key": "k"})

        result = await notifier.notify_supplier(make_pedido())

        assert result["channel"] == "api"
        endpoint, payload = api_client.notify_new_order.await_args.args
        assert endpoint == "https://api.fabrica.com"
        assert payload["order_number"] == "PED202601010001"
        assert payload["items"] == [{"sku": "CAM-01", "name": "Camiseta", "quantity": 2}]
        assert api_client.notify_new_order.await_args.kwargs == {"api_key": "k"}
        notification_queue.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_supplier(self, notifier, supplier_repository):
        """Debe lanzar NotFoundException si el fornecedor no existe."""
        supplier_repository.get_contact.return_value = None

        with pytest.raises(NotFoundException):
            await notifier.notify_supplier(make_pedido())

    @pytest.mark.asyncio
    async def test_disabled(self, notifier, supplier_repository):
        """Con las notificaciones deshabilitadas no debe hacer nada."""
        with patch("backoffice.services.orders.notifier.settings") as settings:
            settings.SUPPLIER_NOTIFICATIONS_ENABLED = False

            result = await notifier.notify_supplier(make_pedido())

        assert result == {"notified": False, "reason": "disabled"}
        supplier_repository.get_contact.assert_not_called()


def test_format_shipping_address():
    """Debe unir las partes presentes de la dirección."""
    assert format_shipping_address({"address1": "Rua A, 10", "city": "São Paulo", "zip": "01001-000"}) == (
        "Rua A, 10, São Paulo, 01001-000"
    )
    assert format_shipping_address(None) == ""
