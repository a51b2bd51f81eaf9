"""Tests unitarios para el modelo de dominio de pedidos."""

from datetime import datetime
from decimal import Decimal

import pytest
import pytz

from backoffice.domain.models import CustomerDomain, PedidoDomain, PedidoItemDomain
from backoffice.domain.models.pedido import append_cancellation_note, can_cancel
from backoffice.domain.value_objects import Money
from backoffice.utils.time_utils import generate_order_number


class TestPedidoDomain:
    """Tests para PedidoDomain y PedidoItemDomain."""

    def test_valor_total(self):
        """Debe sumar quantidade × preco_unitario."""
        pedido = PedidoDomain(
            cliente_id="c1",
            itens=[
                PedidoItemDomain(nome="A", quantidade=3, preco_unitario=Money(Decimal("19.90"))),
                PedidoItemDomain(nome="B", quantidade=1, preco_unitario=Money(Decimal("0.30"))),
            ],
        )

        assert pedido.valor_total.amount == Decimal("60.00")
        assert pedido.to_dict()["status"] == "PENDENTE"

    def test_quantity_must_be_positive(self):
        """Un item con cantidad cero debe fallar."""
        with pytest.raises(ValueError):
            PedidoItemDomain(nome="A", quantidade=0, preco_unitario=Money(Decimal("1")))

    def test_currency_mismatch(self):
        """Los ítems deben tener la moneda del pedido."""
        item = PedidoItemDomain(nome="A", quantidade=1, preco_unitario=Money(Decimal("1"), "USD"))

        with pytest.raises(ValueError):
            PedidoDomain(cliente_id="c1", itens=[item], currency="BRL")

    def test_from_shopify_line_item(self):
        """Debe mapear title, quantity y price."""
        item = PedidoItemDomain.from_shopify_line_item(
            {"sku": "", "title": "Camiseta", "quantity": 2, "price": "49.90"}
        )

        assert item.sku is None
        assert item.nome == "Camiseta"
        assert item.subtotal.amount == Decimal("99.80")

    @pytest.mark.parametrize(
        "status,expected",
        [("PENDENTE", True), ("ENVIADO", True), ("CANCELADO", False), ("ENTREGUE", False)],
    )
    def test_can_cancel(self, status, expected):
        """Sólo los estados no finales pueden cancelarse."""
        assert can_cancel(status) is expected

    def test_cancellation_note(self):
        """El motivo se agrega en una línea nueva."""
        assert append_cancellation_note(None, "Sem estoque") == "Cancelado: Sem estoque"
        assert append_cancellation_note("Nota", "Sem estoque") == "Nota\nCancelado: Sem estoque"
        assert append_cancellation_note("Nota", None) == "Nota"


class TestCustomerDomain:
    """Tests para CustomerDomain.from_shopify."""

    def test_from_shopify(self):
        """Debe construir el cliente con nombre, país y dirección."""
        customer = CustomerDomain.from_shopify(
            {
                "email": "ana@example.com",
                "customer": {"first_name": "Ana", "last_name": "Souza"},
                "shipping_address": {"zip": "01001-000", "city": "São Paulo", "country_code": "br"},
            }
        )

        assert customer.name == "Ana Souza"
        assert customer.country_code == "BR"
        assert customer.address == {"address_cep": "01001-000", "address_city": "São Paulo"}
        assert customer.lookup_key == ("email", "ana@example.com")

    def test_requires_contact(self):
        """Sin email ni teléfono debe fallar."""
        with pytest.raises(ValueError):
            CustomerDomain(name="Ana")


def test_generate_order_number():
    """El número de pedido debe ser PED + fecha local + 4 dígitos."""
    moment = pytz.utc.localize(datetime(2026, 1, 15, 12, 0))

    number = generate_order_number(moment)

    assert number.startswith("PED20260115")
    assert len(number) == 15
    assert number[-4:].isdigit()
