"""Tests unitarios para OrderValidator."""

import pytest

from backoffice.services.orders.validators import OrderValidator
from backoffice.utils.error_handler import ErrorCode, ValidationException


def make_order(**overrides):
    order = {
        "id": 5551234,
        "customer": {"first_name": "Ana", "email": "ana@example.com"},
        "shipping_address": {"address1": "Rua A, 10", "city": "São Paulo", "country_code": "BR"},
        "line_items": [{"sku": "CAM-01", "title": "Camiseta", "quantity": 2, "price": "49.90"}],
    }
    order.update(overrides)
    return order


class TestOrderValidator:
    """Tests para la validación de pedidos Shopify."""

    def setup_method(self):
        self.validator = OrderValidator()

    def test_valid_order(self):
        """Debe devolver el mismo pedido si es válido."""
        order = make_order()

        assert self.validator.validate(order) is order

    @pytest.mark.parametrize("field", ["id", "customer", "shipping_address"])
    def test_missing_required_field(self, field):
        """Debe rechazar pedidos sin id, cliente o dirección."""
        with pytest.raises(ValidationException) as exc_info:
            self.validator.validate(make_order(**{field: None}))

        assert exc_info.value.error_code == ErrorCode.INVALID_ORDER_DATA
        assert exc_info.value.field == field

    @pytest.mark.parametrize("line_items", [[], None, "x"])
    def test_without_line_items(self, line_items):
        """Debe exigir al menos un item."""
        with pytest.raises(ValidationException) as exc_info:
            self.validator.validate(make_order(line_items=line_items))

        assert exc_info.value.field == "line_items"

    def test_invalid_item_points_to_index(self):
        """El error debe señalar el item inválido."""
        items = [
            {"title": "OK", "quantity": 1, "price": "1.00"},
            {"title": "Zero", "quantity": 0, "price": "1.00"},
        ]

        with pytest.raises(ValidationException) as exc_info:
            self.validator.validate(make_order(line_items=items))

        assert exc_info.value.field == "line_items[1]"
        assert "item 2" in exc_info.value.message

    @pytest.mark.parametrize(
        "item,expected",
        [
            ({"quantity": 1, "price": "0"}, True),
            ({"quantity": "3", "price": 10}, True),
            ({"quantity": -1, "price": "1"}, False),
            ({"quantity": "abc", "price": "1"}, False),
            ({"quantity": 1, "price": "-0.01"}, False),
            ({"quantity": 1, "price": "grátis"}, False),
        ],
    )
    def test_validate_line_item(self, item, expected):
        """Cantidad positiva y precio no negativo."""
        is_valid, reason = OrderValidator.validate_line_item(item)

        assert is_valid is expected
        assert (reason is None) is expected
