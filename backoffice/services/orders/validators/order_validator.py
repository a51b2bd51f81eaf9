"""
OrderValidator service for validating Shopify orders before they become pedidos.

This service follows SRP (Single Responsibility Principle) by focusing only on
validation logic for Shopify REST order payloads.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from backoffice.utils.error_handler import ErrorCode, ValidationException

logger = logging.getLogger(__name__)

INVALID_ORDER_MESSAGE = "Dados do pedido Shopify inválidos"


class OrderValidator:
    """
    Validates Shopify orders before they are persisted.

    Responsibilities:
    - Validate required fields (id, customer, shipping address)
    - Validate line items (quantity and price)
    """

    def validate(self, order: dict[str, Any]) -> dict[str, Any]:
        """
        Validates a Shopify order and returns the validated order.

        Args:
            order: Shopify order data dictionary

        Returns:
            dict: Validated order (same as input if valid)

        Raises:
            ValidationException: If validation fails
        """
        if not isinstance(order, dict) or not order.get("id"):
            raise ValidationException(
                message=INVALID_ORDER_MESSAGE,
                field="id",
                invalid_value=order.get("id") if isinstance(order, dict) else order,
                error_code=ErrorCode.INVALID_ORDER_DATA,
            )

        self._validate_required_fields(order)
        self._validate_line_items(order)

        logger.info(f"Order {order['id']} validation passed successfully")
        return order

    def _validate_required_fields(self, order: dict[str, Any]) -> None:
        """
        Validates that the customer and shipping address are present.

        Raises:
            ValidationException: If any required field is missing
        """
        for field in ("customer", "shipping_address"):
            if not order.get(field):
                raise ValidationException(
                    message=f"{INVALID_ORDER_MESSAGE}: campo obrigatório ausente ({field})",
                    field=field,
                    invalid_value=order.get(field),
                    error_code=ErrorCode.INVALID_ORDER_DATA,
                )

        logger.debug(f"Required fields validation passed for order {order['id']}")

    def _validate_line_items(self, order: dict[str, Any]) -> None:
        """
        Validates that the order has line items with positive quantity and non-negative price.

        Raises:
            ValidationException: If line items are invalid
        """
        line_items = order.get("line_items")

        if not isinstance(line_items, list) or not line_items:
            raise ValidationException(
                message=f"{INVALID_ORDER_MESSAGE}: o pedido deve ter ao menos um item",
                field="line_items",
                invalid_value=line_items,
                error_code=ErrorCode.INVALID_ORDER_DATA,
            )

        for i, item in enumerate(line_items):
            is_valid, reason = self.validate_line_item(item)
            if not is_valid:
                raise ValidationException(
                    message=f"{INVALID_ORDER_MESSAGE}: item {i + 1} - {reason}",
                    field=f"line_items[{i}]",
                    invalid_value=item,
                    error_code=ErrorCode.INVALID_ORDER_DATA,
                )

        logger.debug(f"Line items validation passed for order {order['id']}: {len(line_items)} items")

    @staticmethod
    def validate_line_item(item: dict[str, Any]) -> tuple[bool, str | None]:
        """
        Validates a single line item.

        Returns:
            tuple: (is_valid, reason) with reason None when valid
        """
        try:
            quantity = int(item.get("quantity", 0))
        except (TypeError, ValueError):
            return False, f"quantidade inválida ({item.get('quantity')})"

        if quantity <= 0:
            return False, f"quantidade inválida ({quantity})"

        try:
            price = Decimal(str(item.get("price", "")))
        except InvalidOperation:
            return False, f"preço inválido ({item.get('price')})"

        if price < 0:
            return False, f"preço inválido ({price})"

        return True, None
