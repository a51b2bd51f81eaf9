"""
Interfaces/Protocols for order services (Dependency Inversion Principle).

These protocols define the contracts the order worker depends on,
allowing for loose coupling and easy testing.
"""

from typing import Any, Protocol


class IOrderValidator(Protocol):
    """Protocol for order validation services."""

    def validate(self, order: dict[str, Any]) -> dict[str, Any]:
        """Validate a Shopify order."""
        ...


class IPedidoCreator(Protocol):
    """Protocol for services that persist pedidos from Shopify orders."""

    async def create_from_shopify(self, order: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """Create (or reuse) the pedido for a Shopify order; the flag is False when it already existed."""
        ...

    async def set_status(self, pedido_id: str, status: str) -> dict[str, Any]:
        """Update the pedido status."""
        ...

    async def get_pedido(self, pedido_id: str) -> dict[str, Any]:
        """Fetch a pedido with its relations."""
        ...


class ISupplierAssigner(Protocol):
    """Protocol for supplier assignment services."""

    async def assign(self, pedido: dict[str, Any]) -> dict[str, Any]:
        """Assign a supplier to the pedido, return the updated pedido."""
        ...


class IOrderNotifier(Protocol):
    """Protocol for customer and supplier notification services."""

    async def notify_customer(self, pedido: dict[str, Any], template: str = "order_confirmation") -> dict[str, Any]:
        """Notify the customer about the pedido."""
        ...

    async def notify_supplier(self, pedido: dict[str, Any]) -> dict[str, Any]:
        """Notify the assigned supplier about a new pedido."""
        ...
