"""
Pedido domain model (Aggregate Root).

Represents an order being fulfilled, with its items and the status
lifecycle rules (assignment, shipping, cancellation).
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from backoffice.domain.value_objects.money import Money


class StatusPedido(str, Enum):
    """Estados del ciclo de vida de un pedido."""

    PENDENTE = "PENDENTE"
    CONFIRMADO = "CONFIRMADO"
    PROCESSANDO = "PROCESSANDO"
    ENVIADO = "ENVIADO"
    ENTREGUE = "ENTREGUE"
    CANCELADO = "CANCELADO"


# Pedidos abiertos: cuentan como carga de trabajo del fornecedor
OPEN_STATUSES = (StatusPedido.PENDENTE, StatusPedido.CONFIRMADO, StatusPedido.PROCESSANDO)

# Estados desde los cuales ya no se puede cancelar
FINAL_STATUSES = (StatusPedido.CANCELADO, StatusPedido.ENTREGUE)


@dataclass
class PedidoItemDomain:
    """
    Line item of a pedido.

    Attributes:
        sku: Product SKU (optional for custom items)
        nome: Product name
        quantidade: Quantity ordered, greater than zero
        preco_unitario: Unit price
    """

    nome: str
    quantidade: int
    preco_unitario: Money
    sku: Optional[str] = None

    def __post_init__(self) -> None:
        if self.quantidade <= 0:
            raise ValueError(f"Quantity must be positive: {self.quantidade}")

    @property
    def subtotal(self) -> Money:
        return self.preco_unitario * self.quantidade

    def to_dict(self) -> dict[str, Any]:
        return {
            "sku": self.sku,
            "nome": self.nome,
            "quantidade": self.quantidade,
            "preco_unitario": self.preco_unitario.amount,
        }

    @classmethod
    def from_shopify_line_item(cls, item: dict[str, Any], currency: str = "BRL") -> "PedidoItemDomain":
        """Builds an item from a Shopify REST ``line_items`` entry."""
        return cls(
            sku=item.get("sku") or None,
            nome=item.get("title") or item.get("name") or "Produto",
            quantidade=int(item.get("quantity", 0)),
            preco_unitario=Money(amount=Decimal(str(item.get("price", "0"))), currency=currency),
        )


@dataclass
class PedidoDomain:
    """
    Domain model representing a pedido (Aggregate Root).

    Attributes:
        cliente_id: Owning customer id
        itens: Line items
        currency: Currency of all amounts
        status: Current lifecycle status
        shopify_order_id: Origin order id in Shopify
        supplier_id: Assigned supplier (None until assignment)
        endereco_entrega: Shipping address snapshot
        observacoes: Free-form notes
        customer_language: Language used to contact the customer
    """

    cliente_id: str
    itens: list[PedidoItemDomain] = field(default_factory=list)
    currency: str = "BRL"
    status: StatusPedido = StatusPedido.PENDENTE
    shopify_order_id: Optional[str] = None
    supplier_id: Optional[str] = None
    endereco_entrega: Optional[dict[str, Any]] = None
    observacoes: Optional[str] = None
    customer_language: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.cliente_id:
            raise ValueError("Customer is required")

        for item in self.itens:
            if item.preco_unitario.currency != self.currency:
                raise ValueError(
                    f"Item currency ({item.preco_unitario.currency}) doesn't match order currency ({self.currency})"
                )

    @property
    def valor_total(self) -> Money:
        """Sum of quantidade × preco_unitario over every item."""
        total = Money.zero(self.currency)
        for item in self.itens:
            total = total + item.subtotal
        return total

    @property
    def items_count(self) -> int:
        return len(self.itens)

    def to_dict(self) -> dict[str, Any]:
        """Convert pedido to dictionary for persistence."""
        return {
            "cliente_id": self.cliente_id,
            "supplier_id": self.supplier_id,
            "shopify_order_id": self.shopify_order_id,
            "status": self.status.value,
            "valor_total": self.valor_total.amount,
            "currency": self.currency,
            "endereco_entrega": self.endereco_entrega,
            "observacoes": self.observacoes,
            "customer_language": self.customer_language,
        }


def can_cancel(status: str) -> bool:
    """Indica si un pedido en ``status`` todavía puede cancelarse."""
    return StatusPedido(status) not in FINAL_STATUSES


def append_cancellation_note(observacoes: Optional[str], motivo: Optional[str]) -> Optional[str]:
    """
    Agrega el motivo de cancelación a las observaciones existentes.

    Args:
        observacoes: Observaciones actuales
        motivo: Motivo de la cancelación

    Returns:
        Optional[str]: Observaciones actualizadas
    """
    if not motivo:
        return observacoes

    note = f"Cancelado: {motivo}"
    return f"{observacoes}\n{note}" if observacoes else note
