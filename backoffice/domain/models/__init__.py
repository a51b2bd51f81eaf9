"""
Domain models for business entities.

These models represent core business concepts and contain
business logic and invariants.
"""

from .customer import CustomerDomain
from .pedido import PedidoDomain, PedidoItemDomain, StatusPedido

__all__ = ["PedidoDomain", "PedidoItemDomain", "CustomerDomain", "StatusPedido"]
