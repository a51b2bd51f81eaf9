"""
Repository package of the back office.

- BaseRepository: Connection/session handling, retry and logging decorators
- SupplierRepository: Supplier CRUD and workload queries
- CustomerRepository: Customer CRUD
- PedidoRepository: Pedidos, items and statistics
- CountryRepository: Country lookups
- TranslationRepository: Translated strings
"""

from .base import BaseRepository
from .country_repository import CountryRepository
from .customer_repository import CustomerRepository
from .pedido_repository import PedidoRepository
from .supplier_repository import SupplierRepository
from .translation_repository import TranslationRepository

__all__ = [
    "BaseRepository",
    "SupplierRepository",
    "CustomerRepository",
    "PedidoRepository",
    "CountryRepository",
    "TranslationRepository",
]
