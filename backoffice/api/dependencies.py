"""
Dependencias FastAPI que construyen los servicios de cada request.

Los tests las reemplazan con ``app.dependency_overrides``.
"""

from backoffice.db.repositories import CountryRepository
from backoffice.services.customer_service import CustomerService
from backoffice.services.i18n import I18nService
from backoffice.services.pedido_service import PedidoService
from backoffice.services.supplier_service import SupplierService


def get_supplier_service() -> SupplierService:
    return SupplierService()


def get_customer_service() -> CustomerService:
    return CustomerService()


def get_pedido_service() -> PedidoService:
    return PedidoService()


def get_i18n_service() -> I18nService:
    return I18nService()


def get_country_repository() -> CountryRepository:
    return CountryRepository()
