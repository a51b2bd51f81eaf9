"""
Schemas de entrada de la API v1.
"""

from .customer_schemas import CustomerCreate, CustomerUpdate
from .i18n_schemas import DocumentValidationRequest, TranslationCreate
from .pedido_schemas import PedidoCancel, PedidoCreate, PedidoItemCreate, PedidoUpdate, ShopifyOrderPayload
from .supplier_schemas import PerformanceRatingUpdate, SupplierCreate, SupplierUpdate

__all__ = [
    "SupplierCreate",
    "SupplierUpdate",
    "PerformanceRatingUpdate",
    "CustomerCreate",
    "CustomerUpdate",
    "PedidoItemCreate",
    "PedidoCreate",
    "PedidoUpdate",
    "PedidoCancel",
    "ShopifyOrderPayload",
    "TranslationCreate",
    "DocumentValidationRequest",
]
