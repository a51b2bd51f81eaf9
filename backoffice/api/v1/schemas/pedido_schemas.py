"""
Modelos Pydantic de entrada para los endpoints de pedidos.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from backoffice.domain.models import StatusPedido


class PedidoItemCreate(BaseModel):
    sku: Optional[str] = Field(None, max_length=100)
    nome: str = Field(..., min_length=1, max_length=255)
    quantidade: int = Field(..., gt=0, description="Quantidade maior que zero")
    preco_unitario: Decimal = Field(..., ge=0, decimal_places=2)


class PedidoCreate(BaseModel):
    """
    Pedido creado manualmente por el operador.

    ``valor_total`` no se recibe: se calcula a partir de los ítems.
    """

    cliente_id: str
    itens: List[PedidoItemCreate] = Field(..., min_length=1)
    shopify_order_id: Optional[str] = Field(None, max_length=40)
    supplier_id: Optional[str] = None
    currency: str = Field("BRL", min_length=3, max_length=3)
    endereco_entrega: Optional[Dict[str, Any]] = None
    observacoes: Optional[str] = None
    data_entrega_prevista: Optional[datetime] = None


class PedidoUpdate(BaseModel):
    status: Optional[StatusPedido] = None
    codigo_rastreamento: Optional[str] = Field(None, max_length=60)
    observacoes: Optional[str] = None
    data_entrega_prevista: Optional[datetime] = None


class PedidoCancel(BaseModel):
    motivo: Optional[str] = Field(None, max_length=500, description="Motivo do cancelamento")


class ShopifyOrderPayload(BaseModel):
    """Pedido crudo de Shopify; la validación de negocio ocurre en el worker."""

    order: Dict[str, Any]
