"""
Modelos ORM del back office.

Tablas: countries, translations, customers, suppliers, pedidos y pedido_items.
Los identificadores son textuales (UUID4) y las relaciones no usan borrado
lógico: la cancelación de un pedido es un estado.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.db.base import Base, TimestampMixin, new_id, utcnow
from backoffice.domain.models.pedido import StatusPedido


class Country(Base, TimestampMixin):
    """País soportado, con idioma, moneda y prefijo telefónico."""

    __tablename__ = "countries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    code: Mapped[str] = mapped_column(String(2), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    name_en: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    name_local: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    language: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    phone_prefix: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Translation(Base, TimestampMixin):
    """Texto traducido identificado por (key, language)."""

    __tablename__ = "translations"
    __table_args__ = (UniqueConstraint("key", "language", name="uq_translations_key_language"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    key: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    language: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    context: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class Customer(Base, TimestampMixin):
    """Cliente final de la tienda."""

    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True, index=True)
    cpf_cnpj: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Dirección
    address_cep: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address_street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address_complement: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_neighborhood: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    address_city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    address_state: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)

    whatsapp_consent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Internacional
    country_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("countries.id"), nullable=True)
    document_type: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    document_number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    preferred_language: Mapped[Optional[str]] = mapped_column(String(10), default="pt-BR", nullable=True)

    country: Mapped[Optional["Country"]] = relationship("Country", lazy="selectin")
    pedidos: Mapped[List["Pedido"]] = relationship("Pedido", back_populates="cliente", passive_deletes="all")


class Supplier(Base, TimestampMixin):
    """Fornecedor que recibe y despacha los pedidos."""

    __tablename__ = "suppliers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    trade_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    cnpj: Mapped[Optional[str]] = mapped_column(String(14), unique=True, nullable=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    contact_person: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # Integración
    api_endpoint: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    api_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notification_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Dirección
    address_cep: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address_street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address_city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    address_state: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)

    # Desempeño
    average_processing_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    performance_rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), default=Decimal("5.0"), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Internacional
    country_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("countries.id"), nullable=True)
    business_license: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    tax_id: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    preferred_language: Mapped[Optional[str]] = mapped_column(String(10), default="en", nullable=True)
    time_zone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    minimum_order_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    country: Mapped[Optional["Country"]] = relationship("Country", lazy="selectin")
    pedidos: Mapped[List["Pedido"]] = relationship("Pedido", back_populates="supplier")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        # Nunca exponer la credencial de la API del fornecedor
        data.pop("api_key", None)
        return data


class Pedido(Base):
    """Pedido de la tienda en proceso de fulfillment."""

    __tablename__ = "pedidos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    numero_pedido: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    shopify_order_id: Mapped[Optional[str]] = mapped_column(String(40), unique=True, nullable=True, index=True)
    cliente_id: Mapped[str] = mapped_column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    supplier_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("suppliers.id"), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default=StatusPedido.PENDENTE.value, nullable=False, index=True)
    valor_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="BRL", nullable=False)
    endereco_entrega: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    observacoes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    codigo_rastreamento: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    data_entrega_prevista: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    customer_language: Mapped[Optional[str]] = mapped_column(String(10), default="pt-BR", nullable=True)
    supplier_language: Mapped[Optional[str]] = mapped_column(String(10), default="en", nullable=True)
    data_criacao: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    data_atualizacao: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    cliente: Mapped["Customer"] = relationship("Customer", back_populates="pedidos", lazy="selectin")
    supplier: Mapped[Optional["Supplier"]] = relationship("Supplier", back_populates="pedidos", lazy="selectin")
    itens: Mapped[List["PedidoItem"]] = relationship(
        "PedidoItem", back_populates="pedido", cascade="all, delete-orphan", lazy="selectin"
    )

    def to_dict(self, include_relations: bool = True) -> Dict[str, Any]:
        data = super().to_dict()
        if include_relations:
            data["itens"] = [item.to_dict() for item in self.itens]
            data["cliente"] = self.cliente.to_dict() if self.cliente else None
            data["supplier"] = self.supplier.to_dict() if self.supplier else None
        return data


class PedidoItem(Base):
    """Ítem de un pedido."""

    __tablename__ = "pedido_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    pedido_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pedidos.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sku: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    quantidade: Mapped[int] = mapped_column(Integer, nullable=False)
    preco_unitario: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    pedido: Mapped["Pedido"] = relationship("Pedido", back_populates="itens")
