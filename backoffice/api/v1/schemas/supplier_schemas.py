"""
Modelos Pydantic de entrada para los endpoints de fornecedores.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SupplierBase(BaseModel):
    """Campos comunes de un fornecedor."""

    trade_name: Optional[str] = Field(None, max_length=200, description="Nome fantasia")
    cnpj: Optional[str] = Field(None, max_length=18, description="CNPJ com ou sem máscara")
    phone: Optional[str] = Field(None, max_length=30)
    contact_person: Optional[str] = Field(None, max_length=120)

    # Integración
    api_endpoint: Optional[str] = Field(None, max_length=500, description="URL que recebe novos pedidos")
    api_key: Optional[str] = Field(None, max_length=255)
    notification_email: Optional[EmailStr] = None

    # Dirección
    address_cep: Optional[str] = Field(None, max_length=20)
    address_street: Optional[str] = Field(None, max_length=255)
    address_number: Optional[str] = Field(None, max_length=20)
    address_city: Optional[str] = Field(None, max_length=120)
    address_state: Optional[str] = Field(None, max_length=60)

    average_processing_time: Optional[int] = Field(None, ge=0, description="Tempo médio em horas")

    # Internacional
    country_id: Optional[str] = None
    business_license: Optional[str] = Field(None, max_length=60)
    tax_id: Optional[str] = Field(None, max_length=60)
    preferred_language: Optional[str] = Field(None, max_length=10)
    time_zone: Optional[str] = Field(None, max_length=64)
    minimum_order_value: Optional[Decimal] = Field(None, ge=0)


class SupplierCreate(SupplierBase):
    company_name: str = Field(..., min_length=1, max_length=200, description="Razão social")
    email: EmailStr
    active: bool = True


class SupplierUpdate(SupplierBase):
    """Todos los campos son opcionales (actualización parcial)."""

    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    active: Optional[bool] = None


class PerformanceRatingUpdate(BaseModel):
    # Los límites 1..5 los valida el servicio
    rating: float = Field(..., description="Avaliação de 1 a 5")
