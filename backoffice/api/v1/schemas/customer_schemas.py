"""
Modelos Pydantic de entrada para los endpoints de clientes.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class CustomerBase(BaseModel):
    phone: Optional[str] = Field(None, max_length=30)
    cpf_cnpj: Optional[str] = Field(None, max_length=20)

    address_cep: Optional[str] = Field(None, max_length=20)
    address_street: Optional[str] = Field(None, max_length=255)
    address_number: Optional[str] = Field(None, max_length=20)
    address_complement: Optional[str] = Field(None, max_length=255)
    address_neighborhood: Optional[str] = Field(None, max_length=120)
    address_city: Optional[str] = Field(None, max_length=120)
    address_state: Optional[str] = Field(None, max_length=60)

    whatsapp_consent: Optional[bool] = None

    country_id: Optional[str] = None
    country_code: Optional[str] = Field(None, min_length=2, max_length=2, description="ISO-2, ex.: BR")
    document_type: Optional[str] = Field(None, max_length=30, description="cpf, cnpj, ssn, national_id...")
    document_number: Optional[str] = Field(None, max_length=40)
    preferred_language: Optional[str] = Field(None, max_length=10)

    @field_validator("country_code", mode="before")
    @classmethod
    def upper_country_code(cls, v):
        return v.upper() if isinstance(v, str) else v


class CustomerCreate(CustomerBase):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    whatsapp_consent: bool = False


class CustomerUpdate(CustomerBase):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
