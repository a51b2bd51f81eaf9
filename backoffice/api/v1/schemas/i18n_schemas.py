"""
Modelos Pydantic para i18n y validación de documentos.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class TranslationCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=255)
    language: str = Field(..., min_length=2, max_length=10)
    value: str = Field(..., min_length=1)
    context: Optional[str] = Field(None, max_length=255)


class DocumentValidationRequest(BaseModel):
    document: str = Field(..., min_length=1, max_length=40)
    country: str = Field(..., min_length=2, max_length=2, description="ISO-2")
    type: Optional[str] = Field(None, max_length=30, description="cpf, cnpj, ssn, aadhaar...")

    @field_validator("country", mode="before")
    @classmethod
    def upper_country(cls, v):
        return v.upper() if isinstance(v, str) else v
