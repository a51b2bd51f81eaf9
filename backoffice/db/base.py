"""
Base declarativa y mixins para los modelos ORM.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Genera el identificador textual de un registro."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base de todos los modelos del back office."""

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializa las columnas del modelo a tipos JSON-compatibles.

        Decimal se convierte a float, datetime a ISO 8601 y Enum a su valor.
        """
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, Decimal):
                value = float(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            data[column.key] = value
        return data


class TimestampMixin:
    """Mixin para agregar timestamps automáticos."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
