"""
Utilidades de fecha/hora en la zona horaria del negocio y generación
de números de pedido.
"""

import random
from datetime import datetime, timedelta
from typing import Optional

import pytz

from backoffice.core.config import get_settings

settings = get_settings()


def get_business_timezone():
    return pytz.timezone(settings.SCHEDULER_TIMEZONE)


def now_local() -> datetime:
    """Fecha/hora actual con zona horaria del negocio (America/Sao_Paulo por defecto)."""
    return datetime.now(get_business_timezone())


def start_of_day(moment: Optional[datetime] = None) -> datetime:
    """
    Inicio del día (00:00) en la zona horaria del negocio.

    Args:
        moment: Momento de referencia; por defecto ahora

    Returns:
        datetime: Inicio del día, timezone-aware
    """
    tz = get_business_timezone()
    local = (moment or now_local()).astimezone(tz)
    return tz.localize(datetime(local.year, local.month, local.day))


def start_of_month(moment: Optional[datetime] = None) -> datetime:
    tz = get_business_timezone()
    local = (moment or now_local()).astimezone(tz)
    return tz.localize(datetime(local.year, local.month, 1))


def days_ago(days: int, moment: Optional[datetime] = None) -> datetime:
    return (moment or now_local()) - timedelta(days=days)


def generate_order_number(moment: Optional[datetime] = None) -> str:
    """
    Genera el número de pedido ``PED{YYYYMMDD}{4 dígitos}``.

    Args:
        moment: Fecha de referencia; por defecto hoy en la zona del negocio

    Returns:
        str: Número de pedido
    """
    local = (moment or now_local()).astimezone(get_business_timezone())
    return f"PED{local.strftime('%Y%m%d')}{random.randint(0, 9999):04d}"
