"""
Motor de scheduling para tareas diarias del back office.

Una vez por día, a la hora DELAYED_ORDERS_CHECK_HOUR en SCHEDULER_TIMEZONE,
encola el job de detección de pedidos atrasados en la cola de tracking.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

import pytz

from backoffice.core.config import get_settings
from backoffice.workers.queue import JOB_DETECT_DELAYED_ORDERS, TRACKING_QUEUE, get_queue

settings = get_settings()
logger = logging.getLogger(__name__)

CHECK_INTERVAL_SECONDS = 60

# Global scheduler state
_scheduler_running = False
_scheduler_task: Optional[asyncio.Task] = None
_last_delayed_check_date: Optional[date] = None


async def start_scheduler():
    """
    Inicia el loop del scheduler.
    """
    global _scheduler_running, _scheduler_task

    if _scheduler_running:
        logger.warning("Scheduler ya está ejecutándose")
        return

    logger.info(
        f"🕒 Iniciando scheduler (pedidos atrasados a las {settings.DELAYED_ORDERS_CHECK_HOUR}h "
        f"{settings.SCHEDULER_TIMEZONE})"
    )
    _scheduler_running = True
    _scheduler_task = asyncio.create_task(_scheduler_loop())

    logger.info("✅ Scheduler iniciado correctamente")


async def stop_scheduler():
    """
    Detiene el scheduler esperando la cancelación de su tarea.
    """
    global _scheduler_running, _scheduler_task

    if not _scheduler_running:
        logger.info("Scheduler no está ejecutándose")
        return

    logger.info("🛑 Deteniendo scheduler")
    _scheduler_running = False

    if _scheduler_task and not _scheduler_task.done():
        _scheduler_task.cancel()
        try:
            await _scheduler_task
        except asyncio.CancelledError:
            pass

    _scheduler_task = None
    logger.info("✅ Scheduler detenido correctamente")


async def _scheduler_loop():
    """
    Loop principal del scheduler que ejecuta tareas programadas.
    """
    while _scheduler_running:
        try:
            await check_delayed_orders_schedule()
            await asyncio.sleep(CHECK_INTERVAL_SECONDS)

        except asyncio.CancelledError:
            logger.info("Loop del scheduler cancelado")
            break
        except Exception as e:
            logger.error(f"Error en loop del scheduler: {e}")
            await asyncio.sleep(CHECK_INTERVAL_SECONDS)


async def check_delayed_orders_schedule(now: Optional[datetime] = None) -> bool:
    """
    Encola la detección de pedidos atrasados si corresponde.

    Args:
        now: Momento de referencia (por defecto ahora en SCHEDULER_TIMEZONE)

    Returns:
        bool: True si se encoló el job
    """
    global _last_delayed_check_date

    tz = pytz.timezone(settings.SCHEDULER_TIMEZONE)
    current_time = now.astimezone(tz) if now else datetime.now(tz)
    current_date = current_time.date()

    if current_time.hour != settings.DELAYED_ORDERS_CHECK_HOUR:
        return False

    # Ya se ejecutó hoy
    if _last_delayed_check_date == current_date:
        return False

    logger.info(f"🌙 Encolando detección de pedidos atrasados ({current_time.strftime('%Y-%m-%d %H:%M:%S %Z')})")

    job = await get_queue(TRACKING_QUEUE).add(
        JOB_DETECT_DELAYED_ORDERS,
        {"max_delivery_days": settings.MAX_DELIVERY_DAYS},
    )
    _last_delayed_check_date = current_date

    logger.info(f"✅ Job {job.id} de pedidos atrasados encolado")
    return True


def get_scheduler_status() -> Dict[str, Any]:
    """
    Obtiene el estado actual del scheduler.

    Returns:
        Dict: Información del estado
    """
    return {
        "running": _scheduler_running,
        "task_active": _scheduler_task is not None and not _scheduler_task.done(),
        "delayed_orders_check": {
            "enabled": settings.ENABLE_SCHEDULED_JOBS,
            "hour": settings.DELAYED_ORDERS_CHECK_HOUR,
            "timezone": settings.SCHEDULER_TIMEZONE,
            "max_delivery_days": settings.MAX_DELIVERY_DAYS,
            "last_check_date": _last_delayed_check_date.isoformat() if _last_delayed_check_date else None,
            "next_check_estimate": _get_next_check_time(),
        },
    }


def _get_next_check_time() -> str:
    """
    Calcula la próxima ejecución de la detección de pedidos atrasados.

    Returns:
        str: Próxima ejecución en formato ISO
    """
    tz = pytz.timezone(settings.SCHEDULER_TIMEZONE)
    now = datetime.now(tz)

    next_check = now.replace(hour=settings.DELAYED_ORDERS_CHECK_HOUR, minute=0, second=0, microsecond=0)

    # Si ya pasó la hora de hoy, o ya corrió hoy, queda para mañana
    if now >= next_check and (now.hour != settings.DELAYED_ORDERS_CHECK_HOUR or _last_delayed_check_date == now.date()):
        next_check = tz.normalize(next_check + timedelta(days=1))

    return next_check.isoformat()
