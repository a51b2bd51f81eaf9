"""
Sistema de health checks para monitoreo de servicios.

Este módulo proporciona funciones para verificar el estado de la base de datos,
Redis y los recursos del host (disco y memoria).
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import psutil

from backoffice.core.config import get_settings
from backoffice.core.redis_client import check_redis_connection
from backoffice.db.connection import get_db_connection

settings = get_settings()
logger = logging.getLogger(__name__)

# Variable global para tracking de uptime
_app_start_time = datetime.now(timezone.utc)

# Cache global para health checks
_health_cache: Dict[str, Any] = {}
_cache_timestamp: Dict[str, datetime] = {}


async def _run_checks(checks, timeout: float) -> Dict[str, Dict[str, Any]]:
    tasks = [
        asyncio.create_task(run_health_check_with_timeout(name, func, timeout), name=f"health_check_{name}")
        for name, func in checks
    ]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    services = {}
    for (name, _), result in zip(checks, results):
        if isinstance(result, Exception):
            services[name] = {"status": "unhealthy", "error": str(result), "latency_ms": None}
        else:
            services[name] = result
    return services


async def get_health_status_fast() -> Dict[str, Any]:
    """
    Obtiene el estado de salud rápido usando cache.

    Returns:
        Dict: Estado de salud básico (desde cache si está disponible)
    """
    cache_key = "health_status"
    now = datetime.now(timezone.utc)

    if (
        cache_key in _health_cache
        and cache_key in _cache_timestamp
        and (now - _cache_timestamp[cache_key]).total_seconds() < settings.HEALTH_CHECK_CACHE_TTL
    ):
        logger.debug("Returning cached health status")
        return _health_cache[cache_key]

    services = await _run_checks([("memory", check_memory_usage), ("disk_space", check_disk_space)], timeout=1.0)

    health_response = {
        "overall": all(s.get("status") in ("healthy", "timeout") for s in services.values()),
        "services": services,
        "uptime": get_uptime_info(),
        "timestamp": now.isoformat(),
        "cache_info": "fast_check",
    }

    _health_cache[cache_key] = health_response
    _cache_timestamp[cache_key] = now

    return health_response


async def get_health_status() -> Dict[str, Any]:
    """
    Obtiene el estado de salud completo de todos los servicios.

    Returns:
        Dict: Estado de salud completo del sistema
    """
    health_checks = [
        ("database", check_database_health),
        ("redis", check_redis_health),
        ("disk_space", check_disk_space),
        ("memory", check_memory_usage),
    ]

    try:
        services = await asyncio.wait_for(
            _run_checks(health_checks, timeout=settings.HEALTH_CHECK_TIMEOUT),
            timeout=settings.HEALTH_CHECK_TIMEOUT + 1,
        )
    except asyncio.TimeoutError:
        logger.error("Health check timeout exceeded")
        services = {name: {"status": "timeout", "error": "Health check timeout"} for name, _ in health_checks}

    return {
        "overall": all(s.get("status") == "healthy" for s in services.values()),
        "services": services,
        "uptime": get_uptime_info(),
        "system": get_system_info(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def run_health_check_with_timeout(service_name: str, check_func, timeout: float) -> Dict[str, Any]:
    """
    Ejecuta una verificación de salud individual con timeout específico.

    Args:
        service_name: Nombre del servicio
        check_func: Función de verificación
        timeout: Timeout en segundos

    Returns:
        Dict: Resultado de la verificación
    """
    start_time = time.time()

    try:
        result = await asyncio.wait_for(check_func(), timeout=timeout)
        status = "healthy" if result else "unhealthy"
        error = None
    except asyncio.TimeoutError:
        logger.warning(f"Health check timeout for {service_name} after {timeout}s")
        status = "timeout"
        error = f"Health check timeout after {timeout}s"
    except Exception as e:
        logger.error(f"Health check failed for {service_name}: {e}")
        status = "unhealthy"
        error = str(e)

    response = {
        "status": status,
        "latency_ms": round((time.time() - start_time) * 1000, 2),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if error:
        response["error"] = error
    return response


async def check_database_health() -> bool:
    """
    Verifica la conectividad con PostgreSQL.

    Returns:
        bool: True si la base de datos está disponible
    """
    conn_db = get_db_connection()

    if not conn_db.is_initialized():
        return False

    health_info = await conn_db.health_check()
    return health_info.get("test_passed", False)


async def check_redis_health() -> bool:
    """
    Verifica la conectividad con Redis.

    Returns:
        bool: True si Redis está disponible
    """
    return await check_redis_connection()


async def check_disk_space() -> bool:
    """
    Verifica el espacio en disco disponible.

    Returns:
        bool: True si hay suficiente espacio
    """
    disk_usage = psutil.disk_usage("/")
    free_percent = (disk_usage.free / disk_usage.total) * 100
    return free_percent > settings.DISK_SPACE_THRESHOLD


async def check_memory_usage() -> bool:
    """
    Verifica el uso de memoria del sistema.

    Returns:
        bool: True si el uso de memoria está dentro de límites
    """
    return psutil.virtual_memory().percent < settings.MEMORY_USAGE_THRESHOLD


async def is_ready() -> Dict[str, Any]:
    """
    Readiness: la app sólo está lista con base de datos y Redis disponibles.

    Returns:
        Dict: ready y el estado de cada dependencia
    """
    database_ok, redis_ok = await asyncio.gather(check_database_health(), check_redis_health())
    return {"ready": database_ok and redis_ok, "database": database_ok, "redis": redis_ok}


def get_uptime_info() -> Dict[str, Any]:
    """
    Obtiene información de uptime de la aplicación.

    Returns:
        Dict: Información de uptime
    """
    current_time = datetime.now(timezone.utc)
    uptime_delta = current_time - _app_start_time

    return {
        "start_time": _app_start_time.isoformat(),
        "current_time": current_time.isoformat(),
        "uptime_seconds": int(uptime_delta.total_seconds()),
        "uptime_human": format_uptime(uptime_delta),
    }


def get_system_info() -> Dict[str, Any]:
    try:
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage("/")

        return {
            "cpu_count": psutil.cpu_count(),
            "cpu_usage_percent": psutil.cpu_percent(interval=0.1),
            "memory_total_gb": round(memory.total / (1024**3), 2),
            "memory_usage_percent": memory.percent,
            "memory_available_gb": round(memory.available / (1024**3), 2),
            "disk_total_gb": round(disk.total / (1024**3), 2),
            "disk_free_gb": round(disk.free / (1024**3), 2),
            "disk_usage_percent": round(((disk.total - disk.free) / disk.total) * 100, 2),
        }
    except Exception as e:
        logger.error(f"Error getting system info: {e}")
        return {"error": "Unable to retrieve system information"}


def format_uptime(uptime_delta: timedelta) -> str:
    """
    Formatea el uptime en formato legible.

    Args:
        uptime_delta: Delta de tiempo de uptime

    Returns:
        str: Uptime formateado, p.ej. "1d 2h 5s"
    """
    days = uptime_delta.days
    hours, remainder = divmod(uptime_delta.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds or not parts:
        parts.append(f"{seconds}s")

    return " ".join(parts)
