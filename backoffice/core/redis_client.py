"""
Cliente Redis para cache y colas de trabajo.

Este módulo proporciona el cliente compartido de Redis y las operaciones
de cache. Sin REDIS_URL el cache queda deshabilitado (no-op) y los errores
de Redis se registran sin interrumpir la request.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from backoffice.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """
    Returns a Redis client instance.

    Returns:
        redis.Redis: Redis client instance

    Raises:
        RuntimeError: If Redis URL is not configured
    """
    global _redis_client

    if not settings.REDIS_URL:
        raise RuntimeError("Redis URL not configured")

    if _redis_client is None:
        # La conexión real se establece en el primer comando
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
        logger.debug("Redis client instance created")

    return _redis_client


async def check_redis_connection() -> bool:
    """
    Verifica la conectividad con Redis.

    Returns:
        bool: True si la conexión es exitosa, False en caso contrario
    """
    if not settings.REDIS_URL:
        logger.warning("Redis URL not configured")
        return False

    try:
        return bool(await get_redis_client().ping())
    except Exception as e:
        logger.error(f"Redis connection test failed: {e}")
        return False


async def get_cache(key: str) -> Optional[str]:
    """
    Obtiene un valor del cache.

    Args:
        key: Clave del cache

    Returns:
        Optional[str]: Valor del cache o None si no existe
    """
    if not settings.REDIS_URL:
        return None

    try:
        return await get_redis_client().get(key)
    except Exception as e:
        logger.warning(f"⚠️ Cache read failed for {key}: {e}")
        return None


async def set_cache(key: str, value: str, expire: Optional[int] = None) -> bool:
    """
    Establece un valor en el cache.

    Args:
        key: Clave del cache
        value: Valor a almacenar
        expire: Tiempo de expiración en segundos

    Returns:
        bool: True si fue exitoso
    """
    if not settings.REDIS_URL:
        return False

    try:
        await get_redis_client().set(key, value, ex=expire)
        return True
    except Exception as e:
        logger.warning(f"⚠️ Cache write failed for {key}: {e}")
        return False


async def delete_cache(key: str) -> bool:
    """
    Elimina un valor del cache.

    Args:
        key: Clave del cache

    Returns:
        bool: True si fue exitoso
    """
    if not settings.REDIS_URL:
        return False

    try:
        await get_redis_client().delete(key)
        return True
    except Exception as e:
        logger.warning(f"⚠️ Cache delete failed for {key}: {e}")
        return False


async def get_cached_json(key: str) -> Optional[Any]:
    """Lee y decodifica un valor JSON del cache."""
    raw = await get_cache(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning(f"⚠️ Invalid JSON in cache for {key}, ignoring")
        return None


async def set_cached_json(key: str, value: Any, expire: Optional[int] = None) -> bool:
    return await set_cache(key, json.dumps(value, default=str), expire)


async def initialize_redis():
    """
    Inicializa Redis verificando la conexión.

    Raises:
        ConnectionError: Si Redis está configurado pero no responde
    """
    if not settings.REDIS_URL:
        logger.warning("⚠️ REDIS_URL no configurada - cache y colas deshabilitados")
        return

    if not await check_redis_connection():
        raise ConnectionError(f"Redis no responde en {settings.REDIS_URL}")

    logger.info("✅ Redis connection established")


async def close_redis():
    """Cierra el pool de conexiones Redis."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis connection pool closed")
