"""
Gestión del ciclo de vida de la aplicación FastAPI.

Este módulo maneja los eventos de startup y shutdown de la aplicación:
base de datos, Redis, workers de las colas y scheduler.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI

from backoffice.core.config import get_environment_info, get_settings, validate_required_settings
from backoffice.core.logging_config import setup_logging
from backoffice.version import version_string

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestión del ciclo de vida de la aplicación.
    Maneja eventos de startup y shutdown de manera ordenada.

    Args:
        app: Instancia de FastAPI
    """
    # === STARTUP ===
    logger.info(f"🚀 Iniciando {settings.APP_NAME} {version_string()}...")

    try:
        # 1. Configurar logging
        await startup_configure_logging()

        # 2. Verificar configuración
        await startup_verify_configuration()

        # 3. Inicializar base de datos
        await startup_initialize_database()

        # 4. Inicializar Redis
        await startup_initialize_redis()

        # 5. Iniciar workers de las colas
        await startup_start_queue_workers()

        # 6. Iniciar scheduler
        await startup_configure_scheduled_tasks()

        # 7. Ejecutar verificaciones finales
        await startup_final_checks()

        logger.info("🎉 Aplicación iniciada correctamente")

    except Exception as e:
        logger.error(f"❌ Error durante el startup: {e}")
        await cleanup_on_startup_failure()
        sys.exit(1)

    # === YIELD (aplicación corriendo) ===
    yield

    # === SHUTDOWN ===
    logger.info(f"🛑 Cerrando {settings.APP_NAME}...")

    try:
        await shutdown_stop_scheduled_tasks()
        await shutdown_stop_queue_workers()
        await shutdown_close_connections()
        await shutdown_finalize_logging()

        logger.info("👋 Aplicación cerrada correctamente")

    except Exception as e:
        logger.error(f"❌ Error durante el shutdown: {e}")


# === FUNCIONES DE STARTUP ===


async def startup_configure_logging():
    """Configura el sistema de logging."""
    try:
        setup_logging()
        logger.info("✅ Sistema de logging configurado")
    except Exception as e:
        print(f"Error configurando logging: {e}")
        raise


async def startup_verify_configuration():
    """Verifica que la configuración sea válida."""
    validate_required_settings()
    logger.debug(f"Entorno: {get_environment_info()}")
    logger.info("✅ Configuración verificada")


async def startup_initialize_database():
    """Inicializa el pool de PostgreSQL (y crea tablas si DB_AUTO_CREATE_TABLES)."""
    from backoffice.db.connection import initialize_database

    await initialize_database()
    logger.info("✅ Base de datos inicializada")


async def startup_initialize_redis():
    """Verifica Redis; es crítico si hay workers o scheduler habilitados."""
    from backoffice.core.redis_client import initialize_redis

    try:
        await initialize_redis()
    except ConnectionError:
        if settings.ENABLE_QUEUE_WORKERS or settings.ENABLE_SCHEDULED_JOBS:
            raise
        logger.warning("⚠️ Redis no disponible - cache deshabilitado (no crítico)")


async def startup_start_queue_workers():
    """Inicia los consumidores de las colas."""
    if not settings.ENABLE_QUEUE_WORKERS:
        logger.info("ℹ️ Workers de colas deshabilitados")
        return

    from backoffice.workers.runner import start_workers

    await start_workers()


async def startup_configure_scheduled_tasks():
    """Configura tareas programadas."""
    if not settings.ENABLE_SCHEDULED_JOBS:
        logger.info("ℹ️ Tareas programadas deshabilitadas")
        return

    try:
        from backoffice.core.scheduler import start_scheduler

        await start_scheduler()
    except Exception as e:
        logger.error(f"Error configurando tareas programadas: {e}")
        logger.warning("⚠️ Continuando sin scheduler automático")


async def startup_final_checks():
    """Ejecuta verificaciones finales antes de completar el startup."""
    try:
        from backoffice.core.health import is_ready

        readiness = await is_ready()
        if readiness["ready"]:
            logger.info("✅ Sistema completamente saludable")
        else:
            logger.warning(f"⚠️ Algunos servicios no están disponibles: {readiness}")

        if settings.ALERT_EMAIL_ENABLED:
            from backoffice.utils.notifications import test_email_configuration

            await test_email_configuration()
            logger.info("✅ Sistema de alertas configurado")

        logger.info("🔧 Configuración activa:")
        logger.info(f"   - Entorno: {settings.ENVIRONMENT}")
        logger.info(f"   - Debug: {settings.DEBUG}")
        for feature, enabled in get_startup_info()["features"].items():
            logger.info(f"   - {feature}: {enabled}")

    except Exception as e:
        logger.warning(f"⚠️ Error en verificaciones finales: {e}")


async def cleanup_on_startup_failure():
    """Limpia recursos en caso de fallo durante startup."""
    try:
        logger.info("🧹 Limpiando recursos tras fallo en startup...")
        await shutdown_stop_scheduled_tasks()
        await shutdown_stop_queue_workers()
        await shutdown_close_connections()

    except Exception as e:
        logger.error(f"Error durante limpieza de startup: {e}")


# === FUNCIONES DE SHUTDOWN ===


async def shutdown_stop_scheduled_tasks():
    """Detiene tareas programadas."""
    try:
        from backoffice.core.scheduler import stop_scheduler

        await stop_scheduler()
    except Exception as e:
        logger.error(f"Error deteniendo scheduler: {e}")


async def shutdown_stop_queue_workers():
    """Detiene los workers; los jobs en curso vuelven a la cola en el próximo arranque."""
    try:
        from backoffice.workers.runner import stop_workers

        await stop_workers()
    except Exception as e:
        logger.error(f"Error deteniendo workers: {e}")


async def shutdown_close_connections():
    """Cierra conexiones de manera limpia."""
    try:
        from backoffice.db.supplier_api_client import close_supplier_api_client

        await close_supplier_api_client()
    except Exception as e:
        logger.error(f"Error cerrando cliente de fornecedores: {e}")

    try:
        from backoffice.core.redis_client import close_redis

        await close_redis()
    except Exception as e:
        logger.error(f"Error cerrando Redis: {e}")

    try:
        from backoffice.db.connection import close_database

        await close_database()
        logger.info("✅ Conexión a base de datos cerrada")
    except Exception as e:
        logger.error(f"Error cerrando base de datos: {e}")


async def shutdown_finalize_logging():
    """Finaliza el sistema de logging."""
    try:
        for handler in logging.getLogger().handlers:
            handler.flush()

        logger.info("✅ Sistema de logging finalizado")

    except Exception as e:
        print(f"Error finalizando logging: {e}")


def get_startup_info() -> Dict[str, Any]:
    """
    Obtiene información sobre el estado del startup.

    Returns:
        Dict: Información del startup
    """
    return {
        "app_name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
        "features": {
            "queue_workers": settings.ENABLE_QUEUE_WORKERS,
            "scheduled_jobs": settings.ENABLE_SCHEDULED_JOBS,
            "rate_limiting": settings.ENABLE_RATE_LIMITING,
            "alerts": settings.ALERT_EMAIL_ENABLED,
        },
        "services": {
            "redis_enabled": bool(settings.REDIS_URL),
            "database_configured": bool(settings.DATABASE_URL),
        },
    }
