"""
Configuración centralizada de routers para la aplicación FastAPI.

Este módulo se encarga de registrar todos los routers de la API,
configurar endpoints base y organizar las rutas de manera estructurada.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from backoffice.api.v1.endpoints.countries import router as countries_router
from backoffice.api.v1.endpoints.customers import router as customers_router
from backoffice.api.v1.endpoints.i18n import router as i18n_router
from backoffice.api.v1.endpoints.pedidos import router as pedidos_router
from backoffice.api.v1.endpoints.queues import router as queues_router
from backoffice.api.v1.endpoints.suppliers import router as suppliers_router
from backoffice.api.v1.endpoints.webhooks import router as webhooks_router
from backoffice.core.config import get_settings
from backoffice.core.health import get_health_status, get_health_status_fast, is_ready
from backoffice.core.scheduler import get_scheduler_status
from backoffice.version import version_info

settings = get_settings()
logger = logging.getLogger(__name__)

API_V1_PREFIX = "/api/v1"

# (router, prefix, tag)
API_V1_ROUTERS = (
    (suppliers_router, "/suppliers", "Suppliers"),
    (customers_router, "/customers", "Customers"),
    (pedidos_router, "/pedidos", "Pedidos"),
    (queues_router, "/queues", "Queues"),
    (i18n_router, "/i18n", "I18n"),
    (countries_router, "/countries", "Countries"),
    (webhooks_router, "/webhooks/shopify", "Webhooks"),
)


def _docs_enabled() -> bool:
    return settings.DEBUG or settings.ENABLE_DOCS


def create_root_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints raíz de la aplicación.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/", tags=["Root"], summary="API Info")
    async def root():
        """
        Endpoint raíz que proporciona información básica de la API.

        Returns:
            Dict con información de la API
        """
        return {
            "message": settings.APP_NAME,
            "description": "Back office de fulfillment de pedidos Shopify",
            "version": settings.APP_VERSION,
            "status": "running",
            "documentation": "/docs" if _docs_enabled() else "disabled",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": {
                "health": "/health",
                "api_v1": API_V1_PREFIX,
                **{tag.lower(): f"{API_V1_PREFIX}{prefix}" for _, prefix, tag in API_V1_ROUTERS},
            },
        }

    @app.get("/ping", tags=["Root"], summary="Simple Ping")
    async def ping():
        return {"message": "pong", "timestamp": datetime.now(timezone.utc).isoformat()}


def create_health_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints de health check y monitoreo.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/health", tags=["Health"], summary="Health Check (Fast)")
    async def health_check():
        """
        Health check rápido para uso general.
        Usa cache y verifica sólo memoria y disco.
        """
        try:
            health_status = await get_health_status_fast()

            status_code = 200 if health_status["overall"] else 503

            return JSONResponse(
                status_code=status_code,
                content={
                    "status": "healthy" if health_status["overall"] else "unhealthy",
                    "version": settings.APP_VERSION,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "uptime": health_status.get("uptime"),
                    "services": health_status["services"],
                    "environment": settings.ENVIRONMENT,
                    "cache_info": health_status.get("cache_info", "unknown"),
                },
            )

        except Exception as e:
            logger.error(f"Error en health check: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "error": str(e),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "version": settings.APP_VERSION,
                },
            )

    @app.get("/health/complete", tags=["Health"], summary="Complete Health Check")
    async def complete_health_check():
        """
        Health check completo: base de datos, Redis, disco y memoria.
        Puede ser lento.
        """
        try:
            health_status = await get_health_status()

            status_code = 200 if health_status["overall"] else 503

            return JSONResponse(
                status_code=status_code,
                content={
                    "status": "healthy" if health_status["overall"] else "unhealthy",
                    "version": settings.APP_VERSION,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "uptime": health_status.get("uptime"),
                    "services": health_status["services"],
                    "system": health_status.get("system"),
                    "scheduler": get_scheduler_status(),
                    "environment": settings.ENVIRONMENT,
                    "check_type": "complete",
                },
            )

        except Exception as e:
            logger.error(f"Error en complete health check: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "error": str(e),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "version": settings.APP_VERSION,
                    "check_type": "complete",
                },
            )

    @app.get("/health/liveness", tags=["Health"], summary="Liveness Check")
    async def liveness_check():
        """Chequeo de liveness de Kubernetes: la aplicación está ejecutándose."""
        return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/health/readiness", tags=["Health"], summary="Readiness Check")
    async def readiness_check():
        """
        Chequeo de readiness de Kubernetes.
        Requiere base de datos y Redis disponibles.
        """
        try:
            readiness = await is_ready()

            return JSONResponse(
                status_code=200 if readiness["ready"] else 503,
                content={
                    "status": "ready" if readiness["ready"] else "not_ready",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "critical_services": {
                        "database": "healthy" if readiness["database"] else "unhealthy",
                        "redis": "healthy" if readiness["redis"] else "unhealthy",
                    },
                },
            )

        except Exception as e:
            logger.error(f"Error en readiness check: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "not_ready",
                    "error": str(e),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            )


def create_info_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints informativos adicionales.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/version", tags=["Info"], summary="Version Info")
    async def get_version_info():
        return {
            **version_info(),
            "name": settings.APP_NAME,
            "app_version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


def configure_api_v1_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la API v1.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando routers de API v1...")

    for router, prefix, tag in API_V1_ROUTERS:
        app.include_router(
            router,
            prefix=f"{API_V1_PREFIX}{prefix}",
            tags=[tag],
            responses={
                404: {"description": "Resource not found"},
                500: {"description": "Internal server error"},
            },
        )
        logger.info(f"✅ Router {tag} configurado en {API_V1_PREFIX}{prefix}")


def configure_all_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando todos los routers...")

    create_root_endpoints(app)
    create_health_endpoints(app)
    create_info_endpoints(app)

    configure_api_v1_routers(app)

    logger.info(f"✅ Routers configurados: {get_router_info()['base_paths']}")


def get_router_info() -> Dict[str, Any]:
    """
    Obtiene información sobre los routers configurados.

    Returns:
        Dict con información de routers
    """
    return {
        "api_version": "v1",
        "base_paths": {
            "root": "/",
            "health": "/health",
            **{tag.lower(): f"{API_V1_PREFIX}{prefix}" for _, prefix, tag in API_V1_ROUTERS},
        },
        "features": {
            "docs_enabled": _docs_enabled(),
            "queue_workers": settings.ENABLE_QUEUE_WORKERS,
            "scheduled_jobs": settings.ENABLE_SCHEDULED_JOBS,
        },
    }
