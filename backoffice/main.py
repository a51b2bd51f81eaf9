"""
Fulfillment Back Office - FastAPI Application Entry Point

Back office que recibe pedidos de Shopify, los asigna a fornecedores y
notifica a clientes y fornecedores mediante colas de trabajos en Redis.

Este archivo actúa como el punto de entrada principal de la aplicación,
orquestando todos los componentes de manera modular.
"""

import logging

import uvicorn
from fastapi import FastAPI

from backoffice.core.config import get_settings
from backoffice.core.exception_handlers import configure_exception_handlers
from backoffice.core.lifespan import lifespan
from backoffice.core.middleware import configure_all_middleware
from backoffice.core.routers import configure_all_routers

settings = get_settings()
logger = logging.getLogger(__name__)


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    logger.info("🏗️ Creando aplicación FastAPI...")

    docs_enabled = settings.DEBUG or settings.ENABLE_DOCS

    app = FastAPI(
        title=settings.APP_NAME,
        description="Back office de fulfillment de pedidos Shopify",
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    # El orden importa: middleware, manejadores de excepciones, routers

    # 1. Middleware (orden inverso de ejecución)
    configure_all_middleware(app)

    # 2. Manejadores de excepciones
    configure_exception_handlers(app)

    # 3. Routers y endpoints
    configure_all_routers(app)

    logger.info("✅ Aplicación FastAPI creada y configurada")
    return app


app = create_application()

app.state.app_info = {
    "name": settings.APP_NAME,
    "version": settings.APP_VERSION,
    "environment": settings.ENVIRONMENT,
    "debug": settings.DEBUG,
    "created_by": "create_application factory",
}


if __name__ == "__main__":
    """
    Para producción:
    uvicorn backoffice.main:app --host 0.0.0.0 --port 3001

    Los workers de las colas corren dentro del proceso; con varios procesos
    uvicorn cada uno consume las mismas colas.
    """
    logger.info("🚀 Iniciando aplicación desde main.py...")

    uvicorn_config = {
        "app": "backoffice.main:app",
        "host": settings.HOST,
        "port": settings.PORT,
        "reload": settings.DEBUG,
        "log_level": settings.LOG_LEVEL.lower(),
        "access_log": True,
        "workers": 1 if settings.DEBUG else settings.WORKERS,
    }

    if settings.DEBUG:
        uvicorn_config.update({"reload_dirs": ["backoffice"], "reload_excludes": ["*.pyc", "__pycache__"]})

    logger.info(f"🔧 Configuración Uvicorn: {uvicorn_config}")

    try:
        uvicorn.run(**uvicorn_config)
    except KeyboardInterrupt:
        logger.info("🛑 Aplicación detenida por el usuario")
    except Exception as e:
        logger.error(f"❌ Error ejecutando aplicación: {e}")
        raise
