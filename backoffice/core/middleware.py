"""
Configuración de Middleware para la aplicación FastAPI.

Este módulo centraliza toda la configuración de middleware incluyendo:
- CORS
- TrustedHost
- Request logging
- Rate limiting
- Security headers
- Timeout de requests
"""

import asyncio
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from backoffice.core.config import get_settings
from backoffice.core.exception_handlers import build_error_body
from backoffice.utils.error_handler import ErrorCode

settings = get_settings()
logger = logging.getLogger(__name__)

# Cache en memoria de timestamps por IP para el rate limiting
_request_cache: dict = {}


def configure_cors_middleware(app: FastAPI) -> None:
    """
    Configura middleware CORS para permitir requests cross-origin.

    Args:
        app: Instancia de FastAPI
    """
    allowed_origins = settings.ALLOWED_HOSTS or ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=[
            "Accept",
            "Accept-Language",
            "Content-Type",
            "Authorization",
            "X-Request-ID",
            "X-Correlation-ID",
        ],
        expose_headers=[
            "X-Process-Time",
            "X-Request-ID",
            "X-Rate-Limit-Remaining",
            "X-Rate-Limit-Reset",
        ],
    )

    logger.info(f"✅ CORS configurado - Origins permitidos: {allowed_origins}")


def configure_trusted_host_middleware(app: FastAPI) -> None:
    """
    Configura middleware TrustedHost para validar hosts permitidos.
    Solo se aplica en producción.

    Args:
        app: Instancia de FastAPI
    """
    if settings.is_production and settings.ALLOWED_HOSTS:
        allowed_hosts = settings.ALLOWED_HOSTS + ["localhost", "127.0.0.1"]

        app.add_middleware(TrustedHostMiddleware, allowed_hosts=allowed_hosts)

        logger.info(f"✅ TrustedHost configurado - Hosts permitidos: {allowed_hosts}")


def configure_request_logging_middleware(app: FastAPI) -> None:
    """
    Configura middleware para logging de todas las requests/responses.

    Args:
        app: Instancia de FastAPI
    """

    @app.middleware("http")
    async def log_requests_middleware(request: Request, call_next):
        """
        Middleware que loggea información de cada request/response.

        Args:
            request: Request de FastAPI
            call_next: Siguiente middleware en la cadena

        Returns:
            Response con headers adicionales
        """
        request_id = request.headers.get("X-Request-ID") or generate_request_id()

        start_time = time.time()
        client_ip = get_client_ip(request)

        logger.info(f"📨 [{request_id}] {request.method} {request.url.path} - Client: {client_ip}")

        if request.url.query:
            logger.debug(f"🔍 [{request_id}] Query params: {request.url.query}")

        try:
            response = await call_next(request)

            process_time = time.time() - start_time

            status_emoji = get_status_emoji(response.status_code)
            logger.info(
                f"{status_emoji} [{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {process_time:.3f}s"
            )

            response.headers["X-Process-Time"] = f"{process_time:.3f}"
            response.headers["X-Request-ID"] = request_id

            if process_time > settings.SLOW_REQUEST_THRESHOLD:
                logger.warning(
                    f"🐌 [{request_id}] Slow request detected: "
                    f"{process_time:.3f}s > {settings.SLOW_REQUEST_THRESHOLD}s"
                )

            return response

        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"❌ [{request_id}] {request.method} {request.url.path} - Error: {str(e)} - Time: {process_time:.3f}s"
            )
            raise


def configure_security_headers_middleware(app: FastAPI) -> None:
    """
    Configura middleware para agregar headers de seguridad.

    Args:
        app: Instancia de FastAPI
    """

    @app.middleware("http")
    async def security_headers_middleware(request: Request, call_next):
        response = await call_next(request)

        security_headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "X-XSS-Protection": "1; mode=block",
            "Referrer-Policy": "strict-origin-when-cross-origin",
        }

        # HSTS solo en producción con HTTPS
        if settings.is_production and request.url.scheme == "https":
            security_headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        for header, value in security_headers.items():
            response.headers[header] = value

        return response


def configure_rate_limiting_middleware(app: FastAPI) -> None:
    """
    Configura middleware de rate limiting por IP (ventana de un minuto).

    Args:
        app: Instancia de FastAPI
    """
    if not settings.ENABLE_RATE_LIMITING:
        return

    @app.middleware("http")
    async def rate_limiting_middleware(request: Request, call_next):
        """
        Middleware de rate limiting en memoria.

        Args:
            request: Request de FastAPI
            call_next: Siguiente middleware en la cadena

        Returns:
            Response o error 429 si excede límite
        """
        client_ip = get_client_ip(request)
        current_time = time.time()

        prune_rate_limit_cache(current_time)

        minute_ago = current_time - 60
        recent_requests = [req_time for req_time in _request_cache.get(client_ip, []) if req_time > minute_ago]

        if len(recent_requests) >= settings.RATE_LIMIT_PER_MINUTE:
            logger.warning(f"🚫 Rate limit exceeded for {client_ip}: {len(recent_requests)} requests in last minute")

            return JSONResponse(
                status_code=429,
                content=build_error_body(
                    request,
                    f"Limite de {settings.RATE_LIMIT_PER_MINUTE} requisições por minuto excedido",
                    ErrorCode.RATE_LIMIT_EXCEEDED.value,
                ),
                headers={
                    "Retry-After": "60",
                    "X-Rate-Limit-Limit": str(settings.RATE_LIMIT_PER_MINUTE),
                    "X-Rate-Limit-Remaining": "0",
                    "X-Rate-Limit-Reset": str(int(current_time + 60)),
                },
            )

        _request_cache[client_ip] = recent_requests + [current_time]

        response = await call_next(request)

        remaining = settings.RATE_LIMIT_PER_MINUTE - len(_request_cache[client_ip])
        response.headers["X-Rate-Limit-Limit"] = str(settings.RATE_LIMIT_PER_MINUTE)
        response.headers["X-Rate-Limit-Remaining"] = str(max(0, remaining))
        response.headers["X-Rate-Limit-Reset"] = str(int(current_time + 60))

        return response


def configure_request_timeout_middleware(app: FastAPI) -> None:
    """
    Configura middleware que corta requests que superan REQUEST_TIMEOUT_SECONDS.

    Args:
        app: Instancia de FastAPI
    """

    @app.middleware("http")
    async def request_timeout_middleware(request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=settings.REQUEST_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logger.error(
                f"⏱️ Request timeout: {request.method} {request.url.path} > {settings.REQUEST_TIMEOUT_SECONDS}s"
            )
            return JSONResponse(
                status_code=408,
                content=build_error_body(
                    request,
                    "Tempo limite da requisição excedido",
                    ErrorCode.REQUEST_TIMEOUT.value,
                ),
            )


def configure_all_middleware(app: FastAPI) -> None:
    """
    Configura todos los middlewares de la aplicación.
    El orden importa: se ejecutan en orden inverso al que se agregan.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando middlewares...")

    # 1. Timeout (el más interno, envuelve solo al handler)
    configure_request_timeout_middleware(app)

    # 2. Rate limiting
    configure_rate_limiting_middleware(app)

    # 3. Security headers
    configure_security_headers_middleware(app)

    # 4. Request logging
    configure_request_logging_middleware(app)

    # 5. TrustedHost (solo producción)
    configure_trusted_host_middleware(app)

    # 6. CORS (último en agregarse, primero en ejecutarse para OPTIONS)
    configure_cors_middleware(app)

    logger.info("✅ Todos los middlewares configurados correctamente")


# Funciones auxiliares


def prune_rate_limit_cache(current_time: float) -> None:
    """Elimina del cache las IPs sin requests en los últimos 5 minutos."""
    cleanup_time = current_time - 300
    stale = [ip for ip, requests in _request_cache.items() if not any(t > cleanup_time for t in requests)]
    for ip in stale:
        del _request_cache[ip]


def reset_rate_limit_cache() -> None:
    _request_cache.clear()


def generate_request_id() -> str:
    """
    Genera un ID único para cada request.

    Returns:
        str: ID único de 8 caracteres
    """
    return str(uuid.uuid4())[:8]


def get_client_ip(request: Request) -> str:
    """
    Obtiene la IP real del cliente considerando proxies.

    Args:
        request: Request de FastAPI

    Returns:
        str: IP del cliente
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Primera IP en caso de múltiples proxies
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


def get_status_emoji(status_code: int) -> str:
    """
    Obtiene emoji apropiado según el código de estado HTTP.

    Args:
        status_code: Código de estado HTTP

    Returns:
        str: Emoji representativo
    """
    if 200 <= status_code < 300:
        return "✅"
    elif 300 <= status_code < 400:
        return "↩️"
    elif 400 <= status_code < 500:
        return "⚠️"
    elif 500 <= status_code < 600:
        return "❌"
    else:
        return "📤"
