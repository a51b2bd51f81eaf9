"""
Manejadores de excepciones centralizados para la aplicación FastAPI.

Todos los manejadores devuelven el mismo envelope de error
``{success: false, message, code, timestamp}`` y normalizan los errores
de SQLAlchemy y de validación a códigos HTTP consistentes.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backoffice.core.config import get_settings
from backoffice.utils.error_handler import AppException, ErrorCode, RateLimitException

settings = get_settings()
logger = logging.getLogger(__name__)


def build_error_body(
    request: Request,
    message: str,
    code: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Construye el envelope de error estandarizado.

    Args:
        request: Request de FastAPI
        message: Mensaje legible del error
        code: Código de error (ErrorCode.value o HTTP_xxx)
        details: Detalles adicionales, solo expuestos en DEBUG

    Returns:
        Dict: Envelope de error
    """
    body: Dict[str, Any] = {
        "success": False,
        "message": message,
        "code": code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    correlation_id = request.headers.get("X-Correlation-ID")
    if correlation_id:
        body["correlation_id"] = correlation_id

    if settings.DEBUG and details:
        body["details"] = details

    return body


def error_response(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    details: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Atajo para devolver el envelope de error como JSONResponse."""
    return JSONResponse(
        status_code=status_code,
        content=build_error_body(request, message, code, details),
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Manejador para excepciones personalizadas de la aplicación.

    Args:
        request: Request de FastAPI
        exc: Excepción personalizada de la app

    Returns:
        JSONResponse: Respuesta JSON con error formateado
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"App Exception: {exc.message} - "
        f"Code: {exc.error_code.value} - "
        f"URL: {request.url} - "
        f"Details: {exc.details}"
    )

    if exc.is_critical:
        await send_critical_alert(exc, request)

    return error_response(request, exc.status_code, exc.message, exc.error_code.value, exc.details)


async def rate_limit_exception_handler(request: Request, exc: RateLimitException) -> JSONResponse:
    """
    Manejador para errores de rate limiting.

    Args:
        request: Request de FastAPI
        exc: Excepción de rate limiting

    Returns:
        JSONResponse: Respuesta 429 con headers de rate limit
    """
    logger.warning(f"Rate Limit Exception: {exc.message} - Limit: {exc.limit} - URL: {request.url}")

    headers = {
        "Retry-After": str(exc.retry_after),
        "X-Rate-Limit-Limit": str(exc.limit),
        "X-Rate-Limit-Reset": str(exc.reset_time),
    }

    return error_response(request, 429, exc.message, exc.error_code.value, exc.details, headers=headers)


def classify_integrity_error(exc: IntegrityError) -> Dict[str, Any]:
    """
    Clasifica un IntegrityError según el tipo de restricción violada.

    Reconoce los mensajes de PostgreSQL (asyncpg) y de SQLite.

    Args:
        exc: Error de integridad de SQLAlchemy

    Returns:
        Dict: status_code, code y message normalizados
    """
    raw = str(getattr(exc, "orig", exc)).lower()

    if "unique" in raw or "duplicate key" in raw:
        return {
            "status_code": 409,
            "code": ErrorCode.DUPLICATE_ENTRY.value,
            "message": "Registro duplicado",
        }
    if "foreign key" in raw:
        return {
            "status_code": 400,
            "code": ErrorCode.FOREIGN_KEY_CONSTRAINT.value,
            "message": "Violação de chave estrangeira",
        }
    if "not null" in raw or "not-null" in raw:
        return {
            "status_code": 400,
            "code": ErrorCode.REQUIRED_FIELD_MISSING.value,
            "message": "Campo obrigatório ausente",
        }
    return {
        "status_code": 400,
        "code": ErrorCode.INTEGRITY_ERROR.value,
        "message": "Erro de integridade dos dados",
    }


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Normaliza violaciones de restricciones de la base de datos."""
    normalized = classify_integrity_error(exc)
    logger.warning(f"⚠️ Integrity Error: {normalized['code']} - URL: {request.url} - {exc.orig}")

    return error_response(
        request,
        normalized["status_code"],
        normalized["message"],
        normalized["code"],
        {"database_error": str(exc.orig)},
    )


async def no_result_found_handler(request: Request, exc: NoResultFound) -> JSONResponse:
    logger.warning(f"⚠️ NoResultFound - URL: {request.url}")
    return error_response(request, 404, "Registro não encontrado", ErrorCode.RECORD_NOT_FOUND.value)


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Manejador para el resto de errores de SQLAlchemy.

    Args:
        request: Request de FastAPI
        exc: Error de SQLAlchemy

    Returns:
        JSONResponse: Respuesta 500 DATABASE_ERROR
    """
    logger.error(f"❌ Database Error: {type(exc).__name__}: {exc} - URL: {request.url}")

    return error_response(
        request,
        500,
        "Erro de banco de dados",
        ErrorCode.DATABASE_ERROR.value,
        {"error_type": type(exc).__name__},
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Manejador para errores de validación de request (body, query, path).

    Un body JSON mal formado se reporta como INVALID_JSON; el resto
    como VALIDATION_ERROR con el primer campo inválido en el mensaje.

    Args:
        request: Request de FastAPI
        exc: Error de validación de FastAPI

    Returns:
        JSONResponse: Respuesta 400
    """
    errors = exc.errors()
    logger.warning(f"⚠️ Validation Error: {len(errors)} errores - URL: {request.url}")

    if any(error.get("type") == "json_invalid" for error in errors):
        return error_response(request, 400, "JSON inválido no corpo da requisição", ErrorCode.INVALID_JSON.value)

    return error_response(
        request,
        400,
        _describe_first_error(errors),
        ErrorCode.VALIDATION_ERROR.value,
        _serializable_errors(errors),
    )


async def pydantic_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Manejador para ValidationError de pydantic lanzado fuera de FastAPI."""
    errors = exc.errors()
    logger.warning(f"⚠️ Pydantic Validation Error - URL: {request.url}")

    return error_response(
        request,
        400,
        _describe_first_error(errors),
        ErrorCode.VALIDATION_ERROR.value,
        _serializable_errors(errors),
    )


async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Manejador para HTTPException de Starlette y FastAPI.

    Args:
        request: Request de FastAPI
        exc: StarletteHTTPException

    Returns:
        JSONResponse: Respuesta JSON estandarizada
    """
    if exc.status_code == 404 and exc.detail == "Not Found":
        logger.warning(f"⚠️ Ruta no encontrada: {request.method} {request.url.path}")
        return error_response(
            request,
            404,
            f"Rota {request.method} {request.url.path} não encontrada",
            ErrorCode.ROUTE_NOT_FOUND.value,
        )

    logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail} - URL: {request.url}")

    return error_response(
        request,
        exc.status_code,
        str(exc.detail),
        f"HTTP_{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Manejador global para excepciones no capturadas.

    Args:
        request: Request de FastAPI
        exc: Excepción no manejada

    Returns:
        JSONResponse: Respuesta JSON de error interno
    """
    logger.error(
        f"❌ Unhandled Exception: {str(exc)} - "
        f"Type: {type(exc).__name__} - "
        f"URL: {request.url} - "
        f"Traceback: {traceback.format_exc()}"
    )

    await send_critical_alert(exc, request)

    # Sin exponer detalles internos fuera de DEBUG
    error_message = "Erro interno do servidor"
    if settings.DEBUG:
        error_message = f"{type(exc).__name__}: {str(exc)}"

    return error_response(
        request,
        500,
        error_message,
        ErrorCode.INTERNAL_ERROR.value,
        {"traceback": traceback.format_exc()},
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """
    Configura todos los manejadores de excepciones de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando manejadores de excepciones...")

    # Manejadores específicos (orden de especificidad)
    app.add_exception_handler(RateLimitException, rate_limit_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)

    # Base de datos
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(NoResultFound, no_result_found_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)

    # Validación
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ValidationError, pydantic_validation_exception_handler)

    # HTTP estándar
    app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)

    # Manejador global (debe ser el último)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("✅ Manejadores de excepciones configurados correctamente")


# Funciones auxiliares


def _describe_first_error(errors) -> str:
    if not errors:
        return "Dados inválidos"

    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or "request"
    return f"Dados inválidos: {field} - {first.get('msg', 'valor inválido')}"


def _serializable_errors(errors) -> list:
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in errors
    ]


async def send_critical_alert(exc: Exception, request: Request) -> None:
    """
    Envía alerta crítica para errores importantes.

    Args:
        exc: Excepción que generó la alerta
        request: Request que causó el error
    """
    try:
        if not settings.ALERT_EMAIL_ENABLED:
            return

        from backoffice.utils.notifications import send_error_alert

        alert_data = {
            "error_type": type(exc).__name__,
            "error_message": str(exc),
            "url": str(request.url),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request.headers.get("X-Request-ID"),
            "correlation_id": request.headers.get("X-Correlation-ID"),
            "user_agent": request.headers.get("user-agent"),
            "client_ip": request.headers.get("X-Forwarded-For")
            or (request.client.host if request.client else "unknown"),
        }

        await send_error_alert(alert_data)

    except Exception as alert_error:
        logger.error(f"Error enviando alerta crítica: {alert_error}")
