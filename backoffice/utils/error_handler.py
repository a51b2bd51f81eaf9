"""
Sistema de manejo de errores personalizado.

Este módulo define la taxonomía de excepciones de la aplicación
(validación, autenticación, not-found, conflicto, servicio externo,
rate limit, ...) y utilidades para manejarlas de forma consistente.
"""

import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """
    Códigos de error estandarizados para la aplicación.
    """

    # Errores generales
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    INVALID_JSON = "INVALID_JSON"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Errores de acceso
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"

    # Errores de recursos
    NOT_FOUND = "NOT_FOUND"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
    CONFLICT = "CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Errores de base de datos
    DATABASE_ERROR = "DATABASE_ERROR"
    DATABASE_CONNECTION_FAILED = "DATABASE_CONNECTION_FAILED"
    FOREIGN_KEY_CONSTRAINT = "FOREIGN_KEY_CONSTRAINT"
    REQUIRED_FIELD_MISSING = "REQUIRED_FIELD_MISSING"
    INTEGRITY_ERROR = "INTEGRITY_ERROR"
    REDIS_CONNECTION_FAILED = "REDIS_CONNECTION_FAILED"

    # Errores de servicios externos y límites
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"

    # Errores de procesamiento en background
    JOB_PROCESSING_FAILED = "JOB_PROCESSING_FAILED"
    INVALID_ORDER_DATA = "INVALID_ORDER_DATA"


class ErrorSeverity(Enum):
    """
    Niveles de severidad para errores.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas de la aplicación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        is_retryable: bool = False,
        is_critical: bool = False,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandarizado
            details: Información adicional del error
            status_code: Código HTTP asociado
            severity: Severidad del error
            is_retryable: Si la operación puede reintentarse
            is_critical: Si requiere alerta inmediata
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.severity = severity
        self.is_retryable = is_retryable
        self.is_critical = is_critical
        self.timestamp = datetime.now(timezone.utc)
        self.traceback_str = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción a diccionario.

        Returns:
            Dict: Representación de la excepción
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
            "status_code": self.status_code,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
            "is_critical": self.is_critical,
            "timestamp": self.timestamp.isoformat(),
            "traceback": self.traceback_str,
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"


class ValidationException(AppException):
    """
    Excepción para errores de validación de datos.
    """

    def __init__(
        self,
        message: str,
        field: str,
        invalid_value: Any = None,
        expected_format: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de validación.

        Args:
            message: Mensaje de error
            field: Campo que falló la validación
            invalid_value: Valor que causó el error
            expected_format: Formato esperado
            **kwargs: Argumentos adicionales para AppException
        """
        kwargs.setdefault("error_code", ErrorCode.VALIDATION_ERROR)
        super().__init__(
            message=message,
            status_code=400,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.field = field
        self.invalid_value = invalid_value
        self.expected_format = expected_format

        self.details.update(
            {
                "field": field,
                "invalid_value": str(invalid_value) if invalid_value is not None else None,
                "expected_format": expected_format,
            }
        )


class BadRequestException(AppException):
    """Excepción para requests mal formados."""

    def __init__(self, message: str = "Requisição inválida", **kwargs):
        kwargs.setdefault("error_code", ErrorCode.BAD_REQUEST)
        super().__init__(message=message, status_code=400, severity=ErrorSeverity.LOW, **kwargs)


class AuthenticationException(AppException):
    """Excepción para credenciales ausentes o inválidas."""

    def __init__(self, message: str = "Não autorizado", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.AUTHENTICATION_ERROR,
            status_code=401,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )


class AuthorizationException(AppException):
    """Excepción para accesos sin permiso suficiente."""

    def __init__(self, message: str = "Acesso negado", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.AUTHORIZATION_ERROR,
            status_code=403,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )


class NotFoundException(AppException):
    """
    Excepción para recursos inexistentes.
    """

    def __init__(
        self,
        message: str = "Recurso não encontrado",
        resource: Optional[str] = None,
        resource_id: Any = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de recurso no encontrado.

        Args:
            message: Mensaje de error
            resource: Tipo de recurso (supplier, customer, pedido, ...)
            resource_id: Identificador buscado
            **kwargs: Argumentos adicionales para AppException
        """
        kwargs.setdefault("error_code", ErrorCode.NOT_FOUND)
        super().__init__(message=message, status_code=404, severity=ErrorSeverity.LOW, **kwargs)
        self.resource = resource
        self.resource_id = resource_id

        self.details.update(
            {"resource": resource, "resource_id": str(resource_id) if resource_id is not None else None}
        )


class ConflictException(AppException):
    """
    Excepción para conflictos de estado o de unicidad.
    """

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, **kwargs):
        """
        Inicializa la excepción de conflicto.

        Args:
            message: Mensaje de error
            field: Campo en conflicto (cnpj, email, shopify_order_id, status)
            value: Valor en conflicto
            **kwargs: Argumentos adicionales para AppException
        """
        kwargs.setdefault("error_code", ErrorCode.CONFLICT)
        super().__init__(message=message, status_code=409, severity=ErrorSeverity.LOW, **kwargs)
        self.field = field
        self.value = value

        self.details.update({"field": field, "value": str(value) if value is not None else None})


class RequestTimeoutException(AppException):
    """Excepción para requests que superan el tiempo máximo."""

    def __init__(
        self, message: str = "Tempo limite da requisição excedido", timeout: Optional[float] = None, **kwargs
    ):
        super().__init__(
            message=message,
            error_code=ErrorCode.REQUEST_TIMEOUT,
            status_code=408,
            severity=ErrorSeverity.MEDIUM,
            is_retryable=True,
            **kwargs,
        )
        self.timeout = timeout
        self.details.update({"timeout_seconds": timeout})


class ExternalServiceException(AppException):
    """
    Excepción para errores de servicios externos (API de fornecedores, Shopify, ...).
    """

    def __init__(
        self,
        message: str,
        service: str,
        response_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de servicio externo.

        Args:
            message: Mensaje de error
            service: Servicio involucrado
            response_code: Código HTTP devuelto por el servicio
            endpoint: Endpoint que falló
            **kwargs: Argumentos adicionales para AppException
        """
        severity = ErrorSeverity.HIGH if response_code and response_code >= 500 else ErrorSeverity.MEDIUM

        super().__init__(
            message=message,
            error_code=ErrorCode.EXTERNAL_SERVICE_ERROR,
            status_code=502,
            severity=severity,
            is_retryable=True,
            **kwargs,
        )
        self.service = service
        self.response_code = response_code
        self.endpoint = endpoint

        self.details.update({"service": service, "response_code": response_code, "endpoint": endpoint})


class DatabaseConnectionException(AppException):
    """
    Excepción para errores de conexión con la base de datos.
    """

    def __init__(self, message: str, connection_type: str = "database", **kwargs):
        """
        Inicializa la excepción de conexión.

        Args:
            message: Mensaje de error
            connection_type: Operación en la que falló la conexión
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.DATABASE_CONNECTION_FAILED,
            status_code=503,
            severity=ErrorSeverity.HIGH,
            is_retryable=True,
            is_critical=True,
            **kwargs,
        )
        self.connection_type = connection_type

        self.details.update({"connection_type": connection_type})


class JobProcessingException(AppException):
    """
    Excepción para errores en el procesamiento de jobs en background.
    """

    def __init__(
        self,
        message: str,
        queue: str,
        job_name: str,
        job_id: Optional[str] = None,
        retry_suggested: bool = True,
        **kwargs,
    ):
        """
        Inicializa la excepción de procesamiento.

        Args:
            message: Mensaje de error
            queue: Cola del job
            job_name: Nombre del job
            job_id: ID del job
            retry_suggested: Si se sugiere reintentar
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.JOB_PROCESSING_FAILED,
            status_code=500,
            severity=ErrorSeverity.HIGH,
            is_retryable=retry_suggested,
            **kwargs,
        )
        self.queue = queue
        self.job_name = job_name
        self.job_id = job_id

        self.details.update({"queue": queue, "job_name": job_name, "job_id": job_id})


class RateLimitException(AppException):
    """
    Excepción para errores de rate limiting.
    """

    def __init__(self, message: str, limit: int, reset_time: int, retry_after: int, **kwargs):
        """
        Inicializa la excepción de rate limiting.

        Args:
            message: Mensaje de error
            limit: Límite de requests
            reset_time: Timestamp de reset
            retry_after: Segundos para reintentar
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
            status_code=429,
            severity=ErrorSeverity.LOW,
            is_retryable=True,
            **kwargs,
        )

        self.limit = limit
        self.reset_time = reset_time
        self.retry_after = retry_after

        self.details.update({"limit": limit, "reset_time": reset_time, "retry_after": retry_after})


# === FUNCIONES DE UTILIDAD ===


def handle_exception(
    exception: Exception, context: Optional[Dict[str, Any]] = None, reraise: bool = True
) -> Optional[AppException]:
    """
    Maneja una excepción de manera consistente.

    Args:
        exception: Excepción a manejar
        context: Contexto adicional
        reraise: Si relanzar la excepción

    Returns:
        AppException: Excepción procesada (si no se relanza)

    Raises:
        AppException: Si reraise=True
    """
    context = context or {}

    if isinstance(exception, AppException):
        exception.details.update(context)
        if reraise:
            raise exception
        return exception

    app_exception = convert_to_app_exception(exception, context)

    logger.error(
        f"Exception handled: {type(exception).__name__}: {str(exception)}",
        extra={
            "exception_type": type(exception).__name__,
            "exception_message": str(exception),
            "context": context,
        },
    )

    if reraise:
        raise app_exception from exception

    return app_exception


def convert_to_app_exception(exception: Exception, context: Optional[Dict[str, Any]] = None) -> AppException:
    """
    Convierte una excepción estándar a AppException.

    Args:
        exception: Excepción a convertir
        context: Contexto adicional

    Returns:
        AppException: Excepción convertida
    """
    context = context or {}
    exception_type = type(exception).__name__
    message = str(exception)
    lowered = message.lower()

    if isinstance(exception, AppException):
        return exception

    if isinstance(exception, TimeoutError):
        return RequestTimeoutException(message=message or "Timeout", details=context)

    if "connection" in lowered or "timeout" in lowered:
        if "redis" in lowered:
            return AppException(
                message=f"Redis connection error: {message}",
                error_code=ErrorCode.REDIS_CONNECTION_FAILED,
                status_code=503,
                is_retryable=True,
                details=context,
            )
        if "database" in lowered or "sql" in lowered or "postgres" in lowered:
            return DatabaseConnectionException(message=f"Database connection error: {message}", details=context)
        if context.get("service"):
            return ExternalServiceException(
                message=f"{context['service']} connection error: {message}",
                service=context["service"],
                details=context,
            )

    elif "validation" in lowered or "invalid" in lowered or "inválid" in lowered:
        return ValidationException(
            message=message,
            field=context.get("field", "unknown"),
            invalid_value=context.get("value"),
            details=context,
        )

    elif "rate limit" in lowered:
        return RateLimitException(
            message=message,
            limit=context.get("limit", 0),
            reset_time=context.get("reset_time", 0),
            retry_after=context.get("retry_after", 60),
            details=context,
        )

    return AppException(
        message=f"{exception_type}: {message}",
        details={"original_exception": exception_type, **context},
    )


def create_error_response(exception: Union[AppException, Exception], include_traceback: bool = False) -> Dict[str, Any]:
    """
    Crea el envelope de error estandarizado.

    Args:
        exception: Excepción a convertir
        include_traceback: Si incluir traceback

    Returns:
        Dict: {success: False, message, code, timestamp} más extras opcionales
    """
    app_exc = exception if isinstance(exception, AppException) else convert_to_app_exception(exception)

    response: Dict[str, Any] = {
        "success": False,
        "message": app_exc.message,
        "code": app_exc.error_code.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if include_traceback:
        response["traceback"] = app_exc.traceback_str

    return response


def log_error(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Loggea un error de manera consistente.

    Args:
        exception: Excepción a loggear
        context: Contexto adicional
        level: Nivel de logging
    """
    context = context or {}

    log_data = {
        "exception_type": type(exception).__name__,
        "exception_message": str(exception),
        **context,
    }

    if isinstance(exception, AppException):
        message = f"{exception.error_code.value}: {exception.message}"
        log_data.update(
            {
                "error_code": exception.error_code.value,
                "severity": exception.severity.value,
                "is_retryable": exception.is_retryable,
                "is_critical": exception.is_critical,
            }
        )
    else:
        message = f"Unhandled exception: {type(exception).__name__}: {str(exception)}"

    logger.log(level, message, extra=log_data)


class ErrorAggregator:
    """
    Agregador de errores para procesos batch (por ejemplo, detección de atrasos).
    """

    def __init__(self):
        self.errors: List[AppException] = []
        self.warnings: List[AppException] = []
        self.total_processed = 0
        self.start_time = datetime.now(timezone.utc)

    def add_error(self, exception: Union[AppException, Exception], context: Optional[Dict] = None):
        """
        Agrega un error al agregador.

        Args:
            exception: Excepción a agregar
            context: Contexto adicional
        """
        if not isinstance(exception, AppException):
            exception = convert_to_app_exception(exception, context)

        if exception.severity in [ErrorSeverity.LOW, ErrorSeverity.MEDIUM]:
            self.warnings.append(exception)
        else:
            self.errors.append(exception)

        if exception.is_critical:
            log_error(exception, context, logging.CRITICAL)

    def increment_processed(self):
        self.total_processed += 1

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def get_summary(self) -> Dict[str, Any]:
        """
        Obtiene resumen de errores.

        Returns:
            Dict: Resumen de errores
        """
        end_time = datetime.now(timezone.utc)
        duration = (end_time - self.start_time).total_seconds()

        return {
            "total_processed": self.total_processed,
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "success_count": self.total_processed - len(self.errors) - len(self.warnings),
            "duration_seconds": duration,
            "start_time": self.start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }
