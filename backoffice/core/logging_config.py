"""
Configuración del sistema de logging.

Este módulo configura el logging de la aplicación con:
- Handlers de consola, archivo y archivo de errores con rotación
- Formateo con colores en desarrollo
- Logging estructurado (JSON) en producción
- Filtros que agregan contexto de request y de jobs de las colas
"""

import json
import logging
import logging.config
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from backoffice.core.config import get_settings

settings = get_settings()

# Atributos estándar de LogRecord que no se copian como "extra"
_RESERVED_RECORD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "taskName",
}


class ColoredFormatter(logging.Formatter):
    """
    Formatter que agrega colores al nivel de log en consola.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Verde
        "WARNING": "\033[33m",  # Amarillo
        "ERROR": "\033[31m",  # Rojo
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record):
        formatted = super().format(record)

        # Solo colorear si es TTY
        if hasattr(sys.stderr, "isatty") and sys.stderr.isatty():
            color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
            reset = self.COLORS["RESET"]
            formatted = formatted.replace(record.levelname, f"{color}{record.levelname}{reset}")

        return formatted


class StructuredFormatter(logging.Formatter):
    """
    Formatter para logging estructurado en JSON.
    Útil para sistemas de monitoreo como ELK Stack.
    """

    def format(self, record):
        """
        Formatea el record como JSON estructurado.

        Args:
            record: LogRecord a formatear

        Returns:
            str: Mensaje en formato JSON
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "app_name": settings.APP_NAME,
            "app_version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }

        for attr in ("request_id", "correlation_id", "job_id", "queue"):
            if hasattr(record, attr):
                log_entry[attr] = getattr(record, attr)

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRS and key not in log_entry
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class RequestContextFilter(logging.Filter):
    """
    Filtro que agrega contexto de request a los logs.
    """

    def filter(self, record):
        try:
            from contextvars import copy_context

            context = copy_context()

            for var_name in ["request_id", "correlation_id"]:
                for var in context:
                    if hasattr(var, "name") and var.name == var_name:
                        setattr(record, var_name, context[var])
                        break
        except Exception:
            pass  # No crítico si no hay contexto

        return True


class JobContextFilter(logging.Filter):
    """
    Filtro específico para logs emitidos por los workers de las colas.
    """

    def filter(self, record):
        """
        Marca los logs de workers y colas con el tipo de operación.

        Args:
            record: LogRecord a filtrar

        Returns:
            bool: True para permitir el log
        """
        worker_modules = ["workers", "queue", "scheduler"]

        if any(module in record.name.lower() for module in worker_modules):
            record.operation_type = "job"

            if not hasattr(record, "job_timestamp"):
                record.job_timestamp = datetime.now(timezone.utc).isoformat()

        return True


def setup_logging() -> None:
    """
    Configura el sistema de logging completo de la aplicación.
    """
    if settings.LOG_FILE_PATH:
        log_dir = Path(settings.LOG_FILE_PATH).parent
        log_dir.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(get_logging_configuration())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL))

    request_filter = RequestContextFilter()
    job_filter = JobContextFilter()

    for handler in root_logger.handlers:
        handler.addFilter(request_filter)
        handler.addFilter(job_filter)

    configure_specific_loggers()

    logger = logging.getLogger(__name__)
    logger.info(f"Sistema de logging configurado - Nivel: {settings.LOG_LEVEL}")
    logger.info(f"Logs guardándose en: {settings.LOG_FILE_PATH}")


def get_logging_configuration() -> Dict[str, Any]:
    """
    Genera configuración completa de logging.

    Returns:
        Dict: Configuración de logging para dictConfig
    """
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": ("%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "colored": {
                "()": ColoredFormatter,
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {"()": StructuredFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.LOG_LEVEL,
                "formatter": "colored" if settings.DEBUG else "standard",
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            "uvicorn.error": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
        },
        "root": {"level": settings.LOG_LEVEL, "handlers": ["console"]},
    }

    if settings.LOG_FILE_PATH:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": settings.LOG_LEVEL,
            "formatter": "detailed",
            "filename": settings.LOG_FILE_PATH,
            "maxBytes": settings.LOG_MAX_SIZE_MB * 1024 * 1024,
            "backupCount": settings.LOG_BACKUP_COUNT,
            "encoding": "utf-8",
        }

        error_log_path = settings.LOG_FILE_PATH.replace(".log", "_errors.log")
        config["handlers"]["error_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "formatter": "detailed",
            "filename": error_log_path,
            "maxBytes": settings.LOG_MAX_SIZE_MB * 1024 * 1024,
            "backupCount": settings.LOG_BACKUP_COUNT,
            "encoding": "utf-8",
        }

        # Handler JSON para monitoreo
        if settings.is_production:
            json_log_path = settings.LOG_FILE_PATH.replace(".log", ".json")
            config["handlers"]["json_file"] = {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "INFO",
                "formatter": "json",
                "filename": json_log_path,
                "maxBytes": settings.LOG_MAX_SIZE_MB * 1024 * 1024,
                "backupCount": settings.LOG_BACKUP_COUNT,
                "encoding": "utf-8",
            }
            config["root"]["handlers"].append("json_file")

        config["root"]["handlers"].extend(["file", "error_file"])

    return config


def configure_specific_loggers() -> None:
    """
    Configura loggers específicos para diferentes módulos.
    """
    # Workers y colas
    logging.getLogger("backoffice.workers").setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    logging.getLogger("backoffice.api").setLevel(logging.INFO)

    # Solo warnings y errores de la capa de datos por defecto
    logging.getLogger("backoffice.db").setLevel(logging.INFO if settings.DEBUG else logging.WARNING)

    # Reducir verbosidad de librerías externas
    external_loggers = [
        "aiohttp.access",
        "aiohttp.client",
        "httpx",
        "sqlalchemy.engine",
        "asyncio",
    ]

    for logger_name in external_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str, **kwargs) -> logging.Logger:
    """
    Obtiene un logger con atributos adicionales.

    Args:
        name: Nombre del logger
        **kwargs: Atributos adicionales para el logger

    Returns:
        logging.Logger: Logger configurado
    """
    logger = logging.getLogger(name)

    for key, value in kwargs.items():
        setattr(logger, key, value)

    return logger


def log_job_event(event: str, queue: str, job_id: str, **kwargs):
    """
    Logger específico para eventos del ciclo de vida de un job.

    Args:
        event: Tipo de evento (added, completed, failed, retry)
        queue: Nombre de la cola
        job_id: ID del job
        **kwargs: Datos adicionales
    """
    logger = get_logger("backoffice.workers.events")

    extra_data = {
        "job_event": event,
        "queue": queue,
        "job_id": job_id,
        "event_timestamp": datetime.now(timezone.utc).isoformat(),
        **kwargs,
    }

    level = logging.WARNING if event in ("failed", "retry") else logging.INFO
    logger.log(level, f"Job {event}: {queue}#{job_id}", extra=extra_data)


def log_api_call(method: str, url: str, status_code: int, duration: float, **kwargs):
    """
    Logger específico para llamadas a APIs externas (fornecedores).

    Args:
        method: Método HTTP
        url: URL de la API
        status_code: Código de respuesta
        duration: Duración en segundos
        **kwargs: Datos adicionales
    """
    logger = get_logger("backoffice.api.call")

    extra_data = {
        "method": method,
        "url": url,
        "status_code": status_code,
        "duration_ms": round(duration * 1000, 2),
        "api_timestamp": datetime.now(timezone.utc).isoformat(),
        **kwargs,
    }

    if 200 <= status_code < 300:
        level = logging.INFO
    elif 400 <= status_code < 500:
        level = logging.WARNING
    else:
        level = logging.ERROR

    logger.log(
        level,
        f"API call: {method} {url} -> {status_code} ({duration * 1000:.1f}ms)",
        extra=extra_data,
    )


class LogContext:
    """
    Context manager para agregar contexto temporal a los logs.

    Ejemplo:
        with LogContext(job_id="42", queue="order-processing"):
            logger.info("Procesando")  # Incluirá job_id y queue
    """

    def __init__(self, **context):
        self.context = context
        self.old_factory = None

    def __enter__(self):
        self.old_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            if self.old_factory:
                record = self.old_factory(*args, **kwargs)
            else:
                record = logging.LogRecord(*args, **kwargs)
            for key, value in self.context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self.old_factory)
