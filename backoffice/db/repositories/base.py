"""
Base Repository for database operations.

Provides the common pieces every repository shares: access to the ConnDB
singleton, session handling, retry on connection failures and operation
logging. Integrity errors are not wrapped so the exception handlers can
normalize them (duplicate → 409, foreign key → 400).
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.db.connection import ConnDB, get_db_connection
from backoffice.utils.error_handler import DatabaseConnectionException

logger = logging.getLogger(__name__)


def with_retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple = (DatabaseConnectionException,),
) -> Callable:
    """
    Decorator for retrying database operations with exponential backoff.

    Args:
        max_attempts: Maximum number of retry attempts
        delay: Initial delay between retries in seconds
        backoff: Multiplier for exponential backoff
        exceptions: Tuple of exceptions to catch and retry

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            current_delay = delay

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_attempts - 1:
                        logger.error(f"All {max_attempts} attempts failed for {func.__name__}")
                        raise
                    logger.warning(
                        f"Attempt {attempt + 1}/{max_attempts} failed for {func.__name__}: {e}. "
                        f"Retrying in {current_delay:.1f}s..."
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= backoff

        return wrapper

    return decorator


def log_operation(operation_name: str = None) -> Callable:
    """
    Decorator for logging database operations.

    Args:
        operation_name: Optional custom name for the operation

    Returns:
        Decorated function with logging
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            op_name = operation_name or f"{self.__class__.__name__}.{func.__name__}"
            logger.debug(f"Starting operation: {op_name}")

            try:
                result = await func(self, *args, **kwargs)
                logger.debug(f"Operation successful: {op_name}")
                return result
            except Exception as e:
                logger.error(f"Operation failed: {op_name} - {e}")
                raise

        return wrapper

    return decorator


class BaseRepository:
    """
    Base repository for database operations.

    Every repository opens one session per operation from the shared
    connection pool and commits explicitly on writes.
    """

    def __init__(self, conn_db: Optional[ConnDB] = None):
        """
        Initialize the base repository.

        Args:
            conn_db: Optional database connection. If not provided, uses global connection.
        """
        self.conn_db: ConnDB = conn_db or get_db_connection()
        self._repository_name: str = self.__class__.__name__

    def get_session(self) -> AsyncSession:
        """
        Get a database session from the connection pool.

        Raises:
            DatabaseConnectionException: If the connection is not initialized
        """
        return self.conn_db.get_session()

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform a health check on the repository.

        Returns:
            Dict containing health status information
        """
        try:
            async with self.get_session() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            return {"status": "healthy", "repository": self._repository_name}

        except Exception as e:
            return {"status": "unhealthy", "repository": self._repository_name, "error": str(e)}

    def __repr__(self) -> str:
        return f"<{self._repository_name}>"
