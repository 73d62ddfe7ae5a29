"""
Transaction Helper Service

Commit/rollback handling for service operations. Each workflow step commits
on its own; best-effort side effects run inside an isolation boundary that
logs and swallows their failure instead of failing the request.
"""

from functools import wraps
from typing import Callable, Any, Optional
import logging
from app import db

logger = logging.getLogger(__name__)

class TransactionHelper:
    """Helper class for managing database transactions safely"""

    @staticmethod
    def with_transaction(func: Callable) -> Callable:
        """
        Decorator that commits the session after the wrapped function returns
        and rolls it back if it raises. Errors are re-raised; nothing is retried.

        Usage:
            @TransactionHelper.with_transaction
            def terminate_driver(driver_id):
                # Your database operations here
                pass
        """
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                result = func(*args, **kwargs)
                db.session.commit()
                return result
            except Exception as e:
                db.session.rollback()
                logger.error(f"Transaction error in {func.__name__}: {str(e)}")
                raise
        return wrapper

    @staticmethod
    def run_isolated(description: str, operation: Callable, *args, **kwargs) -> tuple[bool, Optional[Any], Optional[str]]:
        """
        Execute a best-effort operation, containing any failure.

        The session is rolled back and the error logged; the caller gets a
        result tuple instead of an exception, and the operation is not retried.

        Args:
            description: Human-readable name used in the log line
            operation: Function to execute
            *args, **kwargs: Arguments to pass to the operation

        Returns:
            tuple: (success: bool, result: Any, error_message: str)
        """
        try:
            result = operation(*args, **kwargs)
            return True, result, None
        except Exception as e:
            db.session.rollback()
            error_msg = str(e)
            logger.error(f"{description} failed: {error_msg}", exc_info=True)
            return False, None, error_msg
