# backend/activity_booking/services/base.py
"""
Base Service Pattern for the activity booking platform.

Provides common functionality for all service classes including:
- Transaction management (one ``transaction()`` block per unit of work)
- Logging
- Performance measurement
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import PersistenceError, RepositoryException

logger = logging.getLogger(__name__)

SLOW_OPERATION_SECONDS = 1.0

F = TypeVar("F", bound=Callable[..., Any])


class BaseService:
    """
    Base class for all service layer components.

    Repositories called from a service only flush; the service decides where
    a unit of work starts and ends by wrapping it in ``transaction()``.
    """

    # Class-level metrics storage
    _class_metrics: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for a database unit of work.

        Commits on success. On any error the session is rolled back; storage
        errors are re-raised as ``PersistenceError`` and domain errors pass
        through unchanged.

        Usage:
            with self.transaction():
                self.booking_repository.create(...)
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise PersistenceError(f"Database operation failed: {str(e)}") from e
        except Exception as e:
            self.logger.error(f"Unexpected error in transaction: {str(e)}")
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, data):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
                start_time = time.time()
                success = False
                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                finally:
                    elapsed = time.time() - start_time
                    if hasattr(self, "_record_metric"):
                        self._record_metric(operation_name, elapsed, success)

                    # Only log if it's actually slow
                    if elapsed > SLOW_OPERATION_SECONDS and hasattr(self, "logger"):
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

            return cast(F, wrapper)

        return decorator

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        class_name = self.__class__.__name__
        metrics = BaseService._class_metrics.setdefault(class_name, {})
        metric_data = metrics.setdefault(
            operation,
            {
                "count": 0,
                "total_time": 0.0,
                "success_count": 0,
                "failure_count": 0,
                "max_time": 0.0,
            },
        )
        metric_data["count"] += 1
        metric_data["total_time"] += elapsed
        metric_data["max_time"] = max(metric_data["max_time"], elapsed)
        if success:
            metric_data["success_count"] += 1
        else:
            metric_data["failure_count"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get performance metrics for this service.

        Returns:
            Dictionary with metrics for each measured operation
        """
        metrics = BaseService._class_metrics.get(self.__class__.__name__, {})
        result = {}
        for operation, data in metrics.items():
            count = data["count"]
            if count == 0:
                continue
            result[operation] = {
                "count": count,
                "avg_time": data["total_time"] / count,
                "max_time": data["max_time"],
                "success_rate": data["success_count"] / count,
                "failure_count": data["failure_count"],
            }
        return result

    def reset_metrics(self) -> None:
        """Reset all metrics for this service."""
        BaseService._class_metrics.pop(self.__class__.__name__, None)
