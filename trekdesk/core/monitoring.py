"""
Structured logging and operation timing.
"""

import time
from typing import Callable, Any
from functools import wraps
import logging
import json
from datetime import datetime, timezone
import asyncio

logger = logging.getLogger(__name__)

# LogRecord attributes copied into JSON output when a caller passes them via `extra`
_EXTRA_FIELDS = ("duration_ms", "operation", "public_id", "request_id")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured log output (settings.log_format == "json")."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
        }
        for field in _EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def track_performance(operation_name: str):
    """Decorator that logs how long an operation took, or how long until it failed."""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                logger.error(
                    f"{operation_name} failed after {elapsed:.0f}ms: {e}",
                    extra={"operation": operation_name, "duration_ms": round(elapsed)},
                )
                raise
            elapsed = (time.perf_counter() - start) * 1000
            logger.info(
                f"{operation_name} completed in {elapsed:.0f}ms",
                extra={"operation": operation_name, "duration_ms": round(elapsed)},
            )
            return result

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                logger.error(
                    f"{operation_name} failed after {elapsed:.0f}ms: {e}",
                    extra={"operation": operation_name, "duration_ms": round(elapsed)},
                )
                raise
            elapsed = (time.perf_counter() - start) * 1000
            logger.info(
                f"{operation_name} completed in {elapsed:.0f}ms",
                extra={"operation": operation_name, "duration_ms": round(elapsed)},
            )
            return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
