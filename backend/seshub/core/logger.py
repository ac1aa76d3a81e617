"""Structured logging configuration using structlog."""

from __future__ import annotations

import functools
import inspect
import logging
import sys
import time
from collections.abc import Awaitable, Callable
from typing import Any, cast

import structlog

from seshub.core.config import settings

BoundLogger = structlog.stdlib.BoundLogger


def setup_logging() -> None:
    """Configure structured logging for the application"""

    renderer: Any
    if settings.is_development and settings.DEBUG:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper()),
    )

    # Quieter third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a structured logger instance"""
    return cast(BoundLogger, structlog.get_logger(name or "seshub"))


class LoggerMixin:
    """Mixin class to add logging capability to other classes"""

    @property
    def logger(self) -> BoundLogger:
        return get_logger(self.__class__.__name__)


def log_function_call(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator logging call duration and failures of a (possibly async) function."""

    @functools.wraps(func)
    async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()
        try:
            result = await cast(Callable[..., Awaitable[Any]], func)(*args, **kwargs)
        except Exception as exc:
            logger.error(
                "Function failed",
                function=func.__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(exc),
                exc_info=True,
            )
            raise

        logger.debug(
            "Function completed",
            function=func.__name__,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return result

    @functools.wraps(func)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            logger.error(
                "Function failed",
                function=func.__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(exc),
                exc_info=True,
            )
            raise

        logger.debug(
            "Function completed",
            function=func.__name__,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return result

    if inspect.iscoroutinefunction(func):
        return async_wrapper

    return sync_wrapper


# Initialize logging on module import
setup_logging()
