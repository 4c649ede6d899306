"""
Structured Logging Utilities

Provides utilities for adding structured context to log messages, so that
every data operation can be traced back to the user at the till.
"""

import inspect
import logging
from typing import Any, Dict, Optional
from contextvars import ContextVar
from functools import wraps


# Context variable for operation-scoped logging context
_logging_context: ContextVar[Dict[str, Any]] = ContextVar('logging_context', default={})

# Ids copied into the log context by log_operation, either passed directly
# (product_id=...) or taken from an entity argument (product -> product.id)
_CONTEXT_KEYS = ("user_id", "product_id", "category_id", "customer_id", "sale_id")


def _context_from_arguments(func, args, kwargs) -> Dict[str, Any]:
    """Collect the ids of the entities a call operates on."""
    try:
        bound = inspect.signature(func).bind_partial(*args, **kwargs)
    except TypeError:
        return {}

    context = {}
    for name, value in bound.arguments.items():
        if name in _CONTEXT_KEYS:
            context[name] = value
            continue
        key = f"{type(value).__name__.lower()}_id"
        entity_id = getattr(value, "id", None)
        if key in _CONTEXT_KEYS and entity_id is not None:
            context[key] = entity_id
    return context


class StructuredLogger:
    """
    Wrapper around standard logger that adds structured context.

    Usage:
        logger = StructuredLogger(__name__)
        logger.info("Sale registered", extra={
            "user_id": user.id,
            "operation": "add_sale",
        })
    """

    def __init__(self, name: str):
        """
        Initialize structured logger.

        Args:
            name: Logger name (typically __name__)
        """
        self.logger = logging.getLogger(name)

    def _add_context(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Add context from ContextVar to extra dict.

        Args:
            extra: Additional context dict

        Returns:
            Merged context dict
        """
        context = _logging_context.get().copy()
        if extra:
            context.update(extra)
        return context

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log debug message with structured context."""
        self.logger.debug(message, extra=self._add_context(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log info message with structured context."""
        self.logger.info(message, extra=self._add_context(extra))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log warning message with structured context."""
        self.logger.warning(message, extra=self._add_context(extra))

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        """Log error message with structured context."""
        self.logger.error(message, extra=self._add_context(extra), exc_info=exc_info)


def set_logging_context(**kwargs):
    """
    Set logging context for the current operation.

    This context will be automatically included in all log messages
    emitted through StructuredLogger.

    Args:
        **kwargs: Key-value pairs to add to context

    Example:
        set_logging_context(user_id=42, terminal="till-1")
    """
    context = _logging_context.get().copy()
    context.update(kwargs)
    _logging_context.set(context)


def get_logging_context() -> Dict[str, Any]:
    """Return a copy of the current logging context."""
    return _logging_context.get().copy()


def clear_logging_context():
    """Clear the logging context."""
    _logging_context.set({})


def log_operation(operation_name: str):
    """
    Decorator to log operation start/end with structured context.

    Failures are logged with their traceback and re-raised unchanged.

    Args:
        operation_name: Name of the operation

    Example:
        @log_operation("add_product")
        def add_product(self, product):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = StructuredLogger(func.__module__)

            context = {"operation": operation_name}
            context.update(_context_from_arguments(func, args, kwargs))

            logger.debug(f"Starting {operation_name}", extra=context)

            try:
                result = func(*args, **kwargs)
                logger.info(f"Completed {operation_name}", extra=context)
                return result
            except Exception as e:
                context["error"] = str(e)
                context["error_type"] = type(e).__name__
                logger.error(f"Failed {operation_name}", extra=context, exc_info=True)
                raise

        return wrapper

    return decorator
