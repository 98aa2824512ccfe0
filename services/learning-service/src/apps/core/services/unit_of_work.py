# services/learning-service/src/apps/core/services/unit_of_work.py
"""
Unit of Work

Every mutating engine operation runs through `unit_of_work`: the wrapped
callable executes inside one database transaction, and a unique-constraint
violation (a concurrent writer won the race) surfaces as StateConflictError
after the transaction has rolled back.
"""

import functools
import logging
from typing import Callable

from django.db import IntegrityError, transaction

from .exceptions import StateConflictError

logger = logging.getLogger(__name__)


def unit_of_work(func: Callable) -> Callable:
    """Run `func` atomically; nested calls join the outer transaction."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            with transaction.atomic():
                return func(*args, **kwargs)
        except IntegrityError as e:
            logger.warning(f"{func.__qualname__} rejected by a storage constraint: {e}")
            raise StateConflictError(
                "The request conflicts with a concurrent change, please retry",
                code="CONCURRENT_MODIFICATION",
                details={'operation': func.__name__}
            ) from e

    return wrapper


def after_commit(callback: Callable, *args, **kwargs) -> None:
    """Schedule `callback(*args, **kwargs)` once the current transaction commits."""
    transaction.on_commit(functools.partial(callback, *args, **kwargs))
