"""
Base service layer patterns for business logic encapsulation.

Services encapsulate business logic separate from views and models.
Views handle HTTP concerns, models handle data, services handle logic.

Error handling:
    Services raise core.exceptions subclasses for expected failures
    (wrong state, missing permission, insufficient balance). The DRF
    exception handler turns them into responses. Every precondition is
    checked before the first write so a raised error never follows a
    partial mutation.

Usage:
    from core.services import BaseService

    class EscrowService(BaseService):
        @classmethod
        def release(cls, escrow_id, client_id):
            with cls.atomic():
                escrow = Escrow.objects.select_for_update().get(id=escrow_id)
                ...

            cls.get_logger().info("Escrow released", extra={"escrow_id": str(escrow_id)})
            cls.run_best_effort("tier recalculation", TierService.recalculate, freelancer_id)
            return escrow
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from typing import Any


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management
    - Isolation of best-effort side effects

    Design Notes:
        - Use @classmethod (no instance state)
        - Collaborators that tests replace (gateway clients) are held
          at class level with explicit get_/set_ accessors
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction. If any operation fails, all
        changes are rolled back.

        Example:
            with cls.atomic():
                escrow.release()
                escrow.save()
                project.save()
                # If the project save fails, the escrow is rolled back too
        """
        with transaction.atomic():
            yield

    @classmethod
    def run_best_effort(
        cls,
        label: str,
        func: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """
        Run a side effect whose failure must never reach the caller.

        The error is logged with traceback and swallowed; the return
        value is None when the call fails.

        Args:
            label: Short description used in the log line
            func: Callable to invoke
            *args, **kwargs: Passed through to func

        Returns:
            Whatever func returned, or None on failure
        """
        try:
            return func(*args, **kwargs)
        except Exception:
            cls.get_logger().exception(
                f"Best-effort {label} failed",
                extra={"side_effect": label},
            )
            return None
