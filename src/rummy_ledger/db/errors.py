"""Typed database/domain exceptions for the DB package.

This module defines a small, explicit exception hierarchy used by repository
modules and the balance authority. Every failure a caller can observe maps to
exactly one of four kinds:

    - ``RecordNotFoundError``: a referenced user/game/row does not exist.
    - ``InvalidArgumentError``: input outside its domain (placing, empty
      reason or action type, balance overflow).
    - ``DatabaseConflictError``: write-lock contention outlasted the busy
      timeout; the whole operation may be retried.
    - ``DatabaseReadError`` / ``DatabaseWriteError``: the store itself failed.

Design intent:
    - Domain errors pass through repository wrappers unchanged.
    - Infrastructure failures are wrapped with a
      :class:`DatabaseOperationContext` and keep the original exception as
      ``cause`` (and ``__cause__``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NoReturn


@dataclass(slots=True)
class DatabaseOperationContext:
    """Structured operation metadata carried by repository exceptions.

    Attributes:
        operation: Stable operation identifier (for example
            ``"ledger.apply_coin_delta"``).
        details: Optional human-readable context for logs and debugging.
    """

    operation: str
    details: str | None = None


class DatabaseError(RuntimeError):
    """Base exception for DB-layer failures."""


class RecordNotFoundError(DatabaseError):
    """A referenced row does not exist.

    Args:
        entity: Table/entity label (``"user"``, ``"game"``).
        key: Identifier that was looked up.
    """

    def __init__(self, entity: str, key: object) -> None:
        super().__init__(f"{entity} {key!r} not found")
        self.entity = entity
        self.key = key


class InvalidArgumentError(DatabaseError, ValueError):
    """Input rejected before (or instead of) touching the store."""


class DatabaseOperationError(DatabaseError):
    """Base exception for repository operation failures.

    Args:
        context: Structured operation metadata.
        cause: Optional underlying exception.
    """

    def __init__(
        self,
        *,
        context: DatabaseOperationContext,
        cause: Exception | None = None,
    ) -> None:
        message = context.operation
        if context.details:
            message = f"{message}: {context.details}"
        super().__init__(message)
        self.context = context
        self.cause = cause


class DatabaseReadError(DatabaseOperationError):
    """Repository read/query failure."""


class DatabaseWriteError(DatabaseOperationError):
    """Repository mutation/transaction failure."""


class DatabaseConflictError(DatabaseWriteError):
    """Write lock contention; nothing was applied and the caller may retry."""


def raise_read_error(operation: str, exc: Exception, *, details: str | None = None) -> NoReturn:
    """Raise a typed repository read error while preserving chained cause."""
    if isinstance(exc, DatabaseError):
        raise exc
    raise DatabaseReadError(
        context=DatabaseOperationContext(operation=operation, details=details),
        cause=exc,
    ) from exc


def raise_write_error(operation: str, exc: Exception, *, details: str | None = None) -> NoReturn:
    """Raise a typed repository write error while preserving chained cause.

    SQLite lock contention becomes :class:`DatabaseConflictError` so callers
    can tell a retryable failure from a broken store.
    """
    from rummy_ledger.db.connection import is_lock_contention

    if isinstance(exc, DatabaseError):
        raise exc
    error_cls = DatabaseConflictError if is_lock_contention(exc) else DatabaseWriteError
    raise error_cls(
        context=DatabaseOperationContext(operation=operation, details=details),
        cause=exc,
    ) from exc
