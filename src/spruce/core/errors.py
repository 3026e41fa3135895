"""
Structured error types for spruce.

Every failure the core raises is a ``SpruceError`` carrying a category,
a retryable flag, a structured context and the chained driver exception
(if any). Callers can branch on the class, route on the category and
log the whole thing with ``to_dict()``.

Manifesto:
    - **Typed hierarchy:** One class per failure mode the core defines
    - **Never swallow:** Driver exceptions are chained, not replaced
    - **Rich context:** Errors name the failing operation and SQL
    - **No automatic retry:** ``retryable`` is advice for the caller

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       SpruceError                                │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  TransientError          ConfigError         StateError         │
        │  (retryable=True)        (CONFIG)            (STATE)            │
        │       │                       │                   │             │
        │  DatabaseConnectionError ModuleNotRegistered InvalidTransaction │
        │                                              ActiveTransaction  │
        │                                              InvalidStatement   │
        │                                              ContextClosed      │
        │                                              CursorState        │
        │                                                                  │
        │  DatabaseError (DATABASE)                                        │
        │       │                                                          │
        │  EngineError          CloseAggregateError                        │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> try:
    ...     ctx.close()
    ... except ActiveTransactionError:
    ...     ctx.abort_transaction()
    ...     ctx.close()

    >>> with engine_errors("execute", sql):
    ...     cursor.execute(sql, params)

Guardrails:
    ❌ DON'T: Raise bare Exception/RuntimeError from the core
    ✅ DO: Use the matching SpruceError subclass

    ❌ DON'T: Drop the driver exception when wrapping
    ✅ DO: Pass it as cause= (and ``raise ... from e``)

Tags:
    error-handling, exception-hierarchy, error-context, spruce

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        DATABASE: Driver, connection, query and teardown failures
        CONFIG: Missing registrations, invalid settings, unknown URLs
        STATE: API called out of sequence (transactions, batches, closed objects)
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    DATABASE = "DATABASE"
    CONFIG = "CONFIG"
    STATE = "STATE"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that were set appear in ``to_dict()``; anything without
    a dedicated field lands in ``metadata``.

    Attributes:
        operation: Name of the failing operation ("execute", "commit", ...)
        sql: SQL text involved, if any
        module: Module type name involved, if any
        resource: repr of the resource involved (close failures)
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    sql: str | None = None
    module: str | None = None
    resource: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["operation", "sql", "module", "resource"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SpruceError(Exception):
    """
    Base exception for all spruce errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    call sites only pass a message (and a cause when wrapping).

    Examples:
        >>> error = SpruceError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(operation="close").context.operation
        'close'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SpruceError:
        """
        Add context to this error (fluent API).

        Usage:
            raise EngineError("Query failed").with_context(
                operation="query",
                sql="SELECT 1",
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (Usually Retryable)
# =============================================================================


class TransientError(SpruceError):
    """Temporary error that may succeed if the caller tries again."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """The engine could not hand out a connection (unreachable, auth failure)."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SpruceError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class ModuleNotRegisteredError(ConfigError):
    """A module type was requested with no registered factory."""

    def __init__(self, module_type: type):
        self.module_type = module_type
        name = getattr(module_type, "__qualname__", repr(module_type))
        super().__init__(f"No factory registered for {name}")
        self.context.module = name


# =============================================================================
# STATE ERRORS
# =============================================================================


class StateError(SpruceError):
    """An operation was called out of sequence."""

    default_category = ErrorCategory.STATE
    default_retryable = False


class InvalidTransactionStateError(StateError):
    """begin while in a transaction, or abort/commit while idle."""

    pass


class ActiveTransactionError(StateError):
    """Context close attempted while a transaction is still open."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "Context cannot be closed with an active transaction. Abort or commit before closing."
        )


class InvalidStatementStateError(StateError):
    """Single execution requested on a statement in batch mode."""

    pass


class ContextClosedError(StateError):
    """Operation attempted on a context that has already been closed."""

    pass


class CursorStateError(StateError):
    """Row access on a cursor that is closed or not positioned on a row."""

    pass


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(SpruceError):
    """Database query, transaction or teardown error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class EngineError(DatabaseError):
    """A failure reported by the underlying driver, wrapped with the failing operation."""

    pass


class CloseAggregateError(DatabaseError):
    """
    One or more tracked resources failed to release during context close.

    ``errors`` holds every failure in release order; none are dropped.
    """

    def __init__(self, errors: list[BaseException], message: str | None = None):
        self.errors = list(errors)
        super().__init__(
            message or f"Context could not close {len(self.errors)} DB object(s)",
            cause=self.errors[0] if self.errors else None,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = [repr(e) for e in self.errors]
        return result


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


@contextmanager
def engine_errors(operation: str, sql: str | None = None) -> Iterator[None]:
    """
    Wrap driver exceptions raised inside the block as ``EngineError``.

    SpruceErrors pass through untouched. The original exception is kept
    as ``cause`` and ``__cause__``.
    """
    try:
        yield
    except SpruceError:
        raise
    except Exception as e:
        error = EngineError(f"{operation} failed: {e}", cause=e)
        error.with_context(operation=operation, sql=sql)
        raise error from e


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SpruceError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, SpruceError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.DATABASE
    if isinstance(error, (KeyError, AttributeError)):
        return ErrorCategory.CONFIG
    return ErrorCategory.UNKNOWN


__all__ = [
    # Category enum
    "ErrorCategory",
    # Context
    "ErrorContext",
    # Base
    "SpruceError",
    # Transient
    "TransientError",
    "DatabaseConnectionError",
    # Config
    "ConfigError",
    "ModuleNotRegisteredError",
    # State
    "StateError",
    "InvalidTransactionStateError",
    "ActiveTransactionError",
    "InvalidStatementStateError",
    "ContextClosedError",
    "CursorStateError",
    # Database
    "DatabaseError",
    "EngineError",
    "CloseAggregateError",
    # Utilities
    "engine_errors",
    "is_retryable",
    "categorize_error",
]
