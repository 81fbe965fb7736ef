"""
Structured error types for sqlchain.

Every failure a chain can record is a ``ChainError`` subclass.  Raw driver
exceptions are never surfaced bare: the chain wraps them in the kind that
matches the failing step and keeps the original as ``cause``.

Manifesto:
    - **Typed per step:** begin, statement, fetch, metadata and commit failures
      are distinguishable without string matching
    - **Rich context:** errors carry the query and step for logging
    - **Error chaining:** the driver exception is preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                         ChainError                               │
        │  (category, retryable, context, cause)                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  DatabaseConnectionError   TransactionBeginError   ConfigError   │
        │  (NETWORK, retryable)      (TRANSACTION)           (CONFIG)      │
        │                                                                  │
        │  StatementError            FetchError         CommitError        │
        │  (STATEMENT)               (FETCH)            (TRANSACTION)      │
        │                                │                                 │
        │                        NoRowsError  ScanError                    │
        │                                                                  │
        │  MetadataUnavailableError        RollbackError                   │
        │  (METADATA)                      (TRANSACTION, logged only)      │
        │        │                                                         │
        │  NotSupportedError                                               │
        └─────────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Return RollbackError from ``Chain.err()``
    ✅ DO: Hand it to the error logger; the original failure stays terminal

    ❌ DON'T: Swallow the original driver exception
    ✅ DO: Pass it as ``cause=`` so tracebacks show the root cause

Usage:
    from sqlchain.errors import StatementError

    try:
        database.execute(query, args)
    except Exception as e:
        raise StatementError(f"statement failed: {e}", cause=e)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy import exc as sa_exc


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    NETWORK = "NETWORK"           # Driver unreachable, pool exhausted
    TRANSACTION = "TRANSACTION"   # Begin, commit, rollback
    STATEMENT = "STATEMENT"       # INSERT/UPDATE/DELETE/DDL
    FETCH = "FETCH"               # Query and row scanning
    METADATA = "METADATA"         # Rows affected / generated id
    CONFIG = "CONFIG"             # Missing or invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a chain error.

    Only non-``None`` fields are serialised by ``to_dict()``; anything without
    a dedicated field goes into ``metadata``.
    """

    step: str | None = None
    query: str | None = None
    backend: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["step", "query", "backend"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ChainError(Exception):
    """
    Base exception for every error a chain records.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    can route on the class alone.

    Examples:
        >>> error = ChainError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        >>> error = StatementError("insert failed").with_context(step="exec")
        >>> error.context.step
        'exec'
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

    def with_context(self, **kwargs: Any) -> ChainError:
        """
        Add context to this error (fluent API).

        Usage:
            raise FetchError("scan failed").with_context(
                step="get_one",
                query="SELECT * FROM products",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
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
# CONNECTION / CONFIG
# =============================================================================


class DatabaseConnectionError(ChainError):
    """The database capability could not be reached or constructed."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class ConfigError(ChainError):
    """Invalid or unsupported configuration."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# CHAIN STEP ERRORS
# =============================================================================


class TransactionBeginError(ChainError):
    """Opening a transaction failed, or one is already open."""

    default_category = ErrorCategory.TRANSACTION


class StatementError(ChainError):
    """An execute-type statement failed."""

    default_category = ErrorCategory.STATEMENT


class FetchError(ChainError):
    """A query, or mapping its rows into the destination, failed."""

    default_category = ErrorCategory.FETCH


class NoRowsError(FetchError):
    """``get_one`` matched no rows."""


class ScanError(FetchError):
    """A row could not be written into the caller's destination."""


class MetadataUnavailableError(ChainError):
    """Result metadata was requested but is absent."""

    default_category = ErrorCategory.METADATA


class NotSupportedError(MetadataUnavailableError):
    """The driver cannot report the requested metadata."""


class CommitError(ChainError):
    """Committing the open transaction failed."""

    default_category = ErrorCategory.TRANSACTION


class RollbackError(ChainError):
    """
    Rolling back after an earlier failure also failed.

    Only ever delivered to the error logger.  The failure that caused the
    rollback remains the chain's terminal error.
    """

    default_category = ErrorCategory.TRANSACTION


# =============================================================================
# HELPERS
# =============================================================================


def wrap_error(
    error: BaseException,
    kind: type[ChainError],
    message: str,
    **context: Any,
) -> ChainError:
    """Return *error* as a ``kind``, wrapping it unless it already is one."""
    if isinstance(error, kind):
        wrapped = error
    else:
        wrapped = kind(f"{message}: {error}", cause=error)
    if context:
        wrapped.with_context(**{k: v for k, v in context.items() if v is not None})
    return wrapped


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, ChainError):
        return error.retryable
    return False


def categorize_error(error: BaseException) -> ErrorCategory:
    """Categorize any exception, including ones that are not ChainErrors."""
    if isinstance(error, ChainError):
        return error.category
    # Map common exceptions to categories
    if isinstance(error, (OSError, sa_exc.DisconnectionError)):
        return ErrorCategory.NETWORK
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return ErrorCategory.NETWORK
    if isinstance(
        error, (sa_exc.IntegrityError, sa_exc.ProgrammingError, sa_exc.OperationalError)
    ):
        return ErrorCategory.STATEMENT
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ChainError",
    "DatabaseConnectionError",
    "ConfigError",
    "TransactionBeginError",
    "StatementError",
    "FetchError",
    "NoRowsError",
    "ScanError",
    "MetadataUnavailableError",
    "NotSupportedError",
    "CommitError",
    "RollbackError",
    "wrap_error",
    "is_retryable",
    "categorize_error",
]
