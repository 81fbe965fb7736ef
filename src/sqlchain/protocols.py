"""
Canonical protocol definitions for sqlchain.

The chain never imports a driver.  It talks to whatever object satisfies
``Database`` (and the ``Transaction`` it hands out), so the same chain logic
runs on SQLAlchemy, a test double, or any other adapter.

Architecture:
    ::

        protocols.py (YOU ARE HERE)
        ├── ExecResult      — metadata of one executed statement
        ├── Transaction     — open transaction: execute/fetch/commit/rollback
        ├── Database        — shared capability: execute/fetch/begin
        ├── ErrorConverter  — maps a recorded error to a domain error
        └── ErrorLogger     — side-effect reporting of errors

    Consumers:
        chain.py, factory.py, policy.py, adapters/sqlalchemy.py

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts; implementations go in adapters

    ❌ DON'T: Return error values from capability methods
    ✅ DO: Raise; the chain converts exceptions into recorded errors

Tags:
    protocol, database, transaction, error-policy, sqlchain, contracts
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

# ---------------------------------------------------------------------------
# Database capability
# ---------------------------------------------------------------------------


@runtime_checkable
class ExecResult(Protocol):
    """
    Metadata about one executed statement.

    Either method may raise when the underlying engine cannot report the
    value (e.g. ``last_insert_id`` on PostgreSQL without ``RETURNING``).
    """

    def rows_affected(self) -> int:
        """Number of rows the statement changed."""
        ...

    def last_insert_id(self) -> int:
        """Identifier generated by the statement."""
        ...


@runtime_checkable
class Queryable(Protocol):
    """Operations shared by the database and an open transaction."""

    def execute(self, query: str, args: tuple = ()) -> ExecResult:
        """Execute a statement and return its metadata. SYNC."""
        ...

    def fetch_one(self, dest: Any, query: str, args: tuple = ()) -> None:
        """Scan the first row of *query* into *dest*. SYNC."""
        ...

    def fetch_all(self, dest: Any, query: str, args: tuple = ()) -> None:
        """Scan every row of *query* into *dest*. SYNC."""
        ...


@runtime_checkable
class Transaction(Queryable, Protocol):
    """
    An open transaction handed out by ``Database.begin()``.

    Exactly one of ``commit()`` / ``rollback()`` is called per transaction,
    and either one releases the underlying connection.
    """

    def commit(self) -> None:
        """Commit the transaction. SYNC."""
        ...

    def rollback(self) -> None:
        """Roll the transaction back. SYNC."""
        ...


@runtime_checkable
class Database(Queryable, Protocol):
    """
    Shared, possibly pooled, database capability.

    Outlives every chain that uses it.  Statements run outside a
    transaction are committed on their own.
    """

    def begin(self) -> Transaction:
        """Check out a connection and open a transaction on it. SYNC."""
        ...


# ---------------------------------------------------------------------------
# Error policy
# ---------------------------------------------------------------------------


class ErrorConverter(Protocol):
    """Maps the chain's terminal error to the caller's error type."""

    def __call__(self, error: Exception) -> Exception:
        ...


class ErrorLogger(Protocol):
    """Reports an error with a contextual message. Return value is ignored."""

    def __call__(self, error: Exception, message: str, *args: Any) -> None:
        ...


__all__ = [
    "ExecResult",
    "Queryable",
    "Transaction",
    "Database",
    "ErrorConverter",
    "ErrorLogger",
]
