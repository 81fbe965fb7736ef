"""
Chain — the fluent, short-circuiting database state machine.

A ``Chain`` issues statements and queries one after another against a shared
``Database`` (or the transaction it opened on it) and remembers only the
*first* failure.  Every operation returns the chain, so a whole unit of work
reads as one expression::

    err = (
        factory.new_chain()
        .begin()
        .exec("UPDATE products SET views = views + 1")
        .exec("INSERT INTO product_viewers (user_id, product_id) VALUES (?, ?)", 2, 3)
        .commit()
        .err()
    )

States:
    ::

        ┌────────┐  begin()   ┌───────────────┐  commit()   ┌────────┐
        │  Idle  │ ─────────► │ InTransaction │ ──────────► │  Idle  │
        └────────┘            └───────────────┘             └────────┘
             │ any failure            │ any failure
             ▼                        ▼
        ┌────────────────────────────────────┐   commit() rolls back,
        │ Failed (first error recorded)      │   releases the transaction
        └────────────────────────────────────┘

Guarantees:
    - After the first failure no database call is made except the rollback
      issued by ``commit()``.
    - Exactly one of commit / rollback is issued per opened transaction.
    - A failing rollback never replaces the recorded error; it only reaches
      the error logger.
    - ``err()`` is idempotent.

A chain is single-owner and holds no locks; never share one across threads.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any

from sqlchain.errors import (
    ChainError,
    CommitError,
    FetchError,
    MetadataUnavailableError,
    RollbackError,
    StatementError,
    TransactionBeginError,
    wrap_error,
)
from sqlchain.logging import get_logger
from sqlchain.policy import DEFAULT_POLICY, ErrorPolicy
from sqlchain.protocols import Database, ExecResult, Queryable, Transaction
from sqlchain.refs import Ref

logger = get_logger(__name__)


class Chain:
    """Sequential unit of database work that stops at the first error."""

    def __init__(self, database: Database, policy: ErrorPolicy = DEFAULT_POLICY) -> None:
        self._database = database
        self._policy = policy
        self._tx: Transaction | None = None
        self._err: BaseException | None = None
        self._result: ExecResult | None = None

    # -- introspection ------------------------------------------------------

    @property
    def failed(self) -> bool:
        return self._err is not None

    @property
    def in_transaction(self) -> bool:
        return self._tx is not None

    @property
    def policy(self) -> ErrorPolicy:
        return self._policy

    # -- internals ----------------------------------------------------------

    def _target(self) -> Queryable:
        return self._tx if self._tx is not None else self._database

    def _fail(self, error: ChainError) -> None:
        self._err = error
        logger.debug(
            "chain_failed",
            step=error.context.step,
            error_type=type(error).__name__,
            in_transaction=self._tx is not None,
        )

    # -- transaction --------------------------------------------------------

    def begin(self) -> Chain:
        """Open a transaction; later operations run inside it."""
        if self._err is not None:
            return self

        if self._tx is not None:
            self._fail(
                TransactionBeginError("transaction already open").with_context(step="begin")
            )
            return self

        try:
            self._tx = self._database.begin()
        except Exception as e:
            self._fail(wrap_error(e, TransactionBeginError, "begin failed", step="begin"))
            return self

        logger.debug("transaction_begun")
        return self

    def commit(self) -> Chain:
        """Resolve the open transaction: commit, or roll back if the chain failed.

        No-op when no transaction is open.  The transaction is released in
        every case.
        """
        if self._tx is None:
            return self

        try:
            if self._err is not None:
                self._rollback(self._tx)
            else:
                try:
                    self._tx.commit()
                except Exception as e:
                    self._fail(wrap_error(e, CommitError, "commit failed", step="commit"))
                else:
                    logger.debug("transaction_committed")
        finally:
            self._tx = None

        return self

    def _rollback(self, tx: Transaction) -> None:
        try:
            tx.rollback()
        except Exception as e:
            rollback_error = wrap_error(e, RollbackError, "rollback failed", step="rollback")
            self._policy.logger(rollback_error, "When rolling back transaction")
            return

        logger.debug("transaction_rolled_back")

    # -- statements ---------------------------------------------------------

    def exec(self, query: str, *args: Any) -> Chain:
        """Run an INSERT/UPDATE/DELETE/DDL statement and keep its metadata."""
        if self._err is not None:
            return self

        try:
            result = self._target().execute(query, args)
        except Exception as e:
            self._fail(
                wrap_error(e, StatementError, "statement failed", step="exec", query=query)
            )
            return self

        self._result = result
        return self

    # -- queries ------------------------------------------------------------

    def get_one(self, dest: Any, query: str, *args: Any) -> Chain:
        """Scan the first row of *query* into *dest*."""
        return self._fetch("fetch_one", "get_one", dest, query, args)

    def get_many(self, dest: Any, query: str, *args: Any) -> Chain:
        """Scan every row of *query* into *dest*."""
        return self._fetch("fetch_all", "get_many", dest, query, args)

    def _fetch(self, method: str, step: str, dest: Any, query: str, args: tuple) -> Chain:
        if self._err is not None:
            return self

        target = self._target()
        fetch = getattr(target, method, None)
        if fetch is None:
            self._fail(
                FetchError(f"{type(target).__name__} does not support {method}").with_context(
                    step=step, query=query
                )
            )
            return self

        try:
            fetch(dest, query, args)
        except Exception as e:
            self._fail(wrap_error(e, FetchError, "query failed", step=step, query=query))

        return self

    # -- result metadata ----------------------------------------------------

    def last_insert_id(self, ref: Ref[int]) -> Chain:
        """Store the id generated by the last ``exec`` in *ref*."""
        return self._read_metadata("last_insert_id", ref)

    def rows_affected(self, ref: Ref[int]) -> Chain:
        """Store the row count of the last ``exec`` in *ref*."""
        return self._read_metadata("rows_affected", ref)

    def _read_metadata(self, name: str, ref: Ref[int]) -> Chain:
        if self._err is not None:
            return self

        if self._result is None:
            self._fail(
                MetadataUnavailableError(
                    f"{name} requested before any statement was executed"
                ).with_context(step=name)
            )
            return self

        try:
            ref.value = getattr(self._result, name)()
        except Exception as e:
            self._fail(
                wrap_error(e, MetadataUnavailableError, f"{name} unavailable", step=name)
            )

        return self

    # -- errors -------------------------------------------------------------

    def log_err(self, message: str, *args: Any) -> Chain:
        """Pass the recorded error, if any, to the policy logger."""
        if self._err is not None:
            self._policy.logger(self._err, message, *args)
        return self

    def err(self) -> BaseException | None:
        """Return the converted first error, or ``None`` if every step succeeded."""
        if self._err is None:
            return None
        return self._policy.converter(self._err)

    def raise_for_err(self) -> Chain:
        """Raise the converted first error, if any."""
        error = self.err()
        if error is not None:
            raise error
        return self

    # -- context manager ----------------------------------------------------

    def __enter__(self) -> Chain:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        # An escaping exception counts as the chain's failure so the
        # transaction is rolled back rather than committed.
        if exc is not None and self._err is None:
            self._err = exc
        self.commit()
        return False

    def __repr__(self) -> str:
        if self._err is not None:
            state = f"failed={type(self._err).__name__}"
        elif self._tx is not None:
            state = "in_transaction"
        else:
            state = "idle"
        return f"Chain({state})"


__all__ = ["Chain"]
