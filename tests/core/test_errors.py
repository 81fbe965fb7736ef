"""Tests for sqlchain.errors module."""

import pytest
from sqlalchemy import exc as sa_exc

from sqlchain.errors import (
    ChainError,
    CommitError,
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    ErrorContext,
    FetchError,
    MetadataUnavailableError,
    NoRowsError,
    NotSupportedError,
    RollbackError,
    ScanError,
    StatementError,
    TransactionBeginError,
    categorize_error,
    is_retryable,
    wrap_error,
)


class TestErrorContext:
    def test_empty_context(self):
        ctx = ErrorContext()
        assert ctx.to_dict() == {}

    def test_fields_and_metadata(self):
        ctx = ErrorContext(step="exec", query="DELETE FROM t")
        ctx.metadata["attempt"] = 1

        assert ctx.to_dict() == {"step": "exec", "query": "DELETE FROM t", "attempt": 1}


class TestChainError:
    def test_defaults(self):
        error = ChainError("Something went wrong")

        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert error.cause is None

    def test_cause_is_chained(self):
        cause = RuntimeError("driver")
        error = StatementError("failed", cause=cause)

        assert error.cause is cause
        assert error.__cause__ is cause

    def test_with_context_is_fluent(self):
        error = FetchError("scan failed").with_context(step="get_one", table="products")

        assert error.context.step == "get_one"
        assert error.context.metadata == {"table": "products"}

    def test_to_dict(self):
        error = StatementError("insert failed", cause=ValueError("bad")).with_context(step="exec")

        d = error.to_dict()

        assert d == {
            "error_type": "StatementError",
            "message": "insert failed",
            "category": "STATEMENT",
            "retryable": False,
            "context": {"step": "exec"},
            "cause": "bad",
        }

    def test_repr(self):
        assert repr(CommitError("nope")) == "CommitError('nope', category=TRANSACTION)"


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls, category",
        [
            (DatabaseConnectionError, ErrorCategory.NETWORK),
            (ConfigError, ErrorCategory.CONFIG),
            (TransactionBeginError, ErrorCategory.TRANSACTION),
            (StatementError, ErrorCategory.STATEMENT),
            (FetchError, ErrorCategory.FETCH),
            (NoRowsError, ErrorCategory.FETCH),
            (ScanError, ErrorCategory.FETCH),
            (MetadataUnavailableError, ErrorCategory.METADATA),
            (NotSupportedError, ErrorCategory.METADATA),
            (CommitError, ErrorCategory.TRANSACTION),
            (RollbackError, ErrorCategory.TRANSACTION),
        ],
    )
    def test_categories(self, cls, category):
        error = cls("x")
        assert isinstance(error, ChainError)
        assert error.category == category

    def test_subclass_relationships(self):
        assert issubclass(NoRowsError, FetchError)
        assert issubclass(ScanError, FetchError)
        assert issubclass(NotSupportedError, MetadataUnavailableError)

    def test_only_connection_errors_retryable(self):
        assert is_retryable(DatabaseConnectionError("down"))
        assert not is_retryable(StatementError("bad sql"))
        assert not is_retryable(RuntimeError("plain"))


class TestWrapError:
    def test_wraps_raw_exception(self):
        raw = RuntimeError("some error")

        wrapped = wrap_error(raw, StatementError, "statement failed", step="exec")

        assert isinstance(wrapped, StatementError)
        assert str(wrapped) == "statement failed: some error"
        assert wrapped.cause is raw
        assert wrapped.context.step == "exec"

    def test_keeps_matching_kind(self):
        original = NoRowsError("no rows in result set")

        wrapped = wrap_error(original, FetchError, "query failed", step="get_one")

        assert wrapped is original
        assert wrapped.context.step == "get_one"

    def test_rewraps_other_chain_errors(self):
        original = NotSupportedError("no lastrowid")

        wrapped = wrap_error(original, FetchError, "query failed")

        assert isinstance(wrapped, FetchError)
        assert wrapped.cause is original

    def test_none_context_values_skipped(self):
        wrapped = wrap_error(RuntimeError("x"), StatementError, "failed", step="exec", query=None)

        assert wrapped.context.to_dict() == {"step": "exec"}


class TestCategorizeError:
    def test_chain_error_uses_own_category(self):
        assert categorize_error(ScanError("x")) == ErrorCategory.FETCH

    def test_os_errors_are_network(self):
        assert categorize_error(ConnectionRefusedError()) == ErrorCategory.NETWORK
        assert categorize_error(TimeoutError()) == ErrorCategory.NETWORK

    def test_invalidated_connection_is_network(self):
        error = sa_exc.OperationalError(
            "SELECT 1", {}, Exception("server closed"), connection_invalidated=True
        )

        assert categorize_error(error) == ErrorCategory.NETWORK

    @pytest.mark.parametrize(
        "cls", [sa_exc.IntegrityError, sa_exc.ProgrammingError, sa_exc.OperationalError]
    )
    def test_driver_errors_are_statement(self, cls):
        error = cls("INSERT INTO products VALUES (?)", (1,), Exception("driver"))

        assert categorize_error(error) == ErrorCategory.STATEMENT

    def test_class_name_alone_is_not_enough(self):
        class OperationalError(Exception):
            pass

        assert categorize_error(OperationalError()) == ErrorCategory.INTERNAL

    def test_unknown(self):
        assert categorize_error(ValueError()) == ErrorCategory.INTERNAL
