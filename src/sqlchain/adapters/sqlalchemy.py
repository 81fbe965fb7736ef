"""SQLAlchemy implementation of the ``Database`` capability.

Manifesto:
    The chain only needs execute / fetch / begin.  SQLAlchemy's ``Engine``
    already provides pooling, dialects and driver management, so this module
    is a thin bridge: it rewrites ``?`` placeholders into named binds, scans
    rows into destinations, and makes sure every transaction hands its
    connection back to the pool.

This module provides:

* ``create_sa_engine``  -- Create an engine with SQLite-aware defaults.
* ``SADatabase``        -- ``Database`` over an ``Engine``.
* ``SATransaction``     -- ``Transaction`` over one checked-out ``Connection``.
* ``SAExecResult``      -- ``ExecResult`` snapshot of a ``CursorResult``.

Tags:
    sqlchain, sqlalchemy, engine, adapter, transaction

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event, text
from sqlalchemy.engine import Connection, CursorResult, Engine, RootTransaction
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.elements import TextClause

from sqlchain.adapters.scan import scan_all, scan_one
from sqlchain.errors import NotSupportedError


def create_sa_engine(
    url: str = "sqlite:///:memory:",
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    pool_timeout: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``, etc.)
    echo:
        If ``True``, log all SQL.
    pool_size, max_overflow, pool_timeout:
        Connection pool parameters (ignored for SQLite).
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        in_memory = ":memory:" in url or url.endswith("://")
        if in_memory:
            # One shared connection, otherwise every checkout sees a new empty database
            kwargs.setdefault("poolclass", StaticPool)

        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            if not in_memory:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    pool_kwargs: dict[str, Any] = {}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow
    if pool_timeout is not None:
        pool_kwargs["pool_timeout"] = pool_timeout

    return _sa_create_engine(url, echo=echo, **pool_kwargs, **kwargs)


def bind_params(query: str, args: Sequence[Any] = ()) -> tuple[TextClause, dict[str, Any]]:
    """Turn *query* and positional *args* into a ``text()`` clause and bind dict.

    ``?`` placeholders outside single-quoted literals become ``:p0, :p1, …``.
    A single mapping argument is used as named binds unchanged.  Colons inside
    literals are escaped so ``text()`` never reads them as bind names.
    """
    named = len(args) == 1 and isinstance(args[0], Mapping)

    rewritten: list[str] = []
    idx = 0
    in_literal = False
    for ch in query:
        if ch == "'":
            in_literal = not in_literal
        if in_literal and ch == ":":
            rewritten.append("\\:")
        elif ch == "?" and not in_literal and not named:
            rewritten.append(f":p{idx}")
            idx += 1
        else:
            rewritten.append(ch)

    if named:
        return text("".join(rewritten)), dict(args[0])

    if idx != len(args):
        raise ValueError(f"query has {idx} placeholders but {len(args)} arguments were given")

    return text("".join(rewritten)), {f"p{i}": v for i, v in enumerate(args)}


class SAExecResult:
    """Metadata captured from a ``CursorResult`` while its cursor is live."""

    def __init__(self, rowcount: int, lastrowid: int | None) -> None:
        self._rowcount = rowcount
        self._lastrowid = lastrowid

    @classmethod
    def from_cursor(cls, result: CursorResult) -> SAExecResult:
        try:
            lastrowid = result.lastrowid
        except (AttributeError, NotImplementedError):
            lastrowid = None
        return cls(result.rowcount, lastrowid)

    def rows_affected(self) -> int:
        if self._rowcount is None or self._rowcount < 0:
            raise NotSupportedError("driver did not report rows affected")
        return self._rowcount

    def last_insert_id(self) -> int:
        if self._lastrowid is None:
            raise NotSupportedError("driver did not report a generated id")
        return self._lastrowid

    def __repr__(self) -> str:
        return f"SAExecResult(rowcount={self._rowcount}, lastrowid={self._lastrowid})"


def _execute(conn: Connection, query: str, args: Sequence[Any]) -> SAExecResult:
    stmt, params = bind_params(query, args)
    return SAExecResult.from_cursor(conn.execute(stmt, params))


def _fetch_one(conn: Connection, dest: Any, query: str, args: Sequence[Any]) -> None:
    stmt, params = bind_params(query, args)
    result = conn.execute(stmt, params)
    columns = list(result.keys())
    scan_one(dest, columns, result.first())


def _fetch_all(conn: Connection, dest: Any, query: str, args: Sequence[Any]) -> None:
    stmt, params = bind_params(query, args)
    result = conn.execute(stmt, params)
    columns = list(result.keys())
    scan_all(dest, columns, result.fetchall())


class SATransaction:
    """An open transaction on one pooled connection.

    ``commit()`` and ``rollback()`` both close the connection, returning it
    to the pool, whether or not they succeed.
    """

    def __init__(self, conn: Connection, trans: RootTransaction) -> None:
        self._conn = conn
        self._trans = trans

    def execute(self, query: str, args: Sequence[Any] = ()) -> SAExecResult:
        return _execute(self._conn, query, args)

    def fetch_one(self, dest: Any, query: str, args: Sequence[Any] = ()) -> None:
        _fetch_one(self._conn, dest, query, args)

    def fetch_all(self, dest: Any, query: str, args: Sequence[Any] = ()) -> None:
        _fetch_all(self._conn, dest, query, args)

    def commit(self) -> None:
        try:
            self._trans.commit()
        finally:
            self._conn.close()

    def rollback(self) -> None:
        try:
            self._trans.rollback()
        finally:
            self._conn.close()

    @property
    def connection(self) -> Connection:
        return self._conn


class SADatabase:
    """``Database`` capability backed by a SQLAlchemy ``Engine``.

    Statements issued outside a transaction run in their own
    ``engine.begin()`` block and are committed immediately.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def from_url(cls, url: str, **engine_options: Any) -> SADatabase:
        return cls(create_sa_engine(url, **engine_options))

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def backend(self) -> str:
        return self._engine.dialect.name

    def execute(self, query: str, args: Sequence[Any] = ()) -> SAExecResult:
        with self._engine.begin() as conn:
            return _execute(conn, query, args)

    def fetch_one(self, dest: Any, query: str, args: Sequence[Any] = ()) -> None:
        with self._engine.connect() as conn:
            _fetch_one(conn, dest, query, args)

    def fetch_all(self, dest: Any, query: str, args: Sequence[Any] = ()) -> None:
        with self._engine.connect() as conn:
            _fetch_all(conn, dest, query, args)

    def begin(self) -> SATransaction:
        conn = self._engine.connect()
        try:
            trans = conn.begin()
        except Exception:
            conn.close()
            raise
        return SATransaction(conn, trans)

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self._engine.dispose()

    def __repr__(self) -> str:
        return f"SADatabase({self._engine.url!r})"


__all__ = [
    "create_sa_engine",
    "bind_params",
    "SAExecResult",
    "SATransaction",
    "SADatabase",
]
