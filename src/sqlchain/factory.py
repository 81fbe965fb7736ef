"""Chain factory — one per database, many chains per factory.

``SqlChain`` owns the reference to the shared ``Database`` capability and the
``ErrorPolicy``.  Each ``new_chain()`` call returns an independent ``Chain``
that snapshots the policy current at that moment; reconfiguring the factory
later never affects chains already handed out.

Usage::

    from sqlchain import SqlChain, Ref

    factory = SqlChain.open("sqlite:///shop.db")
    factory.configure(error_converter=to_http_error)

    views = Ref[int]()
    err = (
        factory.new_chain()
        .begin()
        .exec("UPDATE products SET views = views + 1 WHERE id = ?", 7)
        .rows_affected(views)
        .commit()
        .err()
    )
"""

from __future__ import annotations

from typing import Any

from sqlchain.chain import Chain
from sqlchain.connection import ConnectionInfo, create_database
from sqlchain.policy import DEFAULT_POLICY, ErrorPolicy, StructlogErrorLogger
from sqlchain.protocols import Database, ErrorConverter, ErrorLogger
from sqlchain.settings import ChainSettings


class SqlChain:
    """Factory for ``Chain`` instances bound to one database."""

    def __init__(
        self,
        database: Database,
        *,
        error_converter: ErrorConverter | None = None,
        error_logger: ErrorLogger | None = None,
        info: ConnectionInfo | None = None,
    ) -> None:
        self._database = database
        self._policy = DEFAULT_POLICY
        self._info = info
        if error_converter is not None or error_logger is not None:
            self.configure(error_converter=error_converter, error_logger=error_logger)

    @classmethod
    def open(cls, url: str | None = None, **engine_options: Any) -> SqlChain:
        """Create the database from *url* and wrap it in a factory."""
        database, info = create_database(url, **engine_options)
        return cls(database, info=info)

    @classmethod
    def from_settings(cls, settings: ChainSettings | None = None) -> SqlChain:
        """Build a factory from ``ChainSettings`` (environment by default)."""
        settings = settings or ChainSettings()
        factory = cls.open(settings.database_url, **settings.engine_options())
        if settings.log_errors:
            factory.configure(error_logger=StructlogErrorLogger())
        return factory

    @property
    def database(self) -> Database:
        return self._database

    @property
    def policy(self) -> ErrorPolicy:
        return self._policy

    @property
    def info(self) -> ConnectionInfo | None:
        return self._info

    def configure(
        self,
        error_converter: ErrorConverter | None = None,
        error_logger: ErrorLogger | None = None,
    ) -> SqlChain:
        """Replace the error policy used by chains created from now on.

        Either callable may be ``None``: identity conversion / no logging.
        """
        self._policy = ErrorPolicy.create(converter=error_converter, logger=error_logger)
        return self

    def new_chain(self) -> Chain:
        """Return a fresh chain; no database call is made."""
        return Chain(self._database, self._policy)

    context = new_chain

    def close(self) -> None:
        """Release the database's resources if it supports closing."""
        close = getattr(self._database, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> SqlChain:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SqlChain({self._info or self._database!r})"


__all__ = ["SqlChain"]
