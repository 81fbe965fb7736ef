"""Connection factory — build a ``Database`` capability from a URL string.

Supported URL forms
-------------------
==========================  ==========================================  ====================
Form                        Example                                     Backend
==========================  ==========================================  ====================
``memory``                  ``memory`` or ``:memory:`` or ``None``       SQLite RAM
``sqlite``                  ``sqlite:///path/to/file.db``                SQLite file
``(file path)``             ``./data/my.db`` or ``/tmp/app.db``          SQLite file
``postgresql``              ``postgresql://user:pw@host:port/db``        PostgreSQL (psycopg)
``postgresql+driver``       ``postgresql+psycopg://…``                   PostgreSQL
``(other SA URL)``          ``mysql+pymysql://…``                        as given
==========================  ==========================================  ====================

Usage
-----
::

    from sqlchain.connection import create_database

    database, info = create_database("sqlite:///orders.db")
    print(info)
    # ConnectionInfo(backend='sqlite', persistent=True, path='/abs/orders.db')

``create_database()`` returns ``(SADatabase, ConnectionInfo)`` so callers can
branch on the backend they actually got.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from sqlchain.adapters.sqlalchemy import SADatabase, create_sa_engine
from sqlchain.errors import ConfigError, DatabaseConnectionError
from sqlchain.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectionInfo:
    """Metadata about a created database."""

    backend: str
    """Backend identifier: ``"sqlite"``, ``"postgresql"``, etc."""

    persistent: bool
    """Whether data survives process exit."""

    url: str
    """The SQLAlchemy URL the engine was created from."""

    resolved_path: str | None = None
    """For file-based SQLite, the resolved absolute path."""

    def __repr__(self) -> str:
        parts = [f"backend={self.backend!r}", f"persistent={self.persistent}"]
        if self.resolved_path:
            parts.append(f"path={self.resolved_path!r}")
        else:
            parts.append(f"url={self.safe_url!r}")
        return f"ConnectionInfo({', '.join(parts)})"

    @property
    def safe_url(self) -> str:
        """``url`` with any password masked, for logs and reprs."""
        return make_url(self.url).render_as_string(hide_password=True)

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    @property
    def is_postgres(self) -> bool:
        return self.backend == "postgresql"


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into (scheme, target).

    Returns
    -------
    tuple[str, str]
        (scheme, target) where scheme is one of ``"memory"``, ``"sqlite"``,
        ``"file"``, ``"postgresql"`` or ``"url"`` (any other SQLAlchemy URL,
        passed through untouched).
    """
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    if db.startswith("sqlite:///"):
        path = db[len("sqlite:///"):]
        if not path or path == ":memory:":
            return "memory", ":memory:"
        return "sqlite", path

    if db.startswith("sqlite://"):
        path = db[len("sqlite://"):]
        if not path or path == ":memory:":
            return "memory", ":memory:"
        return "sqlite", path

    if db.startswith(("postgresql://", "postgres://")):
        # Bare scheme defaults to the psycopg (v3) driver
        return "postgresql", "postgresql+psycopg://" + db.split("://", 1)[1]

    if db.startswith(("postgresql+", "postgres+")):
        scheme, rest = db.split("://", 1)
        driver = scheme.split("+", 1)[1]
        return "postgresql", f"postgresql+{driver}://{rest}"

    if "://" in db:
        return "url", db

    return "file", db


def create_database(
    db: str | None = None,
    *,
    data_dir: str | None = None,
    ping: bool = False,
    **engine_options: Any,
) -> tuple[SADatabase, ConnectionInfo]:
    """Create a ``Database`` capability from a URL, path, or keyword.

    Parameters
    ----------
    db:
        ``None`` / ``"memory"`` for in-memory SQLite, a file path, a
        ``sqlite:///`` URL, a ``postgresql://`` URL, or any SQLAlchemy URL.
    data_dir:
        Resolve relative SQLite paths within this directory.
    ping:
        Run ``SELECT 1`` before returning so an unreachable server fails here
        instead of at the first chain operation.
    **engine_options:
        Forwarded to :func:`~sqlchain.adapters.sqlalchemy.create_sa_engine`
        (``echo``, ``pool_size``, ``max_overflow``, ``pool_timeout``, …).

    Raises
    ------
    ConfigError
        The URL cannot be parsed or names an unknown dialect/driver.
    DatabaseConnectionError
        ``ping=True`` and the database could not be reached.
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        url = "sqlite:///:memory:"
        info = ConnectionInfo(backend="sqlite", persistent=False, url=url)

    elif scheme in ("sqlite", "file"):
        path = Path(target)
        if data_dir and not path.is_absolute():
            path = Path(data_dir) / path
        path.parent.mkdir(parents=True, exist_ok=True)
        resolved = str(path.resolve())
        url = f"sqlite:///{resolved}"
        info = ConnectionInfo(
            backend="sqlite", persistent=True, url=url, resolved_path=resolved
        )

    elif scheme == "postgresql":
        url = target
        info = ConnectionInfo(backend="postgresql", persistent=True, url=url)

    else:
        url = target
        info = ConnectionInfo(backend=url.split("://", 1)[0].split("+", 1)[0], persistent=True, url=url)

    try:
        engine = create_sa_engine(url, **engine_options)
    except (ArgumentError, ImportError) as e:
        raise ConfigError(f"cannot create engine for {url!r}: {e}", cause=e) from e

    database = SADatabase(engine)

    if ping:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            engine.dispose()
            raise DatabaseConnectionError(
                f"cannot reach {info.backend} database: {e}", cause=e
            ).with_context(backend=info.backend) from e

    logger.debug("database_created", backend=info.backend, persistent=info.persistent)
    return database, info


__all__ = ["ConnectionInfo", "create_database"]
