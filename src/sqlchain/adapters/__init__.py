"""Database capability adapters.

``sqlalchemy`` is the production adapter; ``scan`` holds the row-to-destination
rules every adapter shares.
"""

from sqlchain.adapters.scan import scan_all, scan_one
from sqlchain.adapters.sqlalchemy import (
    SADatabase,
    SAExecResult,
    SATransaction,
    bind_params,
    create_sa_engine,
)

__all__ = [
    "SADatabase",
    "SAExecResult",
    "SATransaction",
    "bind_params",
    "create_sa_engine",
    "scan_all",
    "scan_one",
]
