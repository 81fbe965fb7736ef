"""
sqlchain — fluent, short-circuiting database operation chains.

Express a unit of database work as one expression; the first failure stops
every later step, rolls back the open transaction, and is returned once by
``err()``.

Example:
    >>> from sqlchain import SqlChain
    >>> factory = SqlChain.open("memory")
    >>> factory.new_chain().exec("CREATE TABLE t (id INTEGER)").err() is None
    True
"""

from sqlchain.chain import Chain
from sqlchain.connection import ConnectionInfo, create_database
from sqlchain.errors import (
    ChainError,
    CommitError,
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    FetchError,
    MetadataUnavailableError,
    NoRowsError,
    NotSupportedError,
    RollbackError,
    ScanError,
    StatementError,
    TransactionBeginError,
)
from sqlchain.factory import SqlChain
from sqlchain.policy import ErrorPolicy, StructlogErrorLogger
from sqlchain.refs import Ref
from sqlchain.settings import ChainSettings

__version__ = "0.1.0"

__all__ = [
    "Chain",
    "SqlChain",
    "Ref",
    "ErrorPolicy",
    "StructlogErrorLogger",
    "ChainSettings",
    "ConnectionInfo",
    "create_database",
    "ErrorCategory",
    "ChainError",
    "CommitError",
    "ConfigError",
    "DatabaseConnectionError",
    "FetchError",
    "MetadataUnavailableError",
    "NoRowsError",
    "NotSupportedError",
    "RollbackError",
    "ScanError",
    "StatementError",
    "TransactionBeginError",
]
