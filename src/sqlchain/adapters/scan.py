"""Row scanning — copy query rows into caller-supplied destinations.

``fetch_one`` destinations:

==========================  =================================================
Destination                 Result
==========================  =================================================
``Ref``                     scalar for a single-column row, else ``dict``
mutable mapping             ``dest.update(row)``
any other object            ``setattr(dest, column, value)`` per column
==========================  =================================================

``fetch_all`` destinations are a ``Ref`` (set to a list) or a mutable
sequence (extended).  Rows are scalars when the query has one column and
dicts otherwise.
"""

from __future__ import annotations

from collections.abc import Iterable, MutableMapping, MutableSequence, Sequence
from typing import Any

from sqlchain.errors import NoRowsError, ScanError
from sqlchain.refs import Ref


def row_value(columns: Sequence[str], row: Sequence[Any]) -> Any:
    """Single-column rows collapse to their value; others become dicts."""
    if len(columns) == 1:
        return row[0]
    return dict(zip(columns, row, strict=False))


def scan_one(dest: Any, columns: Sequence[str], row: Sequence[Any] | None) -> None:
    """Write *row* into *dest*; ``None`` means the query matched nothing."""
    if row is None:
        raise NoRowsError("no rows in result set")

    if isinstance(dest, Ref):
        dest.value = row_value(columns, row)
        return

    if isinstance(dest, MutableMapping):
        dest.update(zip(columns, row, strict=False))
        return

    if isinstance(dest, type) or isinstance(dest, (str, bytes, Sequence)):
        raise ScanError(f"cannot scan a row into {type(dest).__name__}")

    missing = [column for column in columns if not hasattr(dest, column)]
    if missing:
        raise ScanError(
            f"missing destination name {missing[0]!r} in {type(dest).__name__}"
        )

    for column, value in zip(columns, row, strict=False):
        setattr(dest, column, value)


def scan_all(dest: Any, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    """Write every row of *rows* into *dest*."""
    if isinstance(dest, Ref):
        dest.value = [row_value(columns, row) for row in rows]
        return

    if isinstance(dest, MutableSequence):
        dest.extend(row_value(columns, row) for row in rows)
        return

    raise ScanError(f"cannot scan rows into {type(dest).__name__}; pass a list or Ref")


__all__ = ["row_value", "scan_one", "scan_all"]
