"""Caller-owned output holders.

Chain operations return the chain itself, so values they produce
(``last_insert_id``, ``rows_affected``, a single-column ``get_one``) are
written into a ``Ref`` the caller passes in::

    new_id = Ref[int]()
    chain.exec("INSERT INTO products (name) VALUES (?)", "lamp").last_insert_id(new_id)
    print(new_id.value)
"""

from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")

_UNSET = object()


class Ref(Generic[T]):
    """Mutable single-value holder used as an operation destination."""

    __slots__ = ("_value",)

    def __init__(self, value: T | object = _UNSET) -> None:
        self._value = value

    @property
    def is_set(self) -> bool:
        return self._value is not _UNSET

    @property
    def value(self) -> T:
        if self._value is _UNSET:
            raise LookupError("Ref has not been set")
        return self._value  # type: ignore[return-value]

    @value.setter
    def value(self, value: T) -> None:
        self._value = value

    def get(self, default: T | None = None) -> T | None:
        return self._value if self._value is not _UNSET else default  # type: ignore[return-value]

    def __repr__(self) -> str:
        if self._value is _UNSET:
            return "Ref(<unset>)"
        return f"Ref({self._value!r})"


__all__ = ["Ref"]
