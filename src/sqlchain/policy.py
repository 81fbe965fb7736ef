"""Error policy — how a chain converts and reports its errors.

An ``ErrorPolicy`` is a frozen pair of callables configured once on the
factory and copied by reference into every chain it creates:

* ``converter(error) -> error`` — applied by ``Chain.err()``; identity by default.
* ``logger(error, message, *args)`` — side-effect reporting; no-op by default.

``StructlogErrorLogger`` is the stock logger for applications that want chain
failures in their structured logs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlchain.errors import ChainError
from sqlchain.logging import get_logger
from sqlchain.protocols import ErrorConverter, ErrorLogger


def identity_converter(error: Exception) -> Exception:
    return error


def noop_logger(error: Exception, message: str, *args: Any) -> None:
    return None


class StructlogErrorLogger:
    """Error logger that emits one ``error``-level structlog event per call.

    ``message`` is %-formatted with ``args`` when args are given, matching the
    printf-style call sites of ``Chain.log_err``.
    """

    def __init__(self, name: str = "sqlchain", **bound: Any) -> None:
        self._logger = get_logger(name).bind(**bound) if bound else get_logger(name)

    def __call__(self, error: Exception, message: str, *args: Any) -> None:
        if args:
            try:
                message = message % args
            except (TypeError, ValueError):
                message = f"{message} {args!r}"

        fields: dict[str, Any] = {"error": str(error), "error_type": type(error).__name__}
        if isinstance(error, ChainError):
            fields["error_detail"] = error.to_dict()
        self._logger.error(message, **fields)


@dataclass(frozen=True)
class ErrorPolicy:
    """Converter/logger pair shared by every chain of one factory."""

    converter: ErrorConverter = field(default=identity_converter)
    logger: ErrorLogger = field(default=noop_logger)

    @classmethod
    def create(
        cls,
        converter: ErrorConverter | None = None,
        logger: ErrorLogger | None = None,
    ) -> ErrorPolicy:
        """Build a policy, substituting defaults for ``None``."""
        return cls(
            converter=identity_converter if converter is None else converter,
            logger=noop_logger if logger is None else logger,
        )


DEFAULT_POLICY = ErrorPolicy()


__all__ = [
    "ErrorPolicy",
    "DEFAULT_POLICY",
    "StructlogErrorLogger",
    "identity_converter",
    "noop_logger",
]
