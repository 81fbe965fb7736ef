"""
Shared pytest fixtures and configuration for sqlchain tests.

This module provides:
- structlog reset between tests, so captured logs never leak across tests
- a scripted recording database and the factory bound to it
- a file-backed SQLite factory for integration tests
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from sqlchain import SqlChain
from tests._support.scripted import RecordingLogger, ScriptedDatabase


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Restore structlog defaults before and after each test."""
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def db() -> ScriptedDatabase:
    """Fresh recording database."""
    return ScriptedDatabase()


@pytest.fixture
def error_log() -> RecordingLogger:
    """Error logger that records its calls."""
    return RecordingLogger()


@pytest.fixture
def factory(db: ScriptedDatabase, error_log: RecordingLogger) -> SqlChain:
    """Factory over the scripted database with a recording error logger."""
    return SqlChain(db, error_logger=error_log)


@pytest.fixture
def sqlite_factory(tmp_path: Path) -> Generator[SqlChain, None, None]:
    """Factory over a file-backed SQLite database with a products schema."""
    factory = SqlChain.open(str(tmp_path / "shop.db"))
    err = (
        factory.new_chain()
        .exec(
            "CREATE TABLE products ("
            " id INTEGER PRIMARY KEY AUTOINCREMENT,"
            " name TEXT NOT NULL UNIQUE,"
            " views INTEGER NOT NULL DEFAULT 0)"
        )
        .exec(
            "CREATE TABLE product_viewers ("
            " user_id INTEGER NOT NULL,"
            " product_id INTEGER NOT NULL REFERENCES products(id))"
        )
        .err()
    )
    assert err is None
    yield factory
    factory.close()
