# tests/conftest.py

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio

from focus_desk.tasks.task_store import TodoStore

from .fakes import FakeBackingStore, group_row, task_row


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="focus-test",
        log_level="DEBUG",
        log_to_file=False,
        data_dir=tmp_path / "data",
        db_path=tmp_path / "data" / "todos.sqlite3",
        default_group_color="#123456",
    )


@pytest.fixture()
def seeded_rows() -> list[dict]:
    """
    1
    |- 2
    |  `- 4
    `- 3
    5 (due 2024-06-01)
    6 (due 2024-06-02)
    """
    return [
        task_row(1, "plan trip"),
        task_row(2, "book flights", parent_id=1),
        task_row(3, "pack", parent_id=1),
        task_row(4, "compare prices", parent_id=2),
        task_row(5, "dentist", due_date="2024-06-01"),
        task_row(6, "taxes", due_date="2024-06-02"),
    ]


@pytest.fixture()
def backend(seeded_rows: list[dict]) -> FakeBackingStore:
    return FakeBackingStore(
        task_rows=seeded_rows,
        group_rows=[group_row(1, "Work", 0), group_row(2, "Home", 1), group_row(3, "Study", 2)],
    )


@pytest_asyncio.fixture()
async def store(backend: FakeBackingStore) -> AsyncIterator[TodoStore]:
    s = TodoStore(backend)
    await s.initialize()
    yield s
    s.close()
