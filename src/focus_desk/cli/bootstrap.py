# src/focus_desk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite backend and the TodoStore into AppState,
- loads the mirror and tears it down again on shutdown.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..storage.sqlite_backend import SQLiteBackingStore
from ..tasks.task_models import DEFAULT_GROUP_COLOR
from ..tasks.task_store import TodoStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    backend = SQLiteBackingStore(settings.db_path)
    todos = TodoStore(
        backend,
        default_group_color=getattr(settings, "default_group_color", DEFAULT_GROUP_COLOR),
    )
    return AppState(settings=settings, backend=backend, todos=todos)


async def start_state(state: AppState) -> None:
    """Load groups and tasks into the mirror (idempotent)."""
    await state.todos.initialize()
    logger.info(
        "Mirror ready: %d tasks, %d groups",
        state.todos.index.count(),
        len(state.todos.group_registry),
    )


def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.todos.close()
    except Exception:
        logger.exception("TodoStore close failed.")

    try:
        close = getattr(state.backend, "close", None)
        if close is not None:
            close()
    except Exception:
        logger.debug("Backend close failed.", exc_info=True)
