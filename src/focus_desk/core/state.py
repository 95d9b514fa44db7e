# src/focus_desk/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.task_store import TodoStore
from .ports import BackingStore


@dataclass
class AppState:
    # Settings object (config.Settings in the app, SimpleNamespace in tests).
    settings: Any

    backend: BackingStore
    todos: TodoStore
