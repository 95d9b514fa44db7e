# src/focus_desk/core/errors.py

"""
Error hierarchy shared by the store, the backends and the connectors.

A missing task/group id is NOT an error: mutations return False/None for it.
"""

from __future__ import annotations

from typing import Any


class FocusDeskError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{self.message} ({extra})"


class PersistenceError(FocusDeskError):
    """
    The backing store rejected a statement.

    Raised after the in-memory mirror has been rolled back.
    """

    def __init__(
        self,
        message: str,
        *,
        statement: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.statement = statement


class ValidationError(FocusDeskError):
    """Input that cannot be applied at all (e.g. a reorder that is not a permutation)."""
