# src/focus_desk/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Decides what reaches stderr while the REPL is in use.

    Application records pass, except the storage layer, which only shows
    warnings and errors (schema checks and migrations are logged at INFO).
    Captured `warnings` and records from other libraries show from ERROR up.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("focus_desk."):
            if name.startswith("focus_desk.storage."):
                return record.levelno >= logging.WARNING
            return True

        if name == "py.warnings":
            return record.levelno >= logging.ERROR

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path | None = ".local/focus_desk",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Install the root handlers for the process.

    stderr gets the filtered console stream; `log_dir/focus_desk.log` gets
    everything from `file_level` up. Pass log_dir=None for console only.
    Handlers installed earlier are replaced, so repeated calls are harmless,
    but records emitted before the first call are lost.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / "focus_desk.log"), encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    # warnings.warn() ends up under the "py.warnings" logger.
    logging.captureWarnings(True)
