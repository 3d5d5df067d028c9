"""Diagnostic messages printed to standard output, unless silenced."""

from __future__ import annotations

import threading

_enabled = threading.Event()
_enabled.set()


def disable() -> None:
    """Silence all further diagnostic messages."""
    _enabled.clear()


def info(message: str) -> None:
    """Print a diagnostic message."""
    if _enabled.is_set():
        print(f"::: {message}")