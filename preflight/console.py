"""Colored status-line output shared by every preflight stage."""

from __future__ import annotations

import os
import sys
from typing import Iterable, Optional, TextIO

RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RESET = "\033[0m"

_PREFIXES = {
    "pass": ("OK", GREEN),
    "warn": ("WARN", YELLOW),
    "fail": ("FAIL", RED),
    "info": ("INFO", BLUE),
}


def color_supported(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class Console:
    """Print OK/WARN/FAIL/INFO lines, optionally colored."""

    def __init__(self, *, color: bool = True, stream: Optional[TextIO] = None) -> None:
        self.stream = stream
        self.color = color and color_supported(self._out)

    @property
    def _out(self) -> TextIO:
        return self.stream or sys.stdout

    def _paint(self, text: str, code: str) -> str:
        if not self.color:
            return text
        return f"{code}{text}{RESET}"

    def line(self, text: str = "") -> None:
        print(text, file=self._out, flush=True)

    def status(self, status: str, message: str, details: Iterable[str] = ()) -> None:
        label, code = _PREFIXES[status]
        self.line(f"{self._paint(label, code)}{' ' * (5 - len(label))}{message}")
        for detail in details:
            self.line(f"      {detail}")

    def ok(self, message: str) -> None:
        self.status("pass", message)

    def warn(self, message: str, details: Iterable[str] = ()) -> None:
        self.status("warn", message, details)

    def fail(self, message: str, details: Iterable[str] = ()) -> None:
        self.status("fail", message, details)

    def info(self, message: str) -> None:
        self.status("info", message)

    def banner(self, title: str) -> None:
        self.line()
        self.line(self._paint(title, BLUE))


__all__ = ["Console", "color_supported"]
