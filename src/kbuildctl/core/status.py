"""
Colored status lines for the terminal, mirrored to the logger at debug level.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger("kbuildctl.status")


class StatusPrinter:
    """Prints [INFO]/[SUCCESS]/[WARNING]/[ERROR] lines."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def _emit(self, style: str, label: str, message: str) -> None:
        tag = escape(f"[{label}]")
        self.console.print(f"[{style}]{tag}[/{style}] {escape(message)}")
        logger.debug("%s %s", label, message)

    def info(self, message: str) -> None:
        self._emit("blue", "INFO", message)

    def success(self, message: str) -> None:
        self._emit("green", "SUCCESS", message)

    def warning(self, message: str) -> None:
        self._emit("bold yellow", "WARNING", message)

    def error(self, message: str) -> None:
        self._emit("red", "ERROR", message)

    def line(self, message: str = "") -> None:
        self.console.print(escape(message))
