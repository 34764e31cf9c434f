"""Short-lived messages shown to the shopper after an action."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Literal, Optional

from rich.console import Console
from rich.markup import escape

Level = Literal["success", "info", "warning", "error"]

_STYLES = {
    "success": "[bold green]✓[/bold green]",
    "info": "[cyan]i[/cyan]",
    "warning": "[yellow]![/yellow]",
    "error": "[bold red]✗[/bold red]",
}

HISTORY_LIMIT = 200


@dataclass
class Notification:
    level: Level
    message: str


class Notifier:
    """Collect notifications and echo them to a rich console (if any).

    Only the latest ``limit`` notifications are kept.
    """

    def __init__(self, console: Optional[Console] = None, limit: int = HISTORY_LIMIT) -> None:
        self.console = console
        self.messages: Deque[Notification] = deque(maxlen=limit)

    def notify(self, level: Level, message: str) -> None:
        self.messages.append(Notification(level, message))
        if self.console is not None:
            self.console.print(f"{_STYLES[level]} {escape(message)}")

    def success(self, message: str) -> None:
        self.notify("success", message)

    def info(self, message: str) -> None:
        self.notify("info", message)

    def warning(self, message: str) -> None:
        self.notify("warning", message)

    def error(self, message: str) -> None:
        self.notify("error", message)

    def last(self, level: Optional[Level] = None) -> Optional[Notification]:
        for note in reversed(self.messages):
            if level is None or note.level == level:
                return note
        return None
