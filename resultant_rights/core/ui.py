"""Rich-based terminal output helpers."""

from __future__ import annotations

import json
from typing import Any, List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text


class RightsUI:
    """Wrap the Rich consoles to provide consistent output.

    Results go to ``console`` (stdout); errors go to ``err_console`` (stderr).
    """

    def __init__(self, *, console: Optional[Console] = None, err_console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def info(self, message: str) -> None:
        self.console.print(Text(message, style="green"), soft_wrap=True)

    def line(self, message: str) -> None:
        self.console.print(Text(message), soft_wrap=True)

    def error(self, message: str) -> None:
        self.err_console.print(Text(message, style="bold red"), soft_wrap=True)

    def print_json(self, payload: Any) -> None:
        self.console.print_json(json.dumps(payload, ensure_ascii=False))

    def table(self, title: str, columns: List[str], rows: List[List[str]]) -> Table:
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*(Text(cell) for cell in row))
        return table


__all__ = ["RightsUI"]
