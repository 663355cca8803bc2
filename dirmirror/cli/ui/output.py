# dirmirror/cli/ui/output.py
"""
Output methods for CLI display.
"""

from __future__ import annotations

from rich.markup import escape

from .console import CHECK, CROSS, WARN, Panel, Table, console, err_console


class OutputMixin:
    """Mixin providing output methods for the UI class."""

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[green]{CHECK}[/green] {escape(msg)}")

    def error(self, msg: str) -> None:
        """Print an error message to stderr."""
        err_console.print(f"[red]{CROSS}[/red] {escape(msg)}")

    def warning(self, msg: str, detail: str = "") -> None:
        """Print a warning message to stderr."""
        detail_str = f" [dim]({escape(detail)})[/dim]" if detail else ""
        err_console.print(f"[yellow]{WARN}[/yellow] {escape(msg)}{detail_str}")

    def hint(self, msg: str) -> None:
        """Print a plain hint line to stderr."""
        err_console.print(escape(msg))

    def summary_panel(self, content: str, title: str = "", style: str = "green") -> None:
        """Print a summary panel (full-width, typically at end of command)."""
        console.print(Panel(escape(content), title=escape(title), border_style=style))

    def table(self, headers: list[str], rows: list[list[str]], title: str = "") -> None:
        """Print a table."""
        table = Table(title=title) if title else Table()
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(escape(str(c)) for c in row))
        console.print(table)
