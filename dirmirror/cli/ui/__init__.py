# dirmirror/cli/ui/__init__.py
"""
CLI UI components.

Usage:
    from dirmirror.cli.ui import ui

    ui.success("Done!")
    ui.error("Something failed")
"""

from __future__ import annotations

from .console import console, err_console
from .output import OutputMixin
from .progress import ProgressMixin


class UI(OutputMixin, ProgressMixin):
    """Unified UI helpers."""

    pass


# Singleton instance
ui = UI()

__all__ = [
    "ui",
    "UI",
    "console",
    "err_console",
]
