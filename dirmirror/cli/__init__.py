# dirmirror/cli/__init__.py
"""
Main mirror CLI module.

Provides the top-level `mirror` command.
"""

from dirmirror.cli.cli import app, main

__all__ = ["app", "main"]
