# dirmirror/logging/__init__.py
"""Logging helpers for dirmirror."""

from .logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
