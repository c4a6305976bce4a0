"""
Command-line interface for the imagerunner package.

This module provides the main CLI entry point of the image builder.
"""

from .main import main_cli, run

__all__ = [
    "main_cli",
    "run",
]
