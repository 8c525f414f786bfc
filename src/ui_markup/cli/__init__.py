"""Command-line interface module for ui-markup.

This module provides CLI tools to compile markup files into Python builder
expressions and to check markup files for errors.
"""

from .main import main

__all__ = ["main"]
