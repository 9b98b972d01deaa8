"""Command-line interface for quickcart."""

from .main import cli, main

__all__ = ["cli", "main"]
