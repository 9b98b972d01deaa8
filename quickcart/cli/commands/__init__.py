"""CLI commands for quickcart."""

from . import add, sites

__all__ = ["add", "sites"]
