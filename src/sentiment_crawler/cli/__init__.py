"""Command line interface for the sentiment crawler."""

from .main import cli, main

__all__ = ["cli", "main"]
