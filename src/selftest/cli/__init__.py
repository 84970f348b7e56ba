"""Command-line interface."""

from selftest.cli.commands import cli, main

__all__ = ["cli", "main"]
