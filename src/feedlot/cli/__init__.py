"""CLI tools."""

from feedlot.cli.main import build_parser, cli, cli_main

__all__ = ["build_parser", "cli", "cli_main"]
