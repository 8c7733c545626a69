"""Command-line surface: argument parsing and plain-text summaries."""

from sipmeta.ui.cli import CLIError, build_parser, run_cli
from sipmeta.ui.render import CLIRenderer, create_renderer

__all__ = ["CLIError", "CLIRenderer", "build_parser", "create_renderer", "run_cli"]
