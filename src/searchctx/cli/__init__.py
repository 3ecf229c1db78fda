"""Command-line interface for inspecting the stored search context."""
from searchctx.cli.main import main

__all__ = ["main"]
