"""CLI entry point for geiger-audit."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="geiger-audit",
    help="Geiger Audit - unsafe usage in Rust dependency graphs",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import the command to register it
from .audit import main as _main_callback  # noqa: F401, E402


def main() -> None:
    app()


__all__ = ["app", "console", "main", "__version__"]
