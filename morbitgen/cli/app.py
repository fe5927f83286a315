"""Core CLI app definition and global state."""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

app = typer.Typer(
    name="morbitgen",
    help="Generate and render attributes from morbitgen templates.",
    no_args_is_help=True,
)

console = Console()

# Global state for JSON mode (set by callback)
_json_mode = False


def get_json_mode() -> bool:
    """Get current JSON mode state."""
    return _json_mode


def setup_logging(verbose: bool = False) -> None:
    """Route morbitgen logs to stderr so stdout stays clean for output."""
    level = logging.DEBUG if verbose else logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        from .. import __version__

        print(f"morbitgen {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output machine-readable JSON instead of human-friendly text",
            is_eager=True,
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
):
    """morbitgen: procedural attribute generator.

    Use --json for machine-readable output suitable for scripting.
    """
    global _json_mode
    _json_mode = json_output
    setup_logging(verbose)


# Import commands to register them with the app
from .commands import (  # noqa: E402, F401
    generate,
    inspect,
    validate,
    config_cmd,
)
