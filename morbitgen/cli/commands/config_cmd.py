"""Config command for viewing and managing morbitgen configuration."""

import typer

from ..app import app, console
from ...config import get_config, reset_config, CONFIG_FILE


VALID_KEYS = {
    "generation.max_reference_depth",
    "generation.seed",
    "output.default_format",
    "output.templates_dir",
}

INT_FIELDS = {"max_reference_depth", "seed"}


@app.command("config")
def config_command(
    action: str = typer.Argument(
        ...,
        help="Action: show, set, reset",
    ),
    key: str | None = typer.Argument(
        None,
        help="Config key (e.g. generation.seed, output.default_format)",
    ),
    value: str | None = typer.Argument(
        None,
        help="Value to set",
    ),
):
    """View or modify morbitgen configuration.

    Examples:
        morbitgen config show
        morbitgen config set generation.seed 42
        morbitgen config set output.default_format short
        morbitgen config reset
    """
    if action == "show":
        _show_config()
    elif action == "set":
        if not key or value is None:
            console.print("[red]Usage:[/red] morbitgen config set <key> <value>")
            console.print()
            console.print("Available keys:")
            for k in sorted(VALID_KEYS):
                console.print(f"  {k}")
            raise typer.Exit(1)
        _set_config(key, value)
    elif action == "reset":
        _reset_config()
    else:
        console.print(f"[red]Unknown action:[/red] {action}")
        console.print("Valid actions: show, set, reset")
        raise typer.Exit(1)


def _show_config():
    """Display current resolved configuration."""
    config = get_config()

    console.print()
    console.print("[bold]Morbitgen Configuration[/bold]")
    console.print("─" * 40)

    console.print()
    console.print("[bold cyan]Generation[/bold cyan]")
    console.print(f"  max_reference_depth = {config.generation.max_reference_depth}")
    seed = config.generation.seed
    console.print(f"  seed                = {seed if seed is not None else '[dim](random)[/dim]'}")

    console.print()
    console.print("[bold cyan]Output[/bold cyan]")
    console.print(f"  default_format      = {config.output.default_format}")
    templates_dir = config.output.templates_dir or "[dim](bundled only)[/dim]"
    console.print(f"  templates_dir       = {templates_dir}")

    console.print()
    if CONFIG_FILE.exists():
        console.print(f"Config file: {CONFIG_FILE}")
    else:
        console.print(f"Config file: [dim]not created yet[/dim] ({CONFIG_FILE})")
    console.print()


def _set_config(key: str, value: str):
    """Set a config value and save."""
    if key not in VALID_KEYS:
        console.print(f"[red]Unknown key:[/red] {key}")
        console.print()
        console.print("Available keys:")
        for k in sorted(VALID_KEYS):
            console.print(f"  {k}")
        raise typer.Exit(1)

    config = get_config()
    zone, field_name = key.split(".", 1)
    target = config.generation if zone == "generation" else config.output

    if field_name in INT_FIELDS:
        try:
            setattr(target, field_name, int(value))
        except ValueError:
            console.print(f"[red]Invalid integer value:[/red] {value}")
            raise typer.Exit(1)
    else:
        setattr(target, field_name, value)

    config.save()
    reset_config()  # Clear cached singleton so next get_config() reloads

    console.print(f"[green]✓[/green] Set {key} = {value}")
    console.print(f"  Saved to {CONFIG_FILE}")


def _reset_config():
    """Reset config to defaults."""
    if CONFIG_FILE.exists():
        CONFIG_FILE.unlink()
        reset_config()
        console.print("[green]✓[/green] Config reset to defaults")
        console.print(f"  Removed {CONFIG_FILE}")
    else:
        console.print("Config already at defaults (no config file exists)")
