"""CLI utilities for dual-mode output (human-friendly + machine-readable).

This module provides utilities for CLI commands to support both:
- Human mode (default): Rich formatting with colors and tables
- Machine mode (--json): Structured JSON output for scripts

Example:
    from ..cli.utils import Output, ExitCode

    @app.command()
    def my_command():
        out = Output(console=console, json_mode=get_json_mode())
        out.success("Loaded template", template="obj", attributes=12)
        out.table("Attributes", ["Name", "Kind"], [["flavor", "choose"]])
        return out.finish()
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, PrivateAttr, ConfigDict
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import get_config
from ..core.models import Template, TemplateError
from ..registry import TemplateRegistry


class ExitCode:
    """Standardized exit codes for CLI commands.

        0 = Success
        1 = Validation error (fix template/input first)
        3 = File not found
    """

    SUCCESS = 0
    VALIDATION_ERROR = 1
    FILE_NOT_FOUND = 3


class Output(BaseModel):
    """Dual-mode output handler for CLI commands.

    In human mode: Uses Rich for pretty terminal output with colors and formatting.
    In JSON mode: Collects structured data and outputs JSON at the end.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    console: Console
    json_mode: bool = False

    _data: dict[str, Any] = PrivateAttr()
    _exit_code: int = PrivateAttr(default=ExitCode.SUCCESS)

    def model_post_init(self, __context: Any) -> None:
        # Ensure _data is a fresh dict for each instance
        self._data = {
            "status": "success",
            "warnings": [],
            "errors": [],
        }

    def success(self, message: str, **data: Any) -> None:
        """Output a success message with optional data."""
        if self.json_mode:
            self._data.update(data)
        else:
            self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str, *, attribute: str | None = None) -> None:
        """Output a warning message."""
        if self.json_mode:
            warning_obj: dict[str, Any] = {"message": message}
            if attribute:
                warning_obj["attribute"] = attribute
            self._data["warnings"].append(warning_obj)
        else:
            self.console.print(f"[yellow]⚠[/yellow] {escape(message)}")

    def error(
        self,
        message: str,
        *,
        suggestion: str | None = None,
        exit_code: int = ExitCode.VALIDATION_ERROR,
    ) -> None:
        """Output an error message and set exit code."""
        self._exit_code = exit_code
        self._data["status"] = "error"

        if self.json_mode:
            error_obj: dict[str, Any] = {"message": message}
            if suggestion:
                error_obj["suggestion"] = suggestion
            self._data["errors"].append(error_obj)
        else:
            self.console.print(f"[red]✗[/red] {escape(message)}")
            if suggestion:
                self.console.print(f"  [dim]→ {suggestion}[/dim]")

    def text(self, message: str) -> None:
        """Output plain text (human mode only)."""
        if not self.json_mode:
            self.console.print(message, markup=False, highlight=False)

    def blank(self) -> None:
        """Output a blank line (human mode only)."""
        if not self.json_mode:
            self.console.print()

    def table(
        self,
        title: str,
        columns: list[str],
        rows: list[list[str]],
        *,
        data_key: str | None = None,
    ) -> None:
        """Output a formatted table.

        Args:
            title: Table title
            columns: Column headers
            rows: Table rows (list of lists)
            data_key: Key to use in JSON output (defaults to snake_case of title)
        """
        key = data_key or title.lower().replace(" ", "_")

        if self.json_mode:
            self._data[key] = [dict(zip(columns, row)) for row in rows]
        else:
            table = Table(title=title, show_header=True, header_style="bold")
            for col in columns:
                table.add_column(col)
            for row in rows:
                table.add_row(*row)
            self.console.print(table)

    def set_data(self, key: str, value: Any) -> None:
        """Set arbitrary data in JSON output."""
        self._data[key] = value

    def finish(self) -> int:
        """Finalize output and return exit code.

        In JSON mode, prints the accumulated data as JSON to stdout.
        Returns the exit code that should be passed to sys.exit().
        """
        if self.json_mode:
            self._data["exit_code"] = self._exit_code
            print(json.dumps(self._data, indent=2, default=str))

        return self._exit_code


def build_registry() -> TemplateRegistry:
    """Bundled templates plus any in the configured templates directory."""
    registry = TemplateRegistry.bundled()
    templates_path = get_config().templates_path
    if templates_path is not None and templates_path.is_dir():
        registry.load_directory(templates_path)
    return registry


def resolve_template(reference: str, parent: str | None = None) -> Template:
    """Resolve a template by registered name or file path.

    Raises:
        TemplateError: If the template or its parent cannot be loaded.
        FileNotFoundError: If a path reference does not exist.
    """
    registry = build_registry()
    parent_template = resolve_template(parent) if parent is not None else None

    template = registry.get(reference)
    if template is not None:
        if parent_template is not None:
            raise TemplateError(
                f"'{reference}' is a registered template; --parent only applies to files"
            )
        return template

    path = Path(reference)
    if not path.exists():
        raise FileNotFoundError(
            f"No template named '{reference}' and no such file. "
            f"Known templates: {', '.join(registry.names())}"
        )
    return Template.from_file(path, parent_template)
