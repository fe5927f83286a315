"""Validate command for template documents."""

import typer

from ...core.models import (
    ChooseGenerator,
    ReuseGenerator,
    SameGenerator,
    Template,
    TemplateError,
)
from ...formatting import FormattingError
from ..app import app, console, get_json_mode
from ..utils import Output, ExitCode, resolve_template


def _reference_warnings(template: Template) -> list[tuple[str, str]]:
    """Names in order or in Reuse/Same generators that have no attribute."""
    warnings = []
    for name in template.resolved_order():
        if name not in template.attributes:
            warnings.append((name, f"'{name}' is in order but has no attribute"))

    def visit(owner: str, generator) -> None:
        if isinstance(generator, ChooseGenerator):
            for option in generator.options.values():
                visit(owner, option.generator)
        elif isinstance(generator, (ReuseGenerator, SameGenerator)):
            if generator.attribute not in template.attributes:
                warnings.append(
                    (owner, f"'{owner}' refers to unknown attribute '{generator.attribute}'")
                )

    for name, attribute in template.attributes.items():
        visit(name, attribute.generator)
    return warnings


@app.command("validate")
def validate_command(
    template: str = typer.Argument(
        ..., help="Bundled template name or template file path"
    ),
    parent: str | None = typer.Option(
        None, "--parent", "-p", help="Parent template name or path to inherit from"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Treat warnings as errors"
    ),
):
    """
    Validate a template: document shape, formatting strings and references.

    EXIT CODES:
        0 = Valid
        1 = Invalid (or warnings with --strict)
        3 = File not found

    Examples:
        morbitgen validate obj
        morbitgen validate my_template.yaml --parent base --strict
    """
    out = Output(console=console, json_mode=get_json_mode())

    try:
        loaded = resolve_template(template, parent)
    except FileNotFoundError as e:
        out.error(str(e), exit_code=ExitCode.FILE_NOT_FOUND)
        raise typer.Exit(out.finish())
    except TemplateError as e:
        out.error(str(e))
        raise typer.Exit(out.finish())

    errors = 0
    for name in sorted(loaded.formatting):
        try:
            loaded.get_formatting(name)
        except FormattingError as e:
            out.error(f"Formatting '{name}': {e}")
            errors += 1

    warnings = _reference_warnings(loaded)
    for attribute, message in warnings:
        out.warning(message, attribute=attribute)

    if strict and warnings and not errors:
        out.error(
            f"{len(warnings)} warning(s) in strict mode",
            suggestion="Add the missing attributes or remove the references",
        )

    out.set_data("attributes", len(loaded.attributes))
    out.set_data("formatting", sorted(loaded.formatting))
    if not errors and not (strict and warnings):
        out.success(
            f"Template '{template}' is valid "
            f"({len(loaded.attributes)} attributes, {len(loaded.formatting)} formats)"
        )
    raise typer.Exit(out.finish())
