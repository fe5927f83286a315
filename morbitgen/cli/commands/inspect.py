"""Inspect command for showing a template's structure."""

import typer

from ...core.models import (
    Attribute,
    ChooseGenerator,
    ReuseGenerator,
    SameGenerator,
    TemplateError,
)
from ..app import app, console, get_json_mode
from ..utils import Output, ExitCode, resolve_template


def _describe(attribute: Attribute) -> tuple[str, str]:
    """Generator kind and a short detail column."""
    generator = attribute.generator
    if isinstance(generator, ChooseGenerator):
        return "choose", ", ".join(sorted(generator.options))
    if isinstance(generator, ReuseGenerator):
        return "reuse", generator.attribute
    if isinstance(generator, SameGenerator):
        return "copy", generator.attribute
    return "nothing", ""


@app.command("inspect")
def inspect_command(
    template: str = typer.Argument(
        ..., help="Bundled template name or template file path"
    ),
    parent: str | None = typer.Option(
        None, "--parent", "-p", help="Parent template name or path to inherit from"
    ),
):
    """
    Show a template's generation order, attributes and formatting names.

    Example:
        morbitgen inspect obj
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

    order = loaded.resolved_order()
    out.set_data("order", order)
    out.text("Order: " + " → ".join(order))
    out.blank()

    rows = []
    for name, attribute in loaded.attributes.items():
        kind, detail = _describe(attribute)
        rows.append(
            [
                name,
                kind,
                detail,
                attribute.chance.value if attribute.chance else "",
                ", ".join(str(r) for r in attribute.requires),
            ]
        )
    out.table(
        "Attributes",
        ["Name", "Kind", "Options", "Chance", "Requires"],
        rows,
    )

    if loaded.rename:
        out.table(
            "Rename",
            ["From", "To"],
            [[old, new] for old, new in loaded.rename.items()],
        )

    out.blank()
    formats = sorted(loaded.formatting)
    out.set_data("formatting", formats)
    out.text("Formatting: " + (", ".join(formats) if formats else "(none)"))
    raise typer.Exit(out.finish())
