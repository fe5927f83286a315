"""Generate command for producing and rendering values from a template."""

import typer

from ...formatting import FormattingError
from ...core.models import RequirementError, TemplateError
from ...config import get_config
from ..app import app, console, get_json_mode
from ..utils import Output, ExitCode, resolve_template


@app.command("generate")
def generate_command(
    template: str = typer.Argument(
        ..., help="Bundled template name (e.g. obj) or template file path"
    ),
    parent: str | None = typer.Option(
        None, "--parent", "-p", help="Parent template name or path to inherit from"
    ),
    preset: list[str] = typer.Option(
        [],
        "--preset",
        "-r",
        help="Requirement to force, e.g. 'flavor:normal' (repeatable)",
    ),
    fmt: str | None = typer.Option(
        None,
        "--format",
        "-f",
        help="Formatting name or literal format string ('json' dumps raw values)",
    ),
    count: int = typer.Option(1, "--count", "-n", min=1, help="Number of results"),
    seed: int | None = typer.Option(
        None, "--seed", help="Random seed for reproducibility"
    ),
    show_generated: bool = typer.Option(
        False, "--show-generated", help="Also print the raw generated values"
    ),
):
    """
    Generate values from a template and render them.

    EXIT CODES:
        0 = Success
        1 = Invalid template, preset or format
        3 = Template not found

    Examples:
        morbitgen generate obj
        morbitgen generate obj -r flavor:normal -r "roll head casing color:yes"
        morbitgen generate base -n 5 --seed 42 -f short
        morbitgen generate my_template.json --parent base -f json
    """
    from ...generation import generate_many

    out = Output(console=console, json_mode=get_json_mode())
    config = get_config()

    try:
        loaded = resolve_template(template, parent)
    except FileNotFoundError as e:
        out.error(str(e), exit_code=ExitCode.FILE_NOT_FOUND)
        raise typer.Exit(out.finish())
    except TemplateError as e:
        out.error(str(e))
        raise typer.Exit(out.finish())

    format_name = fmt or config.output.default_format
    if seed is None:
        seed = config.generation.seed

    try:
        batch = generate_many(loaded, preset, count=count, seed=seed)
        rendered = [loaded.format(generated, format_name) for generated in batch.results]
    except RequirementError as e:
        out.error(f"Invalid preset: {e}")
        raise typer.Exit(out.finish())
    except FormattingError as e:
        out.error(
            f"Invalid format '{format_name}': {e}",
            suggestion="Use a formatting name from 'morbitgen inspect' or a valid format string",
        )
        raise typer.Exit(out.finish())

    for event in batch.diagnostics:
        out.warning(event.message, attribute=event.attribute)

    for i, (generated, text) in enumerate(zip(batch.results, rendered)):
        if count > 1:
            out.text(f"[{i + 1}]")
        out.text(text)
        if show_generated and format_name != "json":
            out.table(
                "Generated",
                ["Attribute", "Value"],
                [[name, value] for name, value in sorted(generated.items())],
            )
        if count > 1:
            out.blank()

    out.set_data("seed", batch.meta["seed"])
    out.set_data(
        "results",
        [
            {"generated": generated, "text": text}
            for generated, text in zip(batch.results, rendered)
        ],
    )
    raise typer.Exit(out.finish())
