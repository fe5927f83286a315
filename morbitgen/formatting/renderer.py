"""Formatting renderer.

Applies a parsed Formatting to a generated map to produce text.
Pure computation with no randomness and no I/O.
"""

import json

from ..generation.requirements import Generated, meets_requirement
from .parser import Formatted, Formatting, SubFormatting, Text, Variable

# Reserved format name that dumps the generated map instead of rendering
DEBUG_FORMAT = "json"


def _apply_casing(variable: str, value: str) -> str:
    """Match the value's casing to how the variable was written.

    ``HEAD`` uppercases the value, ``Head`` capitalizes its first character,
    ``head`` leaves it alone.
    """
    if variable.upper() == variable:
        return value.upper()
    if value and variable[:1].isupper():
        return value[0].upper() + value[1:]
    return value


def _render_node(node: SubFormatting, generated: Generated) -> str:
    if isinstance(node, Text):
        return node.text
    if isinstance(node, Variable):
        value = generated.get(node.name.lower(), "")
        return _apply_casing(node.name, value)
    if isinstance(node, Formatted):
        return render(node.formatting, generated)
    raise TypeError(f"Unknown formatting node: {type(node)}")


def _normalize_whitespace(text: str) -> str:
    """Collapse blank lines and repeated spaces, and drop the space before '.'."""
    for splitter in ("\n", " "):
        text = splitter.join(
            segment.strip() for segment in text.split(splitter) if segment
        )
    return text.replace(" .", ".")


def render(formatting: Formatting, generated: Generated) -> str:
    """Render a Formatting against generated values.

    The formatting's own requirement is checked with no denial context; when
    it does not hold the result is empty.
    """
    if not meets_requirement(formatting.requirement, generated, {}):
        return ""

    parts = (_render_node(node, generated) for node in formatting.contents)
    output = "".join(part for part in parts if part)
    return _normalize_whitespace(output)


def format_generated(template, generated: Generated, name: str) -> str:
    """Render generated values with the template's formatting ``name``.

    ``name`` is looked up in the template's formatting table; when absent it
    is parsed as a literal format string. The reserved name ``json`` returns
    a JSON dump of the generated map instead.

    Raises:
        FormattingError: If the format string cannot be parsed
    """
    if name == DEBUG_FORMAT:
        return json.dumps(generated, indent=2, sort_keys=True)
    return render(template.get_formatting(name), generated)
