"""Formatting language: parser and renderer."""

from .parser import (
    Formatted,
    Formatting,
    FormattingError,
    SubFormatting,
    Text,
    Variable,
    parse_formatting,
)
from .renderer import DEBUG_FORMAT, format_generated, render

__all__ = [
    "Formatted",
    "Formatting",
    "FormattingError",
    "SubFormatting",
    "Text",
    "Variable",
    "parse_formatting",
    "DEBUG_FORMAT",
    "format_generated",
    "render",
]
