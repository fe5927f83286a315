"""morbitgen: rule-driven procedural attribute generator.

Load a template, generate values under its requirements, and render them
through the formatting language:

    from morbitgen import TemplateRegistry

    template = TemplateRegistry.bundled().get("obj")
    generated = template.generate(["flavor:normal"], seed=42)
    print(template.format(generated, "full"))
"""

__version__ = "0.1.0"

from .core.models import (
    Attribute,
    Chance,
    Requirement,
    RequirementError,
    Template,
    TemplateError,
)
from .formatting import FormattingError, parse_formatting, render
from .generation import Diagnostics, generate, generate_many, meets_requirement
from .registry import TemplateRegistry, generate_json

__all__ = [
    "__version__",
    "Attribute",
    "Chance",
    "Requirement",
    "RequirementError",
    "Template",
    "TemplateError",
    "FormattingError",
    "parse_formatting",
    "render",
    "Diagnostics",
    "generate",
    "generate_many",
    "meets_requirement",
    "TemplateRegistry",
    "generate_json",
]
