"""Generation engine: requirement resolution and weighted choice."""

from .core import (
    GenerationBatch,
    always,
    generate,
    generate_attribute,
    generate_many,
    run_generator,
)
from .diagnostics import DiagnosticEvent, DiagnosticKind, Diagnostics
from .requirements import (
    DEFAULT_MAX_REFERENCE_DEPTH,
    add_requirements,
    contains,
    get_requirements,
    meets_all,
    meets_requirement,
)

__all__ = [
    "GenerationBatch",
    "always",
    "generate",
    "generate_attribute",
    "generate_many",
    "run_generator",
    "DiagnosticEvent",
    "DiagnosticKind",
    "Diagnostics",
    "DEFAULT_MAX_REFERENCE_DEPTH",
    "add_requirements",
    "contains",
    "get_requirements",
    "meets_all",
    "meets_requirement",
]
