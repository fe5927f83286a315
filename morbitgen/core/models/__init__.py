"""Pydantic models for morbitgen.

- requirement.py: Requirement predicates and their string grammar
- template.py: Chance tiers, generators, attributes, templates and I/O
"""

from .requirement import (
    ANY_VALUE,
    Possibility,
    Requirement,
    RequirementError,
    coerce_requirement,
)
from .template import (
    CHANCE_WEIGHTS,
    Attribute,
    Chance,
    ChooseGenerator,
    Generator,
    NothingGenerator,
    ReuseGenerator,
    SameGenerator,
    Template,
    TemplateError,
    next_generator_key,
)

__all__ = [
    "ANY_VALUE",
    "Possibility",
    "Requirement",
    "RequirementError",
    "coerce_requirement",
    "CHANCE_WEIGHTS",
    "Attribute",
    "Chance",
    "ChooseGenerator",
    "Generator",
    "NothingGenerator",
    "ReuseGenerator",
    "SameGenerator",
    "Template",
    "TemplateError",
    "next_generator_key",
]
