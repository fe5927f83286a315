"""Requirement checking and preset resolution.

``add_requirements`` is a greedy, randomized propagation pass, not a solver:
multi-possibility requirements are deferred while others are pending, then
forced one random possibility at a time. A committed value is never undone
within a run, and a requirement nothing can satisfy is reported and dropped.
"""

import logging
import random
from typing import Iterable

from ..core.models import (
    ANY_VALUE,
    Attribute,
    ChooseGenerator,
    Generator,
    NothingGenerator,
    Requirement,
    ReuseGenerator,
    SameGenerator,
)
from .diagnostics import Diagnostics

logger = logging.getLogger(__name__)

Generated = dict[str, str]
Denied = dict[str, list[str]]
Attributes = dict[str, Attribute]

DEFAULT_MAX_REFERENCE_DEPTH = 32


def meets_requirement(
    requirement: Requirement, generated: Generated, denied: Denied
) -> bool:
    """Whether any possibility of the requirement currently holds.

    A negated possibility on a key that is not generated yet only holds when
    its value is ``*`` or has already been denied for that key. Otherwise it
    cannot be told yet and counts as unmet.
    """
    matches = not requirement.possibilities
    for key, value, negated in requirement.possibilities:
        if key in generated:
            matches |= negated ^ (value == ANY_VALUE or generated[key] == value)
        elif negated:
            if value == ANY_VALUE:
                matches = True
            else:
                matches |= value in denied.get(key, ())
    return matches


def meets_all(
    requirements: Iterable[Requirement], generated: Generated, denied: Denied
) -> bool:
    """AND over a list of requirements."""
    return all(meets_requirement(r, generated, denied) for r in requirements)


def add_requirements(
    requires: Iterable[Requirement],
    generated: Generated,
    denied: Denied,
    attributes: Attributes,
    rng: random.Random,
    diagnostics: Diagnostics | None = None,
    max_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
) -> None:
    """Force requirements into ``generated``/``denied``.

    Args:
        requires: Requirements to satisfy (popped last-first)
        generated: Values generated so far, updated in place
        denied: Values ruled out per key, updated in place
        attributes: Template attribute table, for pulling in the
            requirements of a forced value
        rng: Random number generator
        diagnostics: Sink for requirements that could not be satisfied
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    pending = list(requires)
    delayed: list[Requirement] = []

    while pending or delayed:
        requirement = pending.pop() if pending else delayed.pop()
        if meets_requirement(requirement, generated, denied):
            continue

        # Let the others resolve first, this one may come true on its own
        if len(requirement.possibilities) > 1 and pending:
            delayed.append(requirement)
            continue

        possibilities = list(requirement.possibilities)
        resolved = False
        while possibilities:
            key, value, negated = possibilities.pop(rng.randrange(len(possibilities)))
            if negated and generated.get(key) != value:
                denied.setdefault(key, []).append(value)
                resolved = True
                break
            if key not in generated:
                attribute = attributes.get(key)
                if attribute is not None:
                    pending.extend(
                        get_requirements(attribute, value, attributes, max_depth=max_depth)
                    )
                generated[key] = value
                resolved = True
                break

        if not resolved:
            diagnostics.unresolved_requirement(requirement)


def get_requirements(
    attribute: Attribute,
    value: str,
    attributes: Attributes,
    depth: int = 0,
    max_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
) -> list[Requirement]:
    """Requirements implied by ``attribute`` taking ``value``."""
    requirements = list(attribute.requires)
    requirements.extend(
        generator_requirements(attribute.generator, value, attributes, depth, max_depth)
    )
    return requirements


def generator_requirements(
    generator: Generator,
    value: str,
    attributes: Attributes,
    depth: int = 0,
    max_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
) -> list[Requirement]:
    if depth > max_depth:
        logger.debug("Reference depth exceeded resolving requirements for '%s'", value)
        return []

    if isinstance(generator, ChooseGenerator):
        option = generator.options.get(value)
        if option is not None:
            return get_requirements(option, value, attributes, depth + 1, max_depth)
        for key in sorted(generator.options):
            option = generator.options[key]
            if contains(option.generator, value, attributes, depth + 1, max_depth):
                return get_requirements(option, value, attributes, depth + 1, max_depth)
        return []
    if isinstance(generator, ReuseGenerator):
        target = attributes.get(generator.attribute)
        if target is None:
            return []
        return generator_requirements(
            target.generator, value, attributes, depth + 1, max_depth
        )
    if isinstance(generator, SameGenerator):
        return [Requirement.of(generator.attribute, value)]
    return []


def contains(
    generator: Generator,
    value: str,
    attributes: Attributes,
    depth: int = 0,
    max_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
) -> bool:
    """Whether ``generator`` can ever produce ``value``."""
    if depth > max_depth:
        return False

    if isinstance(generator, ChooseGenerator):
        option = generator.options.get(value)
        if option is not None:
            if isinstance(option.generator, NothingGenerator):
                return True
            return contains(option.generator, value, attributes, depth + 1, max_depth)
        return any(
            contains(generator.options[key].generator, value, attributes, depth + 1, max_depth)
            for key in sorted(generator.options)
        )
    if isinstance(generator, (ReuseGenerator, SameGenerator)):
        target = attributes.get(generator.attribute)
        if target is None:
            return False
        return contains(target.generator, value, attributes, depth + 1, max_depth)
    return False
