"""Core generation loop for producing values from a Template.

The engine is a generic template interpreter - it doesn't know about
species or flavors, it just executes whatever template it's given:

1. Presets are forced into the generated/denied maps (add_requirements)
2. Attributes are generated in template order, each gated by its requires
3. Choose generators draw weighted options under the live constraints

The generated and denied maps belong to one run and are passed explicitly
through every call. The attribute table is read-only.
"""

import logging
import random
from datetime import datetime
from typing import Any, Iterable

from pydantic import BaseModel, Field

from ..core.models import (
    Attribute,
    Chance,
    ChooseGenerator,
    Generator,
    NothingGenerator,
    Requirement,
    ReuseGenerator,
    SameGenerator,
    Template,
    coerce_requirement,
)
from ..utils.callbacks import ItemProgressCallback
from .choice import choose_from_tiers, group_by_chance
from .diagnostics import Diagnostics, DiagnosticEvent
from .requirements import (
    DEFAULT_MAX_REFERENCE_DEPTH,
    Attributes,
    Denied,
    Generated,
    add_requirements,
    contains,
    meets_all,
)

logger = logging.getLogger(__name__)


class GenerationBatch(BaseModel):
    """Result of generating many values from one template."""

    results: list[dict[str, str]] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)
    diagnostics: list[DiagnosticEvent] = Field(default_factory=list)


def _resolve_max_depth(max_reference_depth: int | None) -> int:
    if max_reference_depth is not None:
        return max_reference_depth
    from ..config import get_config

    return get_config().generation.max_reference_depth


def generate(
    template: Template,
    presets: Iterable[Requirement | str] = (),
    *,
    rng: random.Random | None = None,
    seed: int | None = None,
    diagnostics: Diagnostics | None = None,
    max_reference_depth: int | None = None,
) -> Generated:
    """
    Generate one set of values from a Template.

    Args:
        template: The template to generate from
        presets: Requirements (or requirement strings) to force first
        rng: Random number generator; built from ``seed`` when omitted
        seed: Random seed for reproducibility (None = random)
        diagnostics: Sink for soft failures (unresolved presets, unknown names)
        max_reference_depth: Bound on Reuse/Same reference chains

    Returns:
        Mapping of attribute name to generated value

    Raises:
        RequirementError: If a preset string is malformed
    """
    if rng is None:
        rng = random.Random(seed)
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    max_depth = _resolve_max_depth(max_reference_depth)

    preset_requirements = [coerce_requirement(preset) for preset in presets]
    generated: Generated = {}
    denied: Denied = {}
    attributes = template.attributes

    add_requirements(
        preset_requirements,
        generated,
        denied,
        attributes,
        rng,
        diagnostics,
        max_depth=max_depth,
    )

    for name in template.resolved_order():
        attribute = attributes.get(name)
        if attribute is None:
            diagnostics.missing_attribute(name)
            continue
        generate_attribute(
            attribute, name, generated, denied, attributes, rng, diagnostics, max_depth
        )

    return generated


def generate_many(
    template: Template,
    presets: Iterable[Requirement | str] = (),
    count: int = 1,
    seed: int | None = None,
    on_progress: ItemProgressCallback | None = None,
    max_reference_depth: int | None = None,
) -> GenerationBatch:
    """
    Generate ``count`` independent value sets from one seeded RNG.

    Args:
        template: The template to generate from
        presets: Requirements applied to every run
        count: Number of runs
        seed: Random seed for reproducibility (None = random)
        on_progress: Optional callback(current, total) for progress updates

    Returns:
        GenerationBatch with per-run results, metadata and diagnostics
    """
    if seed is None:
        seed = random.randint(0, 2**31 - 1)
    rng = random.Random(seed)
    diagnostics = Diagnostics()
    preset_requirements = [coerce_requirement(preset) for preset in presets]

    results: list[Generated] = []
    for i in range(count):
        results.append(
            generate(
                template,
                preset_requirements,
                rng=rng,
                diagnostics=diagnostics,
                max_reference_depth=max_reference_depth,
            )
        )
        if on_progress:
            on_progress(i + 1, count)

    meta: dict[str, Any] = {
        "count": count,
        "seed": seed,
        "presets": [str(p) for p in preset_requirements],
        "generated_at": datetime.now().isoformat(),
    }
    return GenerationBatch(results=results, meta=meta, diagnostics=diagnostics.events)


def generate_attribute(
    attribute: Attribute,
    name: str,
    generated: Generated,
    denied: Denied,
    attributes: Attributes,
    rng: random.Random,
    diagnostics: Diagnostics,
    max_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
) -> None:
    """Generate ``name`` with ``attribute`` if all its requires hold."""
    if not meets_all(attribute.requires, generated, denied):
        return
    run_generator(
        attribute.generator, name, generated, denied, attributes, rng, diagnostics, 0, max_depth
    )


def run_generator(
    generator: Generator,
    name: str,
    generated: Generated,
    denied: Denied,
    attributes: Attributes,
    rng: random.Random,
    diagnostics: Diagnostics,
    depth: int = 0,
    max_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
) -> None:
    """Produce a value for ``name`` with ``generator``."""
    if depth > max_depth:
        diagnostics.reference_depth_exceeded(name, max_depth)
        return

    if isinstance(generator, ChooseGenerator):
        _run_choose(
            generator, name, generated, denied, attributes, rng, diagnostics, depth, max_depth
        )
    elif isinstance(generator, ReuseGenerator):
        target = attributes.get(generator.attribute)
        if target is None:
            diagnostics.missing_reference(name, generator.attribute)
            return
        run_generator(
            target.generator,
            name,
            generated,
            denied,
            attributes,
            rng,
            diagnostics,
            depth + 1,
            max_depth,
        )
    elif isinstance(generator, SameGenerator):
        # Only copies what is already there; order must put the target first
        if generator.attribute in generated:
            generated[name] = generated[generator.attribute]


def _run_choose(
    generator: ChooseGenerator,
    name: str,
    generated: Generated,
    denied: Denied,
    attributes: Attributes,
    rng: random.Random,
    diagnostics: Diagnostics,
    depth: int,
    max_depth: int,
) -> None:
    if name in generated:
        return

    denied_values = denied.get(name, ())
    eligible: list[tuple[str, Attribute]] = []
    for option_name in sorted(generator.options):
        option = generator.options[option_name]
        if option.requires and not meets_all(option.requires, generated, denied):
            continue
        if option_name in denied_values:
            continue
        eligible.append((option_name, option))

    tiers = group_by_chance(eligible)
    if not tiers:
        logger.debug("No eligible options for '%s'", name)
        return

    chosen = choose_from_tiers(tiers, rng)
    option_generator = generator.options[chosen].generator
    if isinstance(option_generator, NothingGenerator):
        generated[name] = chosen
    else:
        run_generator(
            option_generator,
            name,
            generated,
            denied,
            attributes,
            rng,
            diagnostics,
            depth + 1,
            max_depth,
        )


def always(
    generator: Generator,
    value: str,
    attributes: Attributes,
    depth: int = 0,
    max_depth: int = DEFAULT_MAX_REFERENCE_DEPTH,
) -> bool:
    """Whether ``generator`` is guaranteed to produce ``value``.

    An option is guaranteed when its chance is Always or it is the only
    option. Same is treated as guaranteed, it copies whatever is there.
    """
    if depth > max_depth:
        return False

    if isinstance(generator, ChooseGenerator):
        options = generator.options
        sole = len(options) == 1
        option = options.get(value)
        if option is not None:
            if isinstance(option.generator, NothingGenerator):
                return option.chance is Chance.ALWAYS or sole
            return always(option.generator, value, attributes, depth + 1, max_depth)
        for key in sorted(options):
            option = options[key]
            if (option.chance is Chance.ALWAYS or sole) and contains(
                option.generator, value, attributes, depth + 1, max_depth
            ):
                return always(option.generator, value, attributes, depth + 1, max_depth)
        return False
    if isinstance(generator, ReuseGenerator):
        target = attributes.get(generator.attribute)
        if target is None:
            return False
        return always(target.generator, value, attributes, depth + 1, max_depth)
    if isinstance(generator, SameGenerator):
        return True
    return False
