"""Weighted option selection for Choose generators.

Options are grouped into Chance tiers. A tier is drawn by weight, then an
option is drawn uniformly from that tier:

- Always: the first Always option short-circuits the whole selection
- Never: the option is never chosen
- no chance set: Standard
"""

import random

from ..core.models import Attribute, Chance


def group_by_chance(options: list[tuple[str, Attribute]]) -> dict[Chance, list[str]]:
    """Group eligible (name, option) pairs into chance tiers.

    Args:
        options: Options that passed requirement and denial filtering, in
            evaluation order

    Returns:
        Mapping of tier to option names. Empty if nothing can be chosen.
    """
    tiers: dict[Chance, list[str]] = {}
    for name, option in options:
        chance = option.chance or Chance.STANDARD
        if chance is Chance.ALWAYS:
            return {Chance.STANDARD: [name]}
        if chance is not Chance.NEVER:
            tiers.setdefault(chance, []).append(name)
    return tiers


def choose_from_tiers(tiers: dict[Chance, list[str]], rng: random.Random) -> str:
    """Draw a tier by weight, then an option uniformly within it."""
    ordered = sorted(tiers, key=lambda chance: chance.rank)
    tier = rng.choices(ordered, weights=[chance.weight for chance in ordered], k=1)[0]
    return rng.choice(tiers[tier])
