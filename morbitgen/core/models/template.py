"""Template models and document I/O for morbitgen.

A Template is a complete blueprint for generating one kind of thing: the
attribute definitions, the order they are generated in, a rename table used
when inheriting from a parent template, and named formatting strings.

This module contains:
- Chance: rarity tiers and their selection weights
- Generators: Choose, Reuse, Same, Nothing
- Attribute: generator plus chance override, requirements and replace flag
- Template: JSON/YAML I/O and parent inheritance (merge)
"""

import json
import re
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Union

import yaml
from pydantic import (
    BaseModel,
    Field,
    PrivateAttr,
    ValidationError,
    field_validator,
    model_serializer,
    model_validator,
)

from .requirement import Requirement


class TemplateError(Exception):
    """Raised when a template document cannot be loaded."""

    pass


# =============================================================================
# Chance
# =============================================================================


class Chance(str, Enum):
    NEVER = "Never"
    EXTREMELY_RARE = "ExtremelyRare"
    VERY_RARE = "VeryRare"
    RARE = "Rare"
    UNCOMMON = "Uncommon"
    STANDARD = "Standard"
    COMMON = "Common"
    VERY_COMMON = "VeryCommon"
    EXTREMELY_COMMON = "ExtremelyCommon"
    ALWAYS = "Always"

    @classmethod
    def parse(cls, value: "Chance | str") -> "Chance":
        """Resolve a tier name case-insensitively ("very rare", "VERY_RARE")."""
        if isinstance(value, Chance):
            return value
        token = re.sub(r"[\s_\-]+", "", str(value)).lower()
        for chance in cls:
            if chance.value.lower() == token:
                return chance
        raise ValueError(
            f"Unknown chance {value!r}. Expected one of: "
            + ", ".join(c.value for c in cls)
        )

    @property
    def rank(self) -> int:
        return _CHANCE_ORDER.index(self)

    @property
    def weight(self) -> int:
        """Relative selection weight. Never and Always are handled separately."""
        return CHANCE_WEIGHTS[self]


_CHANCE_ORDER = list(Chance)

CHANCE_WEIGHTS: dict[Chance, int] = {
    Chance.NEVER: 0,
    Chance.EXTREMELY_RARE: 1,
    Chance.VERY_RARE: 3,
    Chance.RARE: 9,
    Chance.UNCOMMON: 18,
    Chance.STANDARD: 30,
    Chance.COMMON: 45,
    Chance.VERY_COMMON: 60,
    Chance.EXTREMELY_COMMON: 100,
    Chance.ALWAYS: 0,
}


# =============================================================================
# Generators
# =============================================================================


class ChooseGenerator(BaseModel):
    """Choose one option by chance and requirements."""

    kind: Literal["choose"] = "choose"
    options: dict[str, "Attribute"] = Field(default_factory=dict)


class ReuseGenerator(BaseModel):
    """Generate with another attribute's generator."""

    kind: Literal["reuse"] = "reuse"
    attribute: str


class SameGenerator(BaseModel):
    """Copy another attribute's generated value."""

    kind: Literal["same"] = "same"
    attribute: str


class NothingGenerator(BaseModel):
    """Produce nothing. As a Choose option, the option name is the value."""

    kind: Literal["nothing"] = "nothing"


Generator = Annotated[
    Union[ChooseGenerator, ReuseGenerator, SameGenerator, NothingGenerator],
    Field(discriminator="kind"),
]


def next_generator_key(options: dict[str, Any]) -> str:
    """First unused synthetic option key: gen0, gen1, ..."""
    index = 0
    while f"gen{index}" in options:
        index += 1
    return f"gen{index}"


# =============================================================================
# Attribute
# =============================================================================

# Document keys that select the generator. "copy" is what Same serializes to.
_GENERATOR_KEYS = ("choose", "reuse", "copy", "same", "nothing")
_ATTRIBUTE_KEYS = set(_GENERATOR_KEYS) | {"replace", "chance", "requires"}


class Attribute(BaseModel):
    """A generator with an optional chance override and gating requirements.

    Validates from the template document shape::

        {"choose": {...}, "chance": "rare", "requires": ["flavor:spicy"]}

    and serializes back to it.
    """

    generator: Generator = Field(default_factory=NothingGenerator)
    # completely replace the parent attribute when inheriting
    replace: bool = False
    # replaces parent chances with this
    chance: Chance | None = None
    requires: list[Requirement] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_document(cls, data: Any) -> Any:
        if data is None:
            return {}
        if not isinstance(data, dict) or "generator" in data:
            return data

        unknown = sorted(set(data) - _ATTRIBUTE_KEYS)
        if unknown:
            raise ValueError(f"unknown attribute field(s): {', '.join(unknown)}")
        generator_keys = [key for key in _GENERATOR_KEYS if key in data]
        if len(generator_keys) > 1:
            raise ValueError(
                f"attribute has more than one generator: {', '.join(generator_keys)}"
            )

        result = {key: data[key] for key in ("replace", "chance", "requires") if key in data}
        if generator_keys:
            key = generator_keys[0]
            if key == "choose":
                result["generator"] = {"kind": "choose", "options": data[key] or {}}
            elif key == "reuse":
                result["generator"] = {"kind": "reuse", "attribute": data[key]}
            elif key in ("copy", "same"):
                result["generator"] = {"kind": "same", "attribute": data[key]}
            else:
                result["generator"] = {"kind": "nothing"}
        return result

    @field_validator("chance", mode="before")
    @classmethod
    def _parse_chance(cls, value: Any) -> Any:
        if value is None:
            return None
        return Chance.parse(value)

    @field_validator("requires", mode="before")
    @classmethod
    def _listify_requires(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (str, Requirement)):
            return [value]
        return value

    @model_serializer(mode="plain")
    def _to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {}
        generator = self.generator
        if isinstance(generator, ChooseGenerator):
            document["choose"] = {
                key: option.model_dump(mode="json")
                for key, option in generator.options.items()
            }
        elif isinstance(generator, ReuseGenerator):
            document["reuse"] = generator.attribute
        elif isinstance(generator, SameGenerator):
            document["copy"] = generator.attribute
        if self.replace:
            document["replace"] = True
        if self.chance is not None:
            document["chance"] = self.chance.value
        if self.requires:
            document["requires"] = [str(requirement) for requirement in self.requires]
        return document

    def merge(self, parent: "Attribute") -> "Attribute":
        """Merge a parent attribute into this one in place.

        - replace: the parent is discarded entirely
        - requires: parent requirements are appended
        - Choose x Choose: parent-only options are added (taking this
          attribute's chance override), shared options get the parent
          option's requirements unless they replace
        - Choose x other: the parent generator becomes a new option
        - Nothing x Nothing: nothing to do
        - anything else: both generators become options of a new Choose
        """
        if self.replace:
            return self

        parent = parent.model_copy(deep=True)
        self.requires.extend(parent.requires)
        generator = self.generator
        parent_generator = parent.generator

        if isinstance(generator, ChooseGenerator) and isinstance(
            parent_generator, ChooseGenerator
        ):
            for key, parent_option in parent_generator.options.items():
                option = generator.options.get(key)
                if option is not None:
                    if not option.replace:
                        option.requires.extend(parent_option.requires)
                    continue
                if self.chance is not None:
                    parent_option.chance = self.chance
                generator.options[key] = parent_option
        elif isinstance(generator, ChooseGenerator):
            generator.options[next_generator_key(generator.options)] = Attribute(
                generator=parent_generator, chance=self.chance
            )
        elif isinstance(generator, NothingGenerator) and isinstance(
            parent_generator, NothingGenerator
        ):
            pass
        else:
            self.generator = ChooseGenerator(
                options={
                    "gen0": Attribute(generator=generator),
                    "gen1": Attribute(generator=parent_generator, chance=self.chance),
                }
            )
        return self

    def __iadd__(self, parent: "Attribute") -> "Attribute":
        return self.merge(parent)


ChooseGenerator.model_rebuild()
Attribute.model_rebuild()


# =============================================================================
# Template
# =============================================================================


class Template(BaseModel):
    """A complete blueprint: attributes, generation order, renames, formats."""

    order: list[str]
    attributes: dict[str, Attribute]
    rename: dict[str, str] = Field(default_factory=dict)
    formatting: dict[str, str] = Field(default_factory=dict)

    _formatting_cache: dict[str, Any] = PrivateAttr(default_factory=dict)

    # ── Loading ──

    @classmethod
    def from_dict(cls, data: Any, parent: "Template | None" = None) -> "Template":
        """Validate a template document, optionally inheriting from a parent.

        Raises:
            TemplateError: If the document is not a valid template.
        """
        try:
            template = cls.model_validate(data)
        except ValidationError as e:
            raise TemplateError(f"Invalid template: {e}") from e
        if parent is not None:
            template = template.inherit(parent)
        return template

    @classmethod
    def from_string(
        cls,
        text: str,
        parent: "Template | None" = None,
        fmt: Literal["json", "yaml"] = "json",
    ) -> "Template":
        """Load a template from a JSON (default) or YAML string."""
        try:
            data = json.loads(text) if fmt == "json" else yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise TemplateError(f"Unable to parse template {fmt}: {e}") from e
        return cls.from_dict(data, parent)

    @classmethod
    def from_file(cls, path: Path | str, parent: "Template | None" = None) -> "Template":
        """Load a template file. ``.yaml``/``.yml`` are YAML, anything else JSON."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise TemplateError(f"Unable to read template {path}: {e}") from e
        fmt = "yaml" if path.suffix.lower() in (".yaml", ".yml") else "json"
        return cls.from_string(text, parent, fmt=fmt)

    # ── Saving ──

    def to_document(self) -> dict[str, Any]:
        """Convert to the template document shape (defaults omitted)."""
        data = self.model_dump(mode="json")
        if not self.rename:
            data.pop("rename")
        if not self.formatting:
            data.pop("formatting")
        return data

    def to_json(self, path: Path | str | None = None) -> str:
        text = json.dumps(self.to_document(), indent=2)
        if path is not None:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text + "\n", encoding="utf-8")
        return text

    def to_yaml(self, path: Path | str) -> None:
        """Save template to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(
                self.to_document(),
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    # ── Inheritance ──

    def inherit(self, parent: "Template") -> "Template":
        """Return a new template combining this (child) template with a parent.

        The parent's order comes first, the child's rename entries win, and
        each parent attribute (renamed) is either added or merged into the
        child's attribute of the same name.
        """
        child = self.model_copy(deep=True)
        child.order = list(parent.order) + child.order
        child.rename = {**parent.rename, **child.rename}

        for name, parent_attribute in parent.attributes.items():
            name = child.rename.get(name, name)
            attribute = child.attributes.get(name)
            if attribute is None:
                child.attributes[name] = parent_attribute.model_copy(deep=True)
            else:
                attribute.merge(parent_attribute)

        child._formatting_cache = {}
        return child

    # ── Queries ──

    def resolved_order(self) -> list[str]:
        """Generation order with renames applied."""
        return [self.rename.get(name, name) for name in self.order]

    def get_attribute(self, name: str) -> Attribute | None:
        return self.attributes.get(name)

    def always(self, name: str, value: str) -> bool:
        """Whether generating ``name`` is guaranteed to produce ``value``."""
        from ...generation.core import always

        attribute = self.get_attribute(name)
        if attribute is None:
            return False
        return always(attribute.generator, value, self.attributes)

    # ── Generation and formatting ──

    def generate(self, presets=(), **kwargs) -> dict[str, str]:
        """Generate values for this template. See ``morbitgen.generation.generate``."""
        from ...generation.core import generate

        return generate(self, presets, **kwargs)

    def get_formatting(self, name: str):
        """Parse (once) and return the formatting named ``name``.

        Unknown names are parsed as literal format strings.
        """
        from ...formatting.parser import parse_formatting

        source = self.formatting.get(name, name)
        parsed = self._formatting_cache.get(source)
        if parsed is None:
            parsed = parse_formatting(source)
            self._formatting_cache[source] = parsed
        return parsed

    def format(self, generated: dict[str, str], name: str) -> str:
        """Render generated values with a named (or literal) formatting."""
        from ...formatting.renderer import format_generated

        return format_generated(self, generated, name)
