"""Requirement predicates over generated attribute values.

A Requirement is an OR of possibilities. Each possibility names an
attribute key, a value (``*`` for "any value") and whether it is negated.

String grammar::

    possibility ("|" possibility)*
    possibility := ["!"]key [":" value]

Examples:
    "flavor:spicy"            flavor must be spicy
    "eye shape"               eye shape must have some value
    "!eye shape:no|pupil"     eye shape is not "no", or pupil has a value
"""

from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, model_serializer, model_validator


ANY_VALUE = "*"


class RequirementError(ValueError):
    """Raised when a requirement string cannot be parsed."""

    pass


class Possibility(NamedTuple):
    key: str
    value: str = ANY_VALUE
    negated: bool = False


def _parse_possibility(segment: str, source: str) -> Possibility:
    parts = segment.split(":")
    if len(parts) > 2:
        raise RequirementError(
            f"Invalid requirement {source!r}: segment {segment!r} has more than one ':'"
        )

    key = parts[0].strip()
    value = parts[1].strip() if len(parts) == 2 else ANY_VALUE

    negated = key.startswith("!")
    if negated:
        key = key[1:].strip()

    if not key:
        raise RequirementError(
            f"Invalid requirement {source!r}: segment {segment!r} has no key"
        )
    return Possibility(key, value, negated)


class Requirement(BaseModel):
    """OR-combined list of (key, value, negated) possibilities.

    Validates from its string form and serializes back to the canonical
    string, so it can sit directly in template documents.
    """

    model_config = ConfigDict(frozen=True)

    possibilities: tuple[Possibility, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"possibilities": cls._parse_possibilities(data)}
        return data

    @model_serializer(mode="plain")
    def _to_string(self) -> str:
        return str(self)

    @staticmethod
    def _parse_possibilities(text: str) -> tuple[Possibility, ...]:
        if not text.strip():
            return ()
        return tuple(_parse_possibility(segment, text) for segment in text.split("|"))

    @classmethod
    def parse(cls, text: str) -> "Requirement":
        """Parse a requirement string.

        Raises:
            RequirementError: If a segment has an empty key or extra ':'.
        """
        return cls(possibilities=cls._parse_possibilities(text))

    @classmethod
    def of(cls, key: str, value: str = ANY_VALUE, negated: bool = False) -> "Requirement":
        """Build a single-possibility requirement."""
        return cls(possibilities=(Possibility(key, value, negated),))

    def is_empty(self) -> bool:
        return not self.possibilities

    def __str__(self) -> str:
        return "|".join(
            f"{'!' if negated else ''}{key}:{value}"
            for key, value, negated in self.possibilities
        )

    def __repr__(self) -> str:
        return f"Requirement({str(self)!r})"


def coerce_requirement(value: "Requirement | str") -> Requirement:
    """Accept either a parsed Requirement or its string form."""
    if isinstance(value, Requirement):
        return value
    return Requirement.parse(value)
