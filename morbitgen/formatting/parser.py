"""Parser for the formatting language.

A format string is plain text with bracketed segments::

    They have a [head casing] head casing [!eye shape:no?with [eye shape] eyes].

- ``[name]`` is a variable, replaced by the generated value of ``name``
- ``[requirement?text]`` is a conditional block, rendered only when the
  requirement holds; its text may contain further brackets
- ``requirement?`` at the start of a whole format string gates all of it
- ``\\`` makes the next character literal
"""

from dataclasses import dataclass, field
from typing import Union

from ..core.models import Requirement, RequirementError


class FormattingError(ValueError):
    """Raised when a format string cannot be parsed."""

    pass


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Formatted:
    formatting: "Formatting"


SubFormatting = Union[Text, Variable, Formatted]


@dataclass(frozen=True)
class Formatting:
    """A parsed format string: a gating requirement and its contents."""

    requirement: Requirement = field(default_factory=Requirement)
    contents: tuple[SubFormatting, ...] = ()


def _parse_requirement(text: str, source: str) -> Requirement:
    # "[?text]" names the empty key, which is never generated
    if not text.strip():
        return Requirement.of("")
    try:
        return Requirement.parse(text)
    except RequirementError as e:
        raise FormattingError(f"Invalid requirement in format {source!r}: {e}") from e


def _has_condition(inner: str) -> bool:
    """Whether a bracket body holds an unescaped '?'."""
    escape = False
    for c in inner:
        if escape:
            escape = False
        elif c == "\\":
            escape = True
        elif c == "?":
            return True
    return False


def _unescape(text: str) -> str:
    chars: list[str] = []
    escape = False
    for c in text:
        if escape or c != "\\":
            chars.append(c)
            escape = False
        else:
            escape = True
    return "".join(chars)


def parse_formatting(source: str) -> Formatting:
    """Parse a format string into a Formatting tree.

    Raises:
        FormattingError: On unbalanced brackets or a malformed requirement.
    """
    requirement = Requirement()
    contents: list[SubFormatting] = []
    depth = 0
    current: list[str] = []
    escape = False

    for c in source:
        if escape:
            escape = False
            current.append(c)
            continue

        if c == "?" and depth == 0:
            requirement = _parse_requirement("".join(current), source)
            current = []
        elif c == "[":
            if depth == 0:
                contents.append(Text("".join(current)))
                current = []
            else:
                current.append(c)
            depth += 1
        elif c == "]":
            if depth == 0:
                raise FormattingError(f"Unmatched ']' in format {source!r}")
            depth -= 1
            if depth == 0:
                inner = "".join(current)
                if _has_condition(inner):
                    contents.append(Formatted(parse_formatting(inner)))
                else:
                    contents.append(Variable(_unescape(inner)))
                current = []
            else:
                current.append(c)
        elif c == "\\":
            escape = True
            # Nested blocks are re-parsed, so keep the escape for that pass
            if depth > 0:
                current.append(c)
        else:
            current.append(c)

    if depth != 0:
        raise FormattingError(f"Unterminated '[' in format {source!r}")

    contents.append(Text("".join(current)))
    return Formatting(requirement=requirement, contents=tuple(contents))
