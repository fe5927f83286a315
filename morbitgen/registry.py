"""Named template registry and the JSON generation boundary.

``generate_json`` is the string-in/string-out entry point used by callers
that cannot hold Python objects: a template identifier plus a JSON list of
preset requirement strings in, a JSON object of generated values out.
Unknown identifiers produce the ``{species:unknown}`` sentinel instead of
an error.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path

from .core.models import Template, TemplateError

logger = logging.getLogger(__name__)

_ASSETS_DIR = Path(__file__).parent / "assets"

# Bundled templates and the parent each one inherits from
BUNDLED_TEMPLATES: dict[str, str | None] = {
    "base": None,
    "obj": "base",
}

UNKNOWN_TEMPLATE = "{species:unknown}"


class TemplateRegistry:
    """Maps template identifiers to loaded (and inherited) templates."""

    def __init__(self, templates: dict[str, Template] | None = None):
        self._templates: dict[str, Template] = dict(templates or {})

    def __contains__(self, name: str) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def names(self) -> list[str]:
        return sorted(self._templates)

    def get(self, name: str) -> Template | None:
        return self._templates.get(name)

    def register(self, name: str, template: Template) -> None:
        self._templates[name] = template

    def load(
        self, name: str, path: Path | str, parent: str | None = None
    ) -> Template:
        """Load a template file under ``name``, inheriting from a registered parent.

        Raises:
            TemplateError: If the file is invalid or the parent is not registered.
        """
        parent_template = None
        if parent is not None:
            parent_template = self._templates.get(parent)
            if parent_template is None:
                raise TemplateError(
                    f"Parent template '{parent}' is not registered (needed by '{name}')"
                )
        template = Template.from_file(path, parent_template)
        self._templates[name] = template
        logger.debug("Registered template '%s' from %s", name, path)
        return template

    def load_directory(self, directory: Path | str) -> list[str]:
        """Register every ``*.json``/``*.yaml``/``*.yml`` file in a directory by stem."""
        directory = Path(directory)
        loaded = []
        for path in sorted(directory.iterdir()):
            if path.suffix.lower() in (".json", ".yaml", ".yml"):
                self.load(path.stem, path)
                loaded.append(path.stem)
        return loaded

    @classmethod
    def bundled(cls) -> "TemplateRegistry":
        """Registry with the templates shipped in the package."""
        registry = cls()
        for name, parent in BUNDLED_TEMPLATES.items():
            registry.load(name, _ASSETS_DIR / f"{name}.json", parent)
        return registry


@lru_cache(maxsize=1)
def default_registry() -> TemplateRegistry:
    """Shared bundled registry. Templates are read-only after loading."""
    return TemplateRegistry.bundled()


def _parse_presets(presets_json: str) -> list[str]:
    try:
        presets = json.loads(presets_json)
    except json.JSONDecodeError as e:
        raise ValueError(f"Presets are not valid JSON: {e}") from e
    if not isinstance(presets, list) or not all(isinstance(p, str) for p in presets):
        raise ValueError("Presets must be a JSON list of requirement strings")
    return presets


def generate_json(
    template_id: str,
    presets_json: str,
    registry: TemplateRegistry | None = None,
    seed: int | None = None,
) -> str:
    """Generate from a registered template, JSON in and JSON out.

    Args:
        template_id: Registered template identifier (e.g. "obj")
        presets_json: JSON list of requirement strings, e.g. '["flavor:normal"]'
        registry: Registry to look in (default: bundled templates)
        seed: Random seed for reproducibility (None = random)

    Returns:
        JSON object of generated values, or ``{species:unknown}`` when the
        identifier is not registered

    Raises:
        ValueError: If the presets payload is malformed
    """
    registry = registry if registry is not None else default_registry()
    template = registry.get(template_id)
    if template is None:
        logger.warning("Unknown template '%s'", template_id)
        return UNKNOWN_TEMPLATE

    presets = _parse_presets(presets_json)
    return json.dumps(template.generate(presets, seed=seed))
