"""Configuration management for morbitgen.

Two config sections:
- generation: reference depth bound and default seed for the engine
- output: default format name and an extra template directory for the CLI

Config resolution order (highest priority first):
1. Programmatic (MorbitgenConfig constructed in code)
2. Environment variables (MORBITGEN_SEED, MORBITGEN_DEFAULT_FORMAT, etc.)
3. Config file (~/.config/morbitgen/config.json, managed by `morbitgen config`)
4. Hardcoded defaults
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any


logger = logging.getLogger(__name__)


# =============================================================================
# Config file location
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "morbitgen"
CONFIG_FILE = CONFIG_DIR / "config.json"


# =============================================================================
# Config dataclasses
# =============================================================================


@dataclass
class GenerationConfig:
    """Engine settings.

    - max_reference_depth: how many Reuse/Same hops are followed before a
      chain is treated as a cycle
    - seed: default seed for CLI runs (None = random)
    """

    max_reference_depth: int = 32
    seed: int | None = None


@dataclass
class OutputConfig:
    """CLI output settings."""

    default_format: str = "full"
    templates_dir: str = ""  # empty = bundled templates only


@dataclass
class MorbitgenConfig:
    """Top-level morbitgen configuration.

    Construct programmatically for package use, or load from config file for CLI use.

    Examples:
        # Package use: no files needed
        config = MorbitgenConfig(generation=GenerationConfig(max_reference_depth=8))

        # CLI use: loads from ~/.config/morbitgen/config.json
        config = MorbitgenConfig.load()
    """

    generation: GenerationConfig = field(default_factory=GenerationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def load(cls) -> "MorbitgenConfig":
        """Load config from file + env vars.

        Priority: env var values > config.json values > defaults.
        """
        config = cls()

        # Layer 1: Load from config file if it exists
        if CONFIG_FILE.exists():
            try:
                with open(CONFIG_FILE) as f:
                    data = json.load(f)
                _apply_dict(config, data)
            except (json.JSONDecodeError, OSError, ValueError, TypeError) as exc:
                logger.warning("Failed to load config from %s: %s", CONFIG_FILE, exc)

        # Layer 2: Env var overrides
        if val := os.environ.get("MORBITGEN_MAX_REFERENCE_DEPTH"):
            try:
                config.generation.max_reference_depth = int(val)
            except ValueError:
                logger.warning("Invalid MORBITGEN_MAX_REFERENCE_DEPTH=%r, ignoring", val)
        if val := os.environ.get("MORBITGEN_SEED"):
            try:
                config.generation.seed = int(val)
            except ValueError:
                logger.warning("Invalid MORBITGEN_SEED=%r, ignoring", val)
        if val := os.environ.get("MORBITGEN_DEFAULT_FORMAT"):
            config.output.default_format = val
        if val := os.environ.get("MORBITGEN_TEMPLATES_DIR"):
            config.output.templates_dir = val

        return config

    def save(self) -> None:
        """Save config to ~/.config/morbitgen/config.json."""
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for display."""
        return {
            "generation": asdict(self.generation),
            "output": asdict(self.output),
        }

    @property
    def templates_path(self) -> Path | None:
        """Extra template directory, if configured."""
        if not self.output.templates_dir:
            return None
        return Path(self.output.templates_dir).expanduser()


# =============================================================================
# Config dict application
# =============================================================================

_INT_FIELDS = {"max_reference_depth", "seed"}


def _apply_dict(config: MorbitgenConfig, data: dict) -> None:
    """Apply a dict of values onto a MorbitgenConfig."""
    for section_name in ("generation", "output"):
        section = data.get(section_name)
        if not isinstance(section, dict):
            continue
        target = getattr(config, section_name)
        for k, v in section.items():
            if not hasattr(target, k):
                continue
            if k in _INT_FIELDS and v is not None:
                v = int(v)
            setattr(target, k, v)


# =============================================================================
# Global config singleton
# =============================================================================

_config: MorbitgenConfig | None = None


def get_config() -> MorbitgenConfig:
    """Get the global MorbitgenConfig instance.

    First call loads from file + env vars. Subsequent calls return cached instance.
    Use configure() to replace the global config programmatically.
    """
    global _config
    if _config is None:
        _config = MorbitgenConfig.load()
    return _config


def configure(config: MorbitgenConfig) -> None:
    """Set the global MorbitgenConfig programmatically.

    Use this when morbitgen is used as a package:
        from morbitgen.config import configure, MorbitgenConfig, GenerationConfig
        configure(MorbitgenConfig(generation=GenerationConfig(max_reference_depth=8)))
    """
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global config (forces reload on next get_config())."""
    global _config
    _config = None
