"""Shared fixtures: keep every test away from the user's real config."""

import pytest

import morbitgen.config as config_module
from morbitgen.cli.commands import config_cmd
from morbitgen.registry import TemplateRegistry

_ENV_VARS = (
    "MORBITGEN_MAX_REFERENCE_DEPTH",
    "MORBITGEN_SEED",
    "MORBITGEN_DEFAULT_FORMAT",
    "MORBITGEN_TEMPLATES_DIR",
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    config_file = config_dir / "config.json"
    monkeypatch.setattr(config_module, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_file)
    monkeypatch.setattr(config_cmd, "CONFIG_FILE", config_file)
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    config_module.reset_config()
    yield config_file
    config_module.reset_config()


@pytest.fixture(scope="session")
def registry():
    return TemplateRegistry.bundled()


@pytest.fixture
def base(registry):
    return registry.get("base")


@pytest.fixture
def obj(registry):
    return registry.get("obj")
