"""Settings loading from the optional YAML config file."""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import replace
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from bondctl.core.errors import ConfigError
from bondctl.core.model import Settings

LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


def _load_schema_validator() -> Any:
    schema_text = resources.files("bondctl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "bondctl/config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at root")
    return loaded


def load_settings(path: Path | None = None, **overrides: Any) -> Settings:
    """Build settings from defaults, the config file, then non-None overrides."""
    path = path or config_path()
    settings = Settings()

    if path.exists():
        doc = _read_yaml(path)
        try:
            _load_schema_validator().validate(doc)
        except ValidationError as exc:
            where = ".".join(str(p) for p in exc.path)
            where = f" ({where})" if where else ""
            raise ConfigError(f"Schema validation failed for {path}{where}: {exc.message}") from exc
        LOGGER.debug("Loaded config from %s", path)
        settings = replace(settings, **doc)
        if "timeout_s" in doc:
            settings = replace(settings, timeout_s=float(doc["timeout_s"]))

    given = {key: value for key, value in overrides.items() if value is not None}
    if given:
        settings = replace(settings, **given)
    if settings.backend not in ("bluetoothctl", "ble"):
        raise ConfigError(f"Unsupported backend '{settings.backend}'")
    if not math.isfinite(settings.timeout_s) or settings.timeout_s <= 0:
        raise ConfigError("timeout_s must be a finite number greater than zero")
    return settings
