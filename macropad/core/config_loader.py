"""Configuration file loading: parse YAML/JSON, check the envelope, resolve."""

from __future__ import annotations

import json
import logging
import os
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from macropad.core.config import Config, resolve_config
from macropad.core.errors import ConfigLoadError, InvalidConfigError

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "config.yml"


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise InvalidConfigError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "macropad" / DEFAULT_CONFIG_NAME


def _load_schema_validator() -> Any:
    schema_text = resources.files("macropad.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _parse_yaml(text: str, source: Path) -> Any:
    try:
        return yaml.load(text, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML in {source}: {exc}") from exc


def _parse_json(text: str, source: Path) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigLoadError(f"Invalid JSON in {source}: {exc}") from exc


_PARSERS = {
    ".yml": _parse_yaml,
    ".yaml": _parse_yaml,
    ".json": _parse_json,
}


def parse_document(text: str, source: Path) -> dict[str, Any]:
    parser = _PARSERS.get(source.suffix.lower())
    if parser is None:
        allowed = ", ".join(sorted(_PARSERS))
        raise ConfigLoadError(f"Unsupported configuration format '{source.suffix}' for {source} (expected {allowed})")

    loaded = parser(text, source)
    if not isinstance(loaded, dict):
        raise InvalidConfigError(f"Configuration file {source} must contain a mapping at root")

    validator = _load_schema_validator()
    try:
        validator.validate(loaded)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise InvalidConfigError(f"Schema validation failed for {source}{where}: {exc.message}") from exc
    return loaded


def load_config(path: Path | None = None) -> Config:
    source = path or default_config_path()
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read configuration file {source}: {exc}") from exc

    document = parse_document(text, source)
    config = resolve_config(document, document["version"])
    LOGGER.info("Loaded %d macro(s) from %s", len(config.macros), source)
    return config
