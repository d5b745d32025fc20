"""Typed access to the untyped configuration tree.

The tree is whatever a YAML or JSON parse produced: ``None``, ``bool``,
``int``, ``float``, ``str``, ``list`` and ``dict`` with string keys. Every
accessor takes the dotted field path it is reading so errors can say exactly
where the document went wrong.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

from macropad.core.errors import InvalidConfigError

RawValue = Union[None, bool, int, float, str, list["RawValue"], dict[str, "RawValue"]]
RawMapping = Mapping[str, Any]

_MISSING = object()


def describe(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "mapping"
    return type(value).__name__


def join(path: str, key: str | int) -> str:
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}" if path else key


def type_error(path: str, expected: str, value: object) -> InvalidConfigError:
    return InvalidConfigError(f"{path or '<root>'}: expected {expected}, got {describe(value)}")


def missing_error(path: str) -> InvalidConfigError:
    return InvalidConfigError(f"{path}: required field is missing")


def expect_mapping(value: object, path: str) -> RawMapping:
    if not isinstance(value, dict):
        raise type_error(path, "mapping", value)
    for key in value:
        if not isinstance(key, str):
            raise InvalidConfigError(
                f"{path or '<root>'}: mapping keys must be strings, got {describe(key)} {key!r}"
            )
    return value


def expect_list(value: object, path: str) -> list[Any]:
    if not isinstance(value, list):
        raise type_error(path, "list", value)
    return value


def _lookup(mapping: RawMapping, key: str, path: str, required: bool) -> Any:
    value = mapping.get(key, _MISSING)
    if value is _MISSING or value is None:
        if required:
            raise missing_error(join(path, key))
        return _MISSING
    return value


def get_string(mapping: RawMapping, key: str, path: str, *, required: bool = False) -> str | None:
    value = _lookup(mapping, key, path, required)
    if value is _MISSING:
        return None
    if not isinstance(value, str):
        raise type_error(join(path, key), "string", value)
    return value


def get_integer(mapping: RawMapping, key: str, path: str, *, required: bool = False) -> int | None:
    value = _lookup(mapping, key, path, required)
    if value is _MISSING:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise type_error(join(path, key), "integer", value)
    return value


def get_bool(mapping: RawMapping, key: str, path: str, *, required: bool = False) -> bool | None:
    value = _lookup(mapping, key, path, required)
    if value is _MISSING:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    raise type_error(join(path, key), "boolean true/false", value)


def get_mapping(
    mapping: RawMapping, key: str, path: str, *, required: bool = False
) -> RawMapping | None:
    value = _lookup(mapping, key, path, required)
    if value is _MISSING:
        return None
    return expect_mapping(value, join(path, key))


def get_list(mapping: RawMapping, key: str, path: str, *, required: bool = False) -> list[Any] | None:
    value = _lookup(mapping, key, path, required)
    if value is _MISSING:
        return None
    return expect_list(value, join(path, key))


def get_string_list(
    mapping: RawMapping, key: str, path: str, *, required: bool = False
) -> list[str] | None:
    items = get_list(mapping, key, path, required=required)
    if items is None:
        return None
    field_path = join(path, key)
    for index, item in enumerate(items):
        if not isinstance(item, str):
            raise type_error(join(field_path, index), "string", item)
    return items


def get_string_map(
    mapping: RawMapping, key: str, path: str, *, required: bool = False
) -> dict[str, str] | None:
    items = get_mapping(mapping, key, path, required=required)
    if items is None:
        return None
    field_path = join(path, key)
    for item_key, item in items.items():
        if not isinstance(item, str):
            raise type_error(join(field_path, item_key), "string", item)
    return dict(items)
