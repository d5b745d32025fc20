"""Resolved configuration and dispatch to per-version resolvers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from macropad.core.errors import UnsupportedVersionError
from macropad.core.event_matching import MidiEventMatcher
from macropad.core.macros import Macro
from macropad.core.match_checker import NumberMatcher

DEFAULT_KEY_DELAY_US = 100
DEFAULT_STOP_EVENT = MidiEventMatcher.control_change(
    control=NumberMatcher.val(51),
    value=NumberMatcher.val(127),
)


@dataclass(frozen=True)
class GlobalSettings:
    midi_port: str | None = None
    stop_event: MidiEventMatcher = DEFAULT_STOP_EVENT
    key_delay_us: int = DEFAULT_KEY_DELAY_US


@dataclass(frozen=True)
class Config:
    macros: tuple[Macro, ...]
    settings: GlobalSettings = field(default_factory=GlobalSettings)


Resolver = Callable[[object], Config]


def _resolvers() -> dict[str, Resolver]:
    from macropad.core.resolvers import version1

    return {"1": version1.resolve}


def normalize_version(version: object) -> str:
    if isinstance(version, bool):
        raise UnsupportedVersionError(f"Unsupported configuration version {version!r}")
    if isinstance(version, float) and version.is_integer():
        version = int(version)
    return str(version).strip()


def supported_versions() -> tuple[str, ...]:
    return tuple(sorted(_resolvers()))


def resolve_config(raw: object, version: object) -> Config:
    """Resolve an already-parsed document into a ``Config``.

    Raises ``UnsupportedVersionError`` for unknown versions and
    ``InvalidConfigError`` for any structural or semantic problem.
    """
    tag = normalize_version(version)
    resolver = _resolvers().get(tag)
    if resolver is None:
        allowed = ", ".join(supported_versions())
        raise UnsupportedVersionError(
            f"Unsupported configuration version '{tag}' (supported: {allowed})"
        )
    return resolver(raw)
