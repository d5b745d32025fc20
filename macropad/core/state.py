"""Runtime state: focused-window identity and tracked MIDI device state.

``State`` is an immutable snapshot the engine evaluates against. ``StateStore``
owns the current snapshot and replaces it wholesale whenever a producer (the
MIDI listener or the focus tracker) publishes new information, so a reader
never observes a half-applied update.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from macropad.core.events import MessageKind, MidiMessage
from macropad.core.match_checker import NumberMatcher, optional_matches
from macropad.core.preconditions import (
    ControlValue,
    NoteHeld,
    PitchBendValue,
    Precondition,
    ProgramSelected,
)

if TYPE_CHECKING:
    from macropad.adapters.base import FocusAdapter
    from macropad.core.macros import Scope

LOGGER = logging.getLogger(__name__)


def _empty() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class WindowInfo:
    window_class: str | None = None
    window_name: str | None = None


@dataclass(frozen=True)
class MidiState:
    notes: Mapping[tuple[int, int], int] = field(default_factory=_empty)
    controls: Mapping[tuple[int, int], int] = field(default_factory=_empty)
    programs: Mapping[int, int] = field(default_factory=_empty)
    pitch_bends: Mapping[int, int] = field(default_factory=_empty)

    def apply(self, message: MidiMessage) -> MidiState:
        """Return a new snapshot with ``message`` applied."""
        kind = message.kind
        if kind is MessageKind.NOTE_ON and message.secondary:
            return replace(
                self, notes=_with(self.notes, (message.channel, message.primary), message.secondary)
            )
        if kind in (MessageKind.NOTE_ON, MessageKind.NOTE_OFF):
            return replace(self, notes=_without(self.notes, (message.channel, message.primary)))
        if kind is MessageKind.CONTROL_CHANGE:
            assert message.secondary is not None
            return replace(
                self,
                controls=_with(self.controls, (message.channel, message.primary), message.secondary),
            )
        if kind is MessageKind.PROGRAM_CHANGE:
            return replace(self, programs=_with(self.programs, message.channel, message.primary))
        if kind is MessageKind.PITCH_BEND:
            return replace(self, pitch_bends=_with(self.pitch_bends, message.channel, message.primary))
        # Aftertouch is not tracked.
        return self


def _with(mapping: Mapping, key: object, value: int) -> Mapping:
    updated = dict(mapping)
    updated[key] = value
    return MappingProxyType(updated)


def _without(mapping: Mapping, key: object) -> Mapping:
    if key not in mapping:
        return mapping
    updated = dict(mapping)
    del updated[key]
    return MappingProxyType(updated)


def _any_pair(
    entries: Mapping[tuple[int, int], int],
    channel: NumberMatcher | None,
    number: NumberMatcher | None,
    value: NumberMatcher | None = None,
) -> bool:
    return any(
        optional_matches(channel, ch)
        and optional_matches(number, num)
        and optional_matches(value, current)
        for (ch, num), current in entries.items()
    )


def _any_channel(
    entries: Mapping[int, int],
    channel: NumberMatcher | None,
    value: NumberMatcher | None,
) -> bool:
    return any(
        optional_matches(channel, ch) and optional_matches(value, current)
        for ch, current in entries.items()
    )


@dataclass(frozen=True)
class State:
    """One consistent view of the focused window and the device state."""

    window: WindowInfo | None = None
    device: MidiState = field(default_factory=MidiState)

    def matches_scope(self, scope: Scope | None) -> bool:
        if scope is None:
            return True
        window = self.window or WindowInfo()
        if scope.window_class is not None and not scope.window_class.matches(window.window_class):
            return False
        if scope.window_name is not None and not scope.window_name.matches(window.window_name):
            return False
        return True

    def matches(self, precondition: Precondition) -> bool:
        if isinstance(precondition, NoteHeld):
            result = _any_pair(self.device.notes, precondition.channel, precondition.note)
        elif isinstance(precondition, ControlValue):
            result = _any_pair(
                self.device.controls,
                precondition.channel,
                precondition.control,
                precondition.value,
            )
        elif isinstance(precondition, ProgramSelected):
            result = _any_channel(self.device.programs, precondition.channel, precondition.program)
        elif isinstance(precondition, PitchBendValue):
            result = _any_channel(self.device.pitch_bends, precondition.channel, precondition.value)
        else:
            raise TypeError(f"Unsupported precondition type {type(precondition).__name__}")
        return result != precondition.invert

    def note_velocity(self, channel: int, note: int) -> int | None:
        return self.device.notes.get((channel, note))

    def control_value(self, channel: int, control: int) -> int | None:
        return self.device.controls.get((channel, control))

    def program(self, channel: int) -> int | None:
        return self.device.programs.get(channel)

    def pitch_bend(self, channel: int) -> int | None:
        return self.device.pitch_bends.get(channel)


class StateStore:
    """Holds the current ``State`` and publishes replacement snapshots."""

    def __init__(self, focus: FocusAdapter | None = None, *, initial: State | None = None) -> None:
        self._focus = focus
        self._lock = threading.Lock()
        self._state = initial or State()

    def snapshot(self) -> State:
        with self._lock:
            return self._state

    def record(self, message: MidiMessage) -> State:
        with self._lock:
            self._state = replace(self._state, device=self._state.device.apply(message))
            return self._state

    def set_focus(self, window: WindowInfo | None) -> State:
        with self._lock:
            self._state = replace(self._state, window=window)
            return self._state

    def refresh_focus(self) -> State:
        if self._focus is None:
            return self.snapshot()
        window = self._focus.focused_window()
        LOGGER.debug("Focused window: %s", window)
        return self.set_focus(window)
