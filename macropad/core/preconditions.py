"""Preconditions: named gates over tracked device state, independent of the triggering event."""

from __future__ import annotations

from dataclasses import dataclass

from macropad.core.match_checker import NumberMatcher


@dataclass(frozen=True)
class NoteHeld:
    """Satisfied while a matching note is held down on a matching channel."""

    channel: NumberMatcher | None = None
    note: NumberMatcher | None = None
    invert: bool = False


@dataclass(frozen=True)
class ControlValue:
    """Satisfied when a matching controller's last value matches ``value``.

    Controllers never seen since startup have no value and never match.
    """

    channel: NumberMatcher | None = None
    control: NumberMatcher | None = None
    value: NumberMatcher | None = None
    invert: bool = False


@dataclass(frozen=True)
class ProgramSelected:
    channel: NumberMatcher | None = None
    program: NumberMatcher | None = None
    invert: bool = False


@dataclass(frozen=True)
class PitchBendValue:
    channel: NumberMatcher | None = None
    value: NumberMatcher | None = None
    invert: bool = False


Precondition = NoteHeld | ControlValue | ProgramSelected | PitchBendValue
