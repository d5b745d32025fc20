"""Event matchers: predicates over incoming events built from number matchers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from macropad.core.events import Event, MessageKind, MidiEvent, MidiMessage
from macropad.core.match_checker import NumberMatcher, optional_matches

if TYPE_CHECKING:
    from macropad.core.state import State


@dataclass(frozen=True)
class MidiEventMatcher:
    """Matches MIDI messages of one kind.

    Every present sub-matcher must accept its field; ``None`` means don't care.
    """

    kind: MessageKind
    channel: NumberMatcher | None = None
    primary: NumberMatcher | None = None
    secondary: NumberMatcher | None = None

    @classmethod
    def note_on(
        cls,
        channel: NumberMatcher | None = None,
        note: NumberMatcher | None = None,
        velocity: NumberMatcher | None = None,
    ) -> MidiEventMatcher:
        return cls(MessageKind.NOTE_ON, channel, note, velocity)

    @classmethod
    def note_off(
        cls,
        channel: NumberMatcher | None = None,
        note: NumberMatcher | None = None,
        velocity: NumberMatcher | None = None,
    ) -> MidiEventMatcher:
        return cls(MessageKind.NOTE_OFF, channel, note, velocity)

    @classmethod
    def poly_aftertouch(
        cls,
        channel: NumberMatcher | None = None,
        note: NumberMatcher | None = None,
        pressure: NumberMatcher | None = None,
    ) -> MidiEventMatcher:
        return cls(MessageKind.POLY_AFTERTOUCH, channel, note, pressure)

    @classmethod
    def control_change(
        cls,
        channel: NumberMatcher | None = None,
        control: NumberMatcher | None = None,
        value: NumberMatcher | None = None,
    ) -> MidiEventMatcher:
        return cls(MessageKind.CONTROL_CHANGE, channel, control, value)

    @classmethod
    def program_change(
        cls,
        channel: NumberMatcher | None = None,
        program: NumberMatcher | None = None,
    ) -> MidiEventMatcher:
        return cls(MessageKind.PROGRAM_CHANGE, channel, program)

    @classmethod
    def channel_aftertouch(
        cls,
        channel: NumberMatcher | None = None,
        pressure: NumberMatcher | None = None,
    ) -> MidiEventMatcher:
        return cls(MessageKind.CHANNEL_AFTERTOUCH, channel, pressure)

    @classmethod
    def pitch_bend(
        cls,
        channel: NumberMatcher | None = None,
        value: NumberMatcher | None = None,
    ) -> MidiEventMatcher:
        return cls(MessageKind.PITCH_BEND, channel, value)

    def matches_message(self, message: MidiMessage) -> bool:
        if message.kind is not self.kind:
            return False
        return (
            optional_matches(self.channel, message.channel)
            and optional_matches(self.primary, message.primary)
            and optional_matches(self.secondary, message.secondary)
        )

    def matches(self, event: Event, state: State | None = None) -> bool:
        if isinstance(event, MidiEvent):
            return self.matches_message(event.message)
        return False


# Closed set of event matcher variants, one per event producer.
EventMatcher = MidiEventMatcher
