"""Event model: decoded MIDI channel-voice messages and the events wrapping them."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum


class MessageKind(str, Enum):
    NOTE_OFF = "note_off"
    NOTE_ON = "note_on"
    POLY_AFTERTOUCH = "poly_aftertouch"
    CONTROL_CHANGE = "control_change"
    PROGRAM_CHANGE = "program_change"
    CHANNEL_AFTERTOUCH = "channel_aftertouch"
    PITCH_BEND = "pitch_bend"


_STATUS_KINDS = {
    0x80: MessageKind.NOTE_OFF,
    0x90: MessageKind.NOTE_ON,
    0xA0: MessageKind.POLY_AFTERTOUCH,
    0xB0: MessageKind.CONTROL_CHANGE,
    0xC0: MessageKind.PROGRAM_CHANGE,
    0xD0: MessageKind.CHANNEL_AFTERTOUCH,
    0xE0: MessageKind.PITCH_BEND,
}


@dataclass(frozen=True)
class MidiMessage:
    """One channel-voice message.

    ``channel`` is 0-based. ``primary`` is the note, controller, program or
    pressure number; for pitch bend it is the combined 14-bit value.
    ``secondary`` is the velocity, pressure or controller value, and is
    ``None`` for single-value kinds.
    """

    kind: MessageKind
    channel: int
    primary: int
    secondary: int | None = None

    @classmethod
    def from_bytes(cls, data: Sequence[int]) -> MidiMessage | None:
        if not data:
            return None
        status = data[0]
        kind = _STATUS_KINDS.get(status & 0xF0)
        if kind is None:
            return None
        channel = status & 0x0F
        expected_len = 2 if kind in (MessageKind.PROGRAM_CHANGE, MessageKind.CHANNEL_AFTERTOUCH) else 3
        if len(data) < expected_len:
            return None
        payload = [byte & 0x7F for byte in data[1:expected_len]]

        if kind is MessageKind.PITCH_BEND:
            return cls(kind=kind, channel=channel, primary=payload[0] | (payload[1] << 7))
        if expected_len == 2:
            return cls(kind=kind, channel=channel, primary=payload[0])
        return cls(kind=kind, channel=channel, primary=payload[0], secondary=payload[1])


@dataclass(frozen=True)
class MidiEvent:
    message: MidiMessage


# Closed set of event variants; extend with a union as new producers appear.
Event = MidiEvent
