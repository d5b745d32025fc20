"""Adapter interfaces for the MIDI input, focus tracker, and keyboard synthesis."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from macropad.core.events import MidiMessage
from macropad.core.state import WindowInfo

MessageSink = Callable[[MidiMessage | None], None]


class MidiAdapter(Protocol):
    def list_ports(self) -> list[str]:
        """Return the names of the available MIDI input ports."""

    def start_listening(self, port_pattern: str, sink: MessageSink) -> str:
        """Open the first port whose name contains ``port_pattern``.

        Each decoded message is passed to ``sink``; ``None`` is passed once
        when listening stops. Returns the opened port name.
        """

    def stop_listening(self) -> None:
        """Close the port opened by ``start_listening``."""


class FocusAdapter(Protocol):
    def focused_window(self) -> WindowInfo | None:
        """Return the class and name of the currently focused window."""


class KeyboardAdapter(Protocol):
    def send_keysequence(self, sequence: str, delay_us: int) -> None:
        """Press and release a key combination such as ``"ctrl+shift+t"``."""

    def send_text(self, text: str, delay_us: int) -> None:
        """Type ``text`` character by character."""
