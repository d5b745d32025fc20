"""Service layer wiring adapters, state, engine, and action runner for the CLI."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass
from pathlib import Path

from macropad.adapters.base import FocusAdapter, KeyboardAdapter, MidiAdapter
from macropad.core.action_runner import ActionRunner
from macropad.core.config import Config
from macropad.core.config_loader import load_config
from macropad.core.engine import RuleEngine
from macropad.core.errors import AdapterInitError
from macropad.core.events import MidiEvent, MidiMessage
from macropad.core.state import StateStore

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListenSummary:
    port: str
    events_seen: int
    macros_fired: int


class MacroPadService:
    def __init__(
        self,
        *,
        midi: MidiAdapter | None = None,
        focus: FocusAdapter | None = None,
        keyboard: KeyboardAdapter | None = None,
    ) -> None:
        self._midi = midi
        self._focus = focus
        self._keyboard = keyboard

    @property
    def midi(self) -> MidiAdapter:
        if self._midi is None:
            from macropad.adapters.midi import MidoMidiAdapter

            self._midi = MidoMidiAdapter()
        return self._midi

    @property
    def focus(self) -> FocusAdapter:
        if self._focus is None:
            from macropad.adapters.focus import X11FocusAdapter

            self._focus = X11FocusAdapter()
        return self._focus

    @property
    def keyboard(self) -> KeyboardAdapter:
        if self._keyboard is None:
            from macropad.adapters.keyboard import PynputKeyboardAdapter

            self._keyboard = PynputKeyboardAdapter()
        return self._keyboard

    def list_ports(self) -> list[str]:
        return self.midi.list_ports()

    def load(self, path: Path | None = None) -> Config:
        return load_config(path)

    def listen(self, config: Config, port_pattern: str | None = None) -> ListenSummary:
        """Evaluate incoming MIDI messages against ``config`` until the stop event.

        Every adapter is initialised before the first message is read, so a
        missing backend fails here rather than mid-stream.
        """
        pattern = port_pattern or config.settings.midi_port
        if not pattern:
            raise AdapterInitError("No MIDI port pattern given and none set in the configuration")

        midi = self.midi
        store = StateStore(self.focus)
        runner = ActionRunner(self.keyboard, key_delay_us=config.settings.key_delay_us)
        engine = RuleEngine(config.macros)
        stop_matcher = config.settings.stop_event

        messages: queue.Queue[MidiMessage | None] = queue.Queue()
        port = midi.start_listening(pattern, messages.put)

        events_seen = 0
        macros_fired = 0
        stopped = False
        try:
            while True:
                message = messages.get()
                if message is None:
                    break
                events_seen += 1

                event = MidiEvent(message)
                store.refresh_focus()
                matched = engine.evaluate(event, store.snapshot())
                if matched is not None:
                    macros_fired += 1
                    if matched.macro.name:
                        LOGGER.info("Executing macro named: '%s'", matched.macro.name)
                    else:
                        LOGGER.info("Executing macro. (No name given)")
                    runner.run_all(matched.actions)

                store.record(message)

                if stop_matcher.matches_message(message):
                    LOGGER.info("Stop event received, no longer listening on '%s'", port)
                    midi.stop_listening()
                    stopped = True
                    break
        finally:
            if not stopped:
                midi.stop_listening()

        return ListenSummary(port=port, events_seen=events_seen, macros_fired=macros_fired)
