"""MIDI input adapter backed by mido."""

from __future__ import annotations

import logging
from typing import Any

from macropad.adapters.base import MessageSink
from macropad.core.errors import AdapterError, AdapterInitError
from macropad.core.events import MidiMessage

LOGGER = logging.getLogger(__name__)


def _import_mido() -> Any:
    try:
        import mido  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise AdapterInitError(
            "MIDI input requires 'mido' with the 'python-rtmidi' backend. Install dependency and retry."
        ) from exc
    return mido


class MidoMidiAdapter:
    def __init__(self) -> None:
        self._mido = _import_mido()
        self._port: Any = None
        self._sink: MessageSink | None = None

    def list_ports(self) -> list[str]:
        try:
            return list(self._mido.get_input_names())
        except Exception as exc:
            raise AdapterInitError(f"Could not enumerate MIDI input ports: {exc}") from exc

    def start_listening(self, port_pattern: str, sink: MessageSink) -> str:
        if self._port is not None:
            raise AdapterError(f"Already listening on MIDI port '{self._port.name}'")

        names = self.list_ports()
        port_name = next((name for name in names if port_pattern in name), None)
        if port_name is None:
            available = ", ".join(names) or "<none>"
            raise AdapterInitError(
                f"No MIDI input port matches '{port_pattern}'. Available: {available}"
            )

        def _on_message(msg: Any) -> None:
            message = MidiMessage.from_bytes(msg.bytes())
            if message is None:
                LOGGER.debug("Ignoring MIDI message %s", msg)
                return
            sink(message)

        try:
            self._port = self._mido.open_input(port_name, callback=_on_message)
        except Exception as exc:
            raise AdapterInitError(f"Could not open MIDI port '{port_name}': {exc}") from exc
        self._sink = sink
        LOGGER.info("Listening on MIDI port '%s'", port_name)
        return port_name

    def stop_listening(self) -> None:
        port, sink = self._port, self._sink
        self._port = None
        self._sink = None
        if port is not None:
            port.close()
        if sink is not None:
            sink(None)
