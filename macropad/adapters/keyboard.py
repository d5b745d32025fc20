"""Keyboard synthesis backed by pynput."""

from __future__ import annotations

import time
from typing import Any

from macropad.core.errors import AdapterError, AdapterInitError

# X keysym names that differ from pynput's Key attribute names.
_KEYSYM_ALIASES = {
    "control": "ctrl",
    "control_l": "ctrl_l",
    "control_r": "ctrl_r",
    "super": "cmd",
    "super_l": "cmd_l",
    "super_r": "cmd_r",
    "meta": "cmd",
    "return": "enter",
    "escape": "esc",
    "prior": "page_up",
    "next": "page_down",
    "print": "print_screen",
    "altgr": "alt_gr",
    "iso_level3_shift": "alt_gr",
}


class PynputKeyboardAdapter:
    def __init__(self) -> None:
        try:
            from pynput import keyboard  # type: ignore
        except Exception as exc:  # pragma: no cover - import failure path
            raise AdapterInitError(
                "Keyboard control requires 'pynput' and a running display. Install dependency and retry."
            ) from exc
        self._keyboard = keyboard
        self._controller = keyboard.Controller()

    def parse_sequence(self, sequence: str) -> list[Any]:
        keys: list[Any] = []
        for token in sequence.split("+"):
            name = token.strip()
            if not name:
                raise AdapterError(f"Invalid key sequence '{sequence}'")
            if len(name) == 1:
                keys.append(self._keyboard.KeyCode.from_char(name))
                continue
            attr = _KEYSYM_ALIASES.get(name.lower(), name.lower())
            key = getattr(self._keyboard.Key, attr, None)
            if key is None:
                raise AdapterError(f"Unknown key '{name}' in key sequence '{sequence}'")
            keys.append(key)
        return keys

    def send_keysequence(self, sequence: str, delay_us: int) -> None:
        keys = self.parse_sequence(sequence)
        delay = delay_us / 1_000_000
        pressed: list[Any] = []
        try:
            for key in keys:
                self._controller.press(key)
                pressed.append(key)
                time.sleep(delay)
        except self._controller.InvalidKeyException as exc:
            raise AdapterError(f"Could not send key sequence '{sequence}': {exc}") from exc
        finally:
            # Keys already down are released even when a later press fails.
            for key in reversed(pressed):
                self._controller.release(key)
                time.sleep(delay)

    def send_text(self, text: str, delay_us: int) -> None:
        delay = delay_us / 1_000_000
        try:
            for char in text:
                self._controller.type(char)
                time.sleep(delay)
        except self._controller.InvalidCharacterException as exc:
            raise AdapterError(f"Could not type text: {exc}") from exc
