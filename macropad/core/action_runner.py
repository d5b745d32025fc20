"""Executes actions against the keyboard adapter and the process table."""

from __future__ import annotations

import logging
import os
import subprocess

from macropad.adapters.base import KeyboardAdapter
from macropad.core.actions import Action, Combination, EnterText, KeySequence, Shell
from macropad.core.config import DEFAULT_KEY_DELAY_US
from macropad.core.errors import AdapterError

LOGGER = logging.getLogger(__name__)


class ActionRunner:
    """Runs actions best-effort.

    A failing action is logged and never stops the remaining actions of a
    combination or the listening loop.
    """

    def __init__(self, keyboard: KeyboardAdapter, *, key_delay_us: int = DEFAULT_KEY_DELAY_US) -> None:
        self.keyboard = keyboard
        self.key_delay_us = key_delay_us

    def run(self, action: Action) -> None:
        if isinstance(action, KeySequence):
            self._run_key_sequence(action)
        elif isinstance(action, EnterText):
            self._run_enter_text(action)
        elif isinstance(action, Shell):
            self._run_shell(action)
        elif isinstance(action, Combination):
            for child in action.actions:
                self.run(child)
        else:
            raise TypeError(f"Unsupported action type {type(action).__name__}")

    def run_all(self, actions: tuple[Action, ...]) -> None:
        for action in actions:
            self.run(action)

    def _run_key_sequence(self, action: KeySequence) -> None:
        for _ in range(action.count):
            try:
                self.keyboard.send_keysequence(action.sequence, self.key_delay_us)
            except AdapterError as exc:
                LOGGER.warning("Key sequence '%s' failed: %s", action.sequence, exc)
                return

    def _run_enter_text(self, action: EnterText) -> None:
        for _ in range(action.count):
            try:
                self.keyboard.send_text(action.text, self.key_delay_us)
            except AdapterError as exc:
                LOGGER.warning("Entering text failed: %s", exc)
                return

    def _run_shell(self, action: Shell) -> subprocess.CompletedProcess[bytes] | None:
        cmd = [action.command, *(action.args or ())]
        env = None
        if action.env_vars:
            env = dict(os.environ)
            env.update(action.env_vars)

        LOGGER.info("Running shell command: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, check=False, env=env)
        except (OSError, ValueError) as exc:
            LOGGER.warning("Could not run '%s': %s", action.command, exc)
            return None

        if result.returncode != 0:
            LOGGER.warning("Command '%s' exited with status %s", action.command, result.returncode)
        return result
