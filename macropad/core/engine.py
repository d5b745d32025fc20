"""Rule selection: first macro in declaration order that fires wins."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from macropad.core.actions import Action
from macropad.core.events import Event
from macropad.core.macros import Macro
from macropad.core.state import State

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MacroMatch:
    macro: Macro
    actions: tuple[Action, ...]


class RuleEngine:
    def __init__(self, macros: Iterable[Macro]) -> None:
        self.macros: tuple[Macro, ...] = tuple(macros)

    def evaluate(self, event: Event, state: State) -> MacroMatch | None:
        for macro in self.macros:
            actions = macro.evaluate(event, state)
            if actions is not None:
                LOGGER.debug("Event %s matched macro %r", event, macro.name)
                return MacroMatch(macro=macro, actions=actions)
        return None
