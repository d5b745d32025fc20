"""Macros: immutable rules and the builder that stages them."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from macropad.core.actions import Action
from macropad.core.errors import BuilderConsumedError, InvalidConfigError
from macropad.core.event_matching import EventMatcher
from macropad.core.events import Event
from macropad.core.match_checker import StringMatcher
from macropad.core.preconditions import Precondition

if TYPE_CHECKING:
    from macropad.core.state import State


@dataclass(frozen=True)
class Scope:
    """Focused-window gate. With neither matcher set, every window matches."""

    window_class: StringMatcher | None = None
    window_name: StringMatcher | None = None


@dataclass(frozen=True)
class Macro:
    name: str | None
    match_events: tuple[EventMatcher, ...]
    required_preconditions: tuple[Precondition, ...] | None = None
    scope: Scope | None = None
    actions: tuple[Action, ...] = ()

    def __post_init__(self) -> None:
        if not self.match_events:
            label = f"'{self.name}'" if self.name else "(unnamed)"
            raise InvalidConfigError(f"Macro {label} must have at least one matching event")

    def evaluate(self, event: Event, state: State) -> tuple[Action, ...] | None:
        """Return this macro's actions if it fires for ``event`` under ``state``.

        Checks run scope first, then preconditions, then event matchers. Any
        one event matcher matching is enough.
        """
        if not state.matches_scope(self.scope):
            return None

        if self.required_preconditions and not all(
            state.matches(condition) for condition in self.required_preconditions
        ):
            return None

        if any(matcher.matches(event, state) for matcher in self.match_events):
            return self.actions
        return None


class MacroBuilder:
    """Mutable staging area for a ``Macro``.

    Setters return the builder so calls can be chained. ``build()`` consumes
    the builder; using it afterwards raises ``BuilderConsumedError``.
    """

    def __init__(self, event_matchers: Iterable[EventMatcher] = ()) -> None:
        self._name: str | None = None
        self._match_events: list[EventMatcher] = list(event_matchers)
        self._required_preconditions: list[Precondition] | None = None
        self._scope: Scope | None = None
        self._actions: list[Action] = []
        self._consumed = False

    @classmethod
    def from_event_matcher(cls, event_matcher: EventMatcher) -> MacroBuilder:
        return cls([event_matcher])

    @classmethod
    def from_event_matchers(cls, event_matchers: Iterable[EventMatcher]) -> MacroBuilder:
        return cls(event_matchers)

    def _check_open(self) -> None:
        if self._consumed:
            raise BuilderConsumedError("MacroBuilder was already consumed by build()")

    def set_name(self, name: str) -> MacroBuilder:
        self._check_open()
        self._name = name
        return self

    def set_event_matchers(self, event_matchers: Iterable[EventMatcher]) -> MacroBuilder:
        self._check_open()
        self._match_events = list(event_matchers)
        return self

    def add_event_matcher(self, event_matcher: EventMatcher) -> MacroBuilder:
        self._check_open()
        self._match_events.append(event_matcher)
        return self

    def set_actions(self, actions: Iterable[Action]) -> MacroBuilder:
        self._check_open()
        self._actions = list(actions)
        return self

    def add_action(self, action: Action) -> MacroBuilder:
        self._check_open()
        self._actions.append(action)
        return self

    def set_preconditions(self, preconditions: Iterable[Precondition]) -> MacroBuilder:
        self._check_open()
        self._required_preconditions = list(preconditions)
        return self

    def add_precondition(self, precondition: Precondition) -> MacroBuilder:
        self._check_open()
        if self._required_preconditions is None:
            self._required_preconditions = []
        self._required_preconditions.append(precondition)
        return self

    def set_scope(self, scope: Scope) -> MacroBuilder:
        self._check_open()
        self._scope = scope
        return self

    def build(self) -> Macro:
        self._check_open()
        macro = Macro(
            name=self._name,
            match_events=tuple(self._match_events),
            required_preconditions=(
                tuple(self._required_preconditions)
                if self._required_preconditions is not None
                else None
            ),
            scope=self._scope,
            actions=tuple(self._actions),
        )
        self._consumed = True
        self._match_events = []
        self._required_preconditions = None
        self._actions = []
        return macro
