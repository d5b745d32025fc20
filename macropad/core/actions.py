"""Actions run in response to a matched macro.

Actions are plain data; ``macropad.core.action_runner.ActionRunner`` executes
them against the keyboard adapter and the process table.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class KeySequence:
    """Key combination in X keysym notation, e.g. ``"ctrl+shift+t"``, sent ``count`` times."""

    sequence: str
    count: int = 1

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"count should be 0 or more, found {self.count}")


@dataclass(frozen=True)
class EnterText:
    """Literal text typed ``count`` times."""

    text: str
    count: int = 1

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"count should be 0 or more, found {self.count}")


@dataclass(frozen=True)
class Shell:
    """Program to spawn.

    ``command`` is the program path without arguments; ``env_vars`` are added
    on top of the inherited environment.
    """

    command: str
    args: tuple[str, ...] | None = None
    env_vars: tuple[tuple[str, str], ...] | None = None


@dataclass(frozen=True)
class Combination:
    actions: tuple[Action, ...]


Action = KeySequence | EnterText | Shell | Combination
