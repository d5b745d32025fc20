from __future__ import annotations

from macropad.core.actions import EnterText, KeySequence
from macropad.core.engine import RuleEngine
from macropad.core.event_matching import MidiEventMatcher
from macropad.core.events import MessageKind, MidiEvent, MidiMessage
from macropad.core.macros import MacroBuilder, Scope
from macropad.core.match_checker import NumberMatcher, StringMatcher
from macropad.core.state import State, WindowInfo


def _cc(control: int, value: int) -> MidiEvent:
    return MidiEvent(MidiMessage(MessageKind.CONTROL_CHANGE, 0, control, value))


def _macro(name: str, control: int, text: str, scope: Scope | None = None):
    builder = MacroBuilder.from_event_matcher(
        MidiEventMatcher.control_change(control=NumberMatcher.val(control))
    ).set_name(name).add_action(EnterText(text))
    if scope is not None:
        builder.set_scope(scope)
    return builder.build()


def test_first_declared_match_wins() -> None:
    engine = RuleEngine(
        [
            _macro("m1", 7, "first"),
            _macro("m2", 7, "second"),
            _macro("m3", 8, "third"),
        ]
    )
    matched = engine.evaluate(_cc(7, 1), State())
    assert matched is not None
    assert matched.macro.name == "m1"
    assert matched.actions == (EnterText("first"),)


def test_later_macro_fires_when_earlier_is_out_of_scope() -> None:
    engine = RuleEngine(
        [
            _macro("editor", 7, "editor", Scope(window_class=StringMatcher.equals("code"))),
            _macro("global", 7, "global"),
        ]
    )
    in_editor = engine.evaluate(_cc(7, 1), State(window=WindowInfo("code", "main.py")))
    elsewhere = engine.evaluate(_cc(7, 1), State(window=WindowInfo("kitty", "zsh")))
    assert in_editor is not None and in_editor.macro.name == "editor"
    assert elsewhere is not None and elsewhere.macro.name == "global"


def test_no_match_is_silent() -> None:
    engine = RuleEngine([_macro("m1", 7, "first")])
    assert engine.evaluate(_cc(9, 1), State()) is None
    assert RuleEngine([]).evaluate(_cc(9, 1), State()) is None


def test_evaluation_is_idempotent() -> None:
    engine = RuleEngine([_macro("m1", 7, "first"), _macro("m2", 8, "second")])
    state = State(window=WindowInfo("kitty", "zsh"))
    for event in (_cc(7, 0), _cc(8, 0), _cc(9, 0)):
        assert engine.evaluate(event, state) == engine.evaluate(event, state)


def test_volume_example() -> None:
    macro = MacroBuilder.from_event_matcher(
        MidiEventMatcher.control_change(control=NumberMatcher.val(7), value=NumberMatcher.range(0, 63))
    ).add_action(KeySequence("ctrl+shift+t", 1)).build()
    engine = RuleEngine([macro])

    matched = engine.evaluate(_cc(7, 40), State())
    assert matched is not None
    assert matched.actions == (KeySequence("ctrl+shift+t", 1),)
    assert engine.evaluate(_cc(7, 100), State()) is None
