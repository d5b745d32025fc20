from __future__ import annotations

import copy
from typing import Any

import pytest

from macropad.core.actions import Combination, EnterText, KeySequence, Shell
from macropad.core.config import DEFAULT_STOP_EVENT, resolve_config
from macropad.core.errors import InvalidConfigError, UnsupportedVersionError
from macropad.core.event_matching import MidiEventMatcher
from macropad.core.events import MessageKind, MidiEvent, MidiMessage
from macropad.core.match_checker import NumberMatcher, StringMatcher, StringMatchMode
from macropad.core.preconditions import ControlValue, NoteHeld, PitchBendValue
from macropad.core.state import State


def _cc_event(control: int, value: int) -> dict[str, Any]:
    return {
        "type": "midi",
        "data": {"message_type": "control_change", "control": control, "value": value},
    }


def _document(**macro: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "matching_events": [_cc_event(7, {"min": 0, "max": 63})],
        "actions": [{"type": "key_sequence", "data": "ctrl+shift+t"}],
    }
    entry.update(macro)
    return {"version": 1, "macros": [entry]}


def _resolve_action(action: dict[str, Any]):
    return resolve_config(_document(actions=[action]), 1).macros[0].actions[0]


def test_minimal_document_resolves() -> None:
    config = resolve_config(_document(), "1")
    assert len(config.macros) == 1
    macro = config.macros[0]
    assert macro.name is None
    assert macro.scope is None
    assert macro.required_preconditions is None
    assert macro.match_events == (
        MidiEventMatcher.control_change(
            control=NumberMatcher.val(7), value=NumberMatcher.range(0, 63)
        ),
    )
    assert macro.actions == (KeySequence("ctrl+shift+t", 1),)
    assert config.settings.stop_event == DEFAULT_STOP_EVENT
    assert config.settings.key_delay_us == 100
    assert config.settings.midi_port is None


def test_example_macro_dispatches_only_in_range() -> None:
    macro = resolve_config(_document(), 1).macros[0]
    inside = MidiEvent(MidiMessage(MessageKind.CONTROL_CHANGE, 0, 7, 40))
    outside = MidiEvent(MidiMessage(MessageKind.CONTROL_CHANGE, 0, 7, 100))
    assert macro.evaluate(inside, State()) == (KeySequence("ctrl+shift+t", 1),)
    assert macro.evaluate(outside, State()) is None


def test_declaration_order_is_preserved() -> None:
    doc = {
        "version": 1,
        "macros": [
            {"name": name, "matching_events": [_cc_event(1, 1)], "actions": []}
            for name in ("first", "second", "third")
        ],
    }
    config = resolve_config(doc, 1)
    assert [m.name for m in config.macros] == ["first", "second", "third"]


def test_single_mapping_matching_event_is_accepted() -> None:
    config = resolve_config(_document(matching_events=_cc_event(7, 1)), 1)
    assert len(config.macros[0].match_events) == 1


@pytest.mark.parametrize("field", ["matching_events", "actions"])
def test_missing_required_macro_field(field: str) -> None:
    doc = _document()
    del doc["macros"][0][field]
    with pytest.raises(InvalidConfigError) as exc:
        resolve_config(doc, 1)
    assert f"macros[0].{field}" in str(exc.value)


def test_missing_macros_list() -> None:
    with pytest.raises(InvalidConfigError) as exc:
        resolve_config({"version": 1}, 1)
    assert "macros" in str(exc.value)


def test_wrong_shape_names_path_and_expectation() -> None:
    with pytest.raises(InvalidConfigError) as exc:
        resolve_config(_document(scope="firefox"), 1)
    assert "macros[0].scope" in str(exc.value)
    assert "expected mapping" in str(exc.value)


def test_root_must_be_mapping() -> None:
    with pytest.raises(InvalidConfigError):
        resolve_config(["not", "a", "mapping"], 1)


def test_empty_matching_events_rejected() -> None:
    with pytest.raises(InvalidConfigError):
        resolve_config(_document(matching_events=[]), 1)


def test_unknown_fields_are_rejected() -> None:
    doc = _document()
    doc["macros"][0]["matching_events"][0]["data"]["contol"] = 7
    with pytest.raises(InvalidConfigError) as exc:
        resolve_config(doc, 1)
    assert "contol" in str(exc.value)


def test_one_bad_macro_rejects_whole_document() -> None:
    doc = _document()
    bad = copy.deepcopy(doc["macros"][0])
    bad["actions"] = [{"type": "key_sequence", "data": {"sequence": "a", "count": -1}}]
    doc["macros"].append(bad)
    with pytest.raises(InvalidConfigError) as exc:
        resolve_config(doc, 1)
    assert "macros[1].actions[0].data.count" in str(exc.value)


def test_unsupported_version() -> None:
    with pytest.raises(UnsupportedVersionError):
        resolve_config(_document(), "2")


def test_float_version_is_normalized() -> None:
    assert len(resolve_config(_document(), 1.0).macros) == 1


def test_key_sequence_forms() -> None:
    assert _resolve_action({"type": "key_sequence", "data": "alt+Tab"}) == KeySequence("alt+Tab", 1)
    assert _resolve_action(
        {"type": "key_sequence", "data": {"sequence": "Return", "count": 3}}
    ) == KeySequence("Return", 3)
    assert _resolve_action({"type": "key_sequence", "data": {"sequence": "a"}}) == KeySequence("a", 1)


def test_zero_count_is_allowed() -> None:
    assert _resolve_action({"type": "enter_text", "data": {"text": "x", "count": 0}}) == EnterText("x", 0)


@pytest.mark.parametrize(
    "action",
    [
        {"type": "key_sequence", "data": {"sequence": "a", "count": -1}},
        {"type": "enter_text", "data": {"text": "a", "count": -2}},
        {"type": "key_sequence", "data": {"sequence": "a", "count": "two"}},
        {"type": "key_sequence", "data": {"count": 2}},
        {"type": "key_sequence", "data": 12},
        {"type": "key_sequence"},
        {"type": "teleport", "data": "x"},
        {"type": "shell", "data": {"args": ["x"]}},
        {"type": "shell", "data": {"command": ""}},
        {"type": "shell", "data": {"command": "/bin/echo", "args": [1]}},
        {"type": "combination", "data": "not a list"},
    ],
)
def test_invalid_actions_rejected(action: dict[str, Any]) -> None:
    with pytest.raises(InvalidConfigError):
        _resolve_action(action)


def test_shell_action() -> None:
    action = _resolve_action(
        {
            "type": "shell",
            "data": {
                "command": "/usr/bin/notify-send",
                "args": ["hello world", "-t", "500"],
                "env_vars": {"DISPLAY": ":0", "LANG": "C"},
            },
        }
    )
    assert action == Shell(
        command="/usr/bin/notify-send",
        args=("hello world", "-t", "500"),
        env_vars=(("DISPLAY", ":0"), ("LANG", "C")),
    )
    assert _resolve_action({"type": "shell", "data": {"command": "/bin/true"}}) == Shell("/bin/true")


def test_combination_action_keeps_order() -> None:
    action = _resolve_action(
        {
            "type": "combination",
            "data": [
                {"type": "shell", "data": {"command": "/bin/false"}},
                {"type": "enter_text", "data": "x"},
                {"type": "combination", "data": [{"type": "key_sequence", "data": "ctrl+s"}]},
            ],
        }
    )
    assert action == Combination(
        (Shell("/bin/false"), EnterText("x", 1), Combination((KeySequence("ctrl+s", 1),)))
    )


def test_number_matcher_forms() -> None:
    event = {
        "type": "midi",
        "data": {"message_type": "note_on", "channel": "any", "note": 60, "velocity": {"min": 100}},
    }
    matcher = resolve_config(_document(matching_events=[event]), 1).macros[0].match_events[0]
    assert matcher == MidiEventMatcher.note_on(
        channel=NumberMatcher.any(),
        note=NumberMatcher.val(60),
        velocity=NumberMatcher.range(min=100),
    )


@pytest.mark.parametrize(
    "data",
    [
        {"message_type": "control_change", "control": 128},
        {"message_type": "control_change", "channel": 16},
        {"message_type": "control_change", "value": {"min": 10, "max": 5}},
        {"message_type": "control_change", "value": {}},
        {"message_type": "control_change", "value": [1, 2]},
        {"message_type": "control_change", "value": True},
        {"message_type": "program_change", "velocity": 1},
        {"message_type": "sysex"},
        {},
    ],
)
def test_invalid_event_matchers_rejected(data: dict[str, Any]) -> None:
    with pytest.raises(InvalidConfigError):
        resolve_config(_document(matching_events=[{"type": "midi", "data": data}]), 1)


def test_pitch_bend_accepts_fourteen_bit_values() -> None:
    event = {"type": "midi", "data": {"message_type": "pitch_bend", "value": {"min": 12000}}}
    matcher = resolve_config(_document(matching_events=[event]), 1).macros[0].match_events[0]
    assert matcher == MidiEventMatcher.pitch_bend(value=NumberMatcher.range(min=12000))


def test_unsupported_event_type() -> None:
    with pytest.raises(InvalidConfigError) as exc:
        resolve_config(_document(matching_events=[{"type": "keyboard", "data": {}}]), 1)
    assert "unsupported event type" in str(exc.value)


def test_scope_forms() -> None:
    scope = resolve_config(
        _document(
            scope={
                "window_class": "firefox",
                "window_name": {"ends_with": "youtube", "case_sensitive": "false"},
            }
        ),
        1,
    ).macros[0].scope
    assert scope is not None
    assert scope.window_class == StringMatcher.equals("firefox")
    assert scope.window_name == StringMatcher(StringMatchMode.ENDS_WITH, "youtube", False)


def test_scope_any_and_regex() -> None:
    scope = resolve_config(
        _document(scope={"window_class": {"any": True}, "window_name": {"regex": "^vim"}}), 1
    ).macros[0].scope
    assert scope is not None
    assert scope.window_class == StringMatcher.any()
    assert scope.window_name is not None and scope.window_name.matches("vim main.py")


@pytest.mark.parametrize(
    "window_class",
    [
        {"contains": "a", "starts_with": "b"},
        {"case_sensitive": True},
        {"regex": "(broken"},
        {"any": False},
        42,
    ],
)
def test_invalid_string_matchers_rejected(window_class: Any) -> None:
    with pytest.raises(InvalidConfigError):
        resolve_config(_document(scope={"window_class": window_class}), 1)


def test_preconditions() -> None:
    config = resolve_config(
        _document(
            required_preconditions=[
                {"type": "midi", "data": {"condition": "note_held", "note": 36}},
                {
                    "type": "midi",
                    "data": {
                        "condition": "control_value",
                        "channel": 0,
                        "control": 64,
                        "value": {"min": 64},
                        "invert": "true",
                    },
                },
                {"type": "midi", "data": {"condition": "pitch_bend", "value": 8192}},
            ]
        ),
        1,
    )
    assert config.macros[0].required_preconditions == (
        NoteHeld(note=NumberMatcher.val(36)),
        ControlValue(
            channel=NumberMatcher.val(0),
            control=NumberMatcher.val(64),
            value=NumberMatcher.range(min=64),
            invert=True,
        ),
        PitchBendValue(value=NumberMatcher.val(8192)),
    )


@pytest.mark.parametrize(
    "precondition",
    [
        {"type": "midi", "data": {"condition": "window_open"}},
        {"type": "midi", "data": {"condition": "note_held", "velocity": 3}},
        {"type": "midi", "data": {"condition": "note_held", "invert": "maybe"}},
        {"type": "clock", "data": {"condition": "note_held"}},
        {"type": "midi"},
    ],
)
def test_invalid_preconditions_rejected(precondition: dict[str, Any]) -> None:
    with pytest.raises(InvalidConfigError):
        resolve_config(_document(required_preconditions=[precondition]), 1)


def test_settings() -> None:
    doc = _document()
    doc["settings"] = {
        "midi_port": "nanoKONTROL",
        "key_delay_us": 0,
        "stop_event": {"type": "midi", "data": {"message_type": "note_on", "note": 0}},
    }
    settings = resolve_config(doc, 1).settings
    assert settings.midi_port == "nanoKONTROL"
    assert settings.key_delay_us == 0
    assert settings.stop_event == MidiEventMatcher.note_on(note=NumberMatcher.val(0))


@pytest.mark.parametrize(
    "settings",
    [
        {"key_delay_us": -1},
        {"key_delay_us": "fast"},
        {"midi_port": 3},
        {"stop_event": "cc51"},
        {"unknown": 1},
        "not a mapping",
    ],
)
def test_invalid_settings_rejected(settings: Any) -> None:
    doc = _document()
    doc["settings"] = settings
    with pytest.raises(InvalidConfigError):
        resolve_config(doc, 1)


@pytest.mark.parametrize(
    "data",
    [
        {"command": "/bin/echo", "env_vars": {"A=B": "c"}},
        {"command": "/bin/echo", "env_vars": {"": "c"}},
        {"command": "/bin/echo", "env_vars": {"A": "c\x00d"}},
        {"command": "/bin/echo", "args": ["a\x00b"]},
        {"command": "/bin/ec\x00ho"},
    ],
)
def test_shell_values_the_process_table_cannot_take(data: dict[str, Any]) -> None:
    with pytest.raises(InvalidConfigError):
        _resolve_action({"type": "shell", "data": data})


def test_null_stop_event_keeps_default() -> None:
    doc = _document()
    doc["settings"] = {"stop_event": None}
    assert resolve_config(doc, 1).settings.stop_event == DEFAULT_STOP_EVENT
