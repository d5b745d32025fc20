"""Resolver for version 1 configuration documents.

A version 1 document looks like::

    version: 1
    settings:
      midi_port: "nanoKONTROL"
      key_delay_us: 100
      stop_event: {type: midi, data: {message_type: control_change, control: 51, value: 127}}
    macros:
      - name: "New tab"
        scope:
          window_class: {contains: firefox, case_sensitive: false}
        required_preconditions:
          - {type: midi, data: {condition: note_held, note: 36}}
        matching_events:
          - {type: midi, data: {message_type: control_change, control: 7, value: {min: 0, max: 63}}}
        actions:
          - {type: key_sequence, data: "ctrl+shift+t"}

Macros keep their declaration order. Any error aborts the whole document.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from macropad.core.actions import Action, Combination, EnterText, KeySequence, Shell
from macropad.core.config import DEFAULT_KEY_DELAY_US, DEFAULT_STOP_EVENT, Config, GlobalSettings
from macropad.core.errors import InvalidConfigError
from macropad.core.event_matching import EventMatcher, MidiEventMatcher
from macropad.core.events import MessageKind
from macropad.core.macros import Macro, MacroBuilder, Scope
from macropad.core.match_checker import NumberMatcher, StringMatcher, StringMatchMode
from macropad.core.preconditions import (
    ControlValue,
    NoteHeld,
    PitchBendValue,
    Precondition,
    ProgramSelected,
)
from macropad.core.raw_config import (
    RawMapping,
    expect_list,
    expect_mapping,
    get_bool,
    get_integer,
    get_list,
    get_mapping,
    get_string,
    get_string_list,
    get_string_map,
    join,
    missing_error,
    type_error,
)

_ROOT_FIELDS = frozenset({"version", "settings", "macros"})
_SETTINGS_FIELDS = frozenset({"midi_port", "stop_event", "key_delay_us"})
_MACRO_FIELDS = frozenset({"name", "scope", "required_preconditions", "matching_events", "actions"})
_SCOPE_FIELDS = frozenset({"window_class", "window_name"})
_TYPED_FIELDS = frozenset({"type", "data"})

_MESSAGE_FIELDS: dict[MessageKind, tuple[str, ...]] = {
    MessageKind.NOTE_OFF: ("note", "velocity"),
    MessageKind.NOTE_ON: ("note", "velocity"),
    MessageKind.POLY_AFTERTOUCH: ("note", "pressure"),
    MessageKind.CONTROL_CHANGE: ("control", "value"),
    MessageKind.PROGRAM_CHANGE: ("program",),
    MessageKind.CHANNEL_AFTERTOUCH: ("pressure",),
    MessageKind.PITCH_BEND: ("value",),
}

_CONDITION_FIELDS: dict[str, tuple[str, ...]] = {
    "note_held": ("note",),
    "control_value": ("control", "value"),
    "program": ("program",),
    "pitch_bend": ("value",),
}

_CHANNEL_MAX = 15
_DATA_MAX = 127
_PITCH_BEND_MAX = 16383

_STRING_MODES = {mode.value: mode for mode in StringMatchMode}


def resolve(raw: object) -> Config:
    root = expect_mapping(raw, "")
    _reject_unknown(root, _ROOT_FIELDS, "")

    settings_raw = get_mapping(root, "settings", "")
    settings = _resolve_settings(settings_raw, "settings") if settings_raw is not None else GlobalSettings()

    macros_raw = get_list(root, "macros", "", required=True)
    assert macros_raw is not None
    macros = tuple(
        _resolve_macro(item, join("macros", index)) for index, item in enumerate(macros_raw)
    )
    return Config(macros=macros, settings=settings)


def _reject_unknown(data: RawMapping, allowed: frozenset[str], path: str) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        where = path or "<root>"
        expected = ", ".join(sorted(allowed))
        raise InvalidConfigError(
            f"{where}: unknown field(s) {', '.join(unknown)} (expected any of: {expected})"
        )


def _resolve_settings(data: RawMapping, path: str) -> GlobalSettings:
    _reject_unknown(data, _SETTINGS_FIELDS, path)

    key_delay_us = get_integer(data, "key_delay_us", path)
    if key_delay_us is None:
        key_delay_us = DEFAULT_KEY_DELAY_US
    elif key_delay_us < 0:
        raise InvalidConfigError(
            f"{join(path, 'key_delay_us')}: should be 0 or more, found {key_delay_us}"
        )

    stop_event = DEFAULT_STOP_EVENT
    if data.get("stop_event") is not None:
        stop_event = _resolve_event_matcher(data["stop_event"], join(path, "stop_event"))

    return GlobalSettings(
        midi_port=get_string(data, "midi_port", path),
        stop_event=stop_event,
        key_delay_us=key_delay_us,
    )


def _resolve_macro(raw: object, path: str) -> Macro:
    data = expect_mapping(raw, path)
    _reject_unknown(data, _MACRO_FIELDS, path)

    builder = MacroBuilder.from_event_matchers(_resolve_event_matchers(data, path))

    name = get_string(data, "name", path)
    if name is not None:
        builder.set_name(name)

    scope = get_mapping(data, "scope", path)
    if scope is not None:
        builder.set_scope(_resolve_scope(scope, join(path, "scope")))

    preconditions = get_list(data, "required_preconditions", path)
    if preconditions is not None:
        field_path = join(path, "required_preconditions")
        builder.set_preconditions(
            _resolve_precondition(item, join(field_path, index))
            for index, item in enumerate(preconditions)
        )

    actions = get_list(data, "actions", path, required=True)
    assert actions is not None
    builder.set_actions(_resolve_actions(actions, join(path, "actions")))

    return builder.build()


def _resolve_event_matchers(data: RawMapping, path: str) -> list[EventMatcher]:
    field_path = join(path, "matching_events")
    raw = data.get("matching_events")
    if raw is None:
        raise missing_error(field_path)
    if isinstance(raw, dict):
        return [_resolve_event_matcher(raw, field_path)]
    items = expect_list(raw, field_path)
    if not items:
        raise InvalidConfigError(f"{field_path}: at least one matching event is required")
    return [_resolve_event_matcher(item, join(field_path, index)) for index, item in enumerate(items)]


def _typed_entry(raw: object, path: str) -> tuple[str, Any]:
    data = expect_mapping(raw, path)
    _reject_unknown(data, _TYPED_FIELDS, path)
    entry_type = get_string(data, "type", path, required=True)
    assert entry_type is not None
    if "data" not in data or data["data"] is None:
        raise missing_error(join(path, "data"))
    return entry_type, data["data"]


def _resolve_event_matcher(raw: object, path: str) -> EventMatcher:
    entry_type, payload = _typed_entry(raw, path)
    if entry_type != "midi":
        raise InvalidConfigError(f"{join(path, 'type')}: unsupported event type '{entry_type}' (expected midi)")

    data_path = join(path, "data")
    data = expect_mapping(payload, data_path)
    message_type = get_string(data, "message_type", data_path, required=True)
    try:
        kind = MessageKind(message_type)
    except ValueError:
        allowed = ", ".join(item.value for item in MessageKind)
        raise InvalidConfigError(
            f"{join(data_path, 'message_type')}: unknown message type '{message_type}' (expected one of {allowed})"
        ) from None

    field_names = _MESSAGE_FIELDS[kind]
    _reject_unknown(data, frozenset({"message_type", "channel", *field_names}), data_path)

    channel = _resolve_number_matcher(data, "channel", data_path, _CHANNEL_MAX)
    upper = _PITCH_BEND_MAX if kind is MessageKind.PITCH_BEND else _DATA_MAX
    values = [_resolve_number_matcher(data, name, data_path, upper) for name in field_names]
    return MidiEventMatcher(kind, channel, *values)


def _resolve_number_matcher(
    data: RawMapping, key: str, path: str, upper: int
) -> NumberMatcher | None:
    """Absent → don't care; integer → exact; ``"any"``; ``{min, max}`` → inclusive range."""
    raw = data.get(key)
    if raw is None:
        return None
    field_path = join(path, key)

    if isinstance(raw, str) and raw.strip().lower() == "any":
        return NumberMatcher.any()

    if isinstance(raw, int) and not isinstance(raw, bool):
        _check_bounds(raw, field_path, upper)
        return NumberMatcher.val(raw)

    if isinstance(raw, dict):
        bounds = expect_mapping(raw, field_path)
        _reject_unknown(bounds, frozenset({"min", "max"}), field_path)
        low = get_integer(bounds, "min", field_path)
        high = get_integer(bounds, "max", field_path)
        if low is None and high is None:
            raise InvalidConfigError(f"{field_path}: range needs at least one of min, max")
        if low is not None:
            _check_bounds(low, join(field_path, "min"), upper)
        if high is not None:
            _check_bounds(high, join(field_path, "max"), upper)
        try:
            return NumberMatcher.range(low, high)
        except ValueError as exc:
            raise InvalidConfigError(f"{field_path}: {exc}") from exc

    raise type_error(field_path, "integer, 'any', or {min, max} mapping", raw)


def _check_bounds(value: int, path: str, upper: int) -> None:
    if value < 0 or value > upper:
        raise InvalidConfigError(f"{path}: should be between 0 and {upper}, found {value}")


def _resolve_string_matcher(raw: object, path: str) -> StringMatcher:
    """A plain string matches exactly; a mapping picks one mode."""
    if isinstance(raw, str):
        return StringMatcher.equals(raw)

    data = expect_mapping(raw, path)
    _reject_unknown(data, frozenset({*_STRING_MODES, "case_sensitive"}), path)
    modes = [key for key in data if key in _STRING_MODES]
    if len(modes) != 1:
        expected = ", ".join(_STRING_MODES)
        raise InvalidConfigError(f"{path}: expected exactly one of {expected}, found {len(modes)}")

    mode = _STRING_MODES[modes[0]]
    if mode is StringMatchMode.ANY:
        if get_bool(data, "any", path) is not True:
            raise InvalidConfigError(f"{join(path, 'any')}: only 'any: true' is supported")
        return StringMatcher.any()

    pattern = get_string(data, modes[0], path, required=True)
    assert pattern is not None
    case_sensitive = get_bool(data, "case_sensitive", path)
    try:
        return StringMatcher(mode, pattern, True if case_sensitive is None else case_sensitive)
    except ValueError as exc:
        raise InvalidConfigError(f"{join(path, modes[0])}: {exc}") from exc


def _resolve_scope(data: RawMapping, path: str) -> Scope:
    _reject_unknown(data, _SCOPE_FIELDS, path)
    window_class = data.get("window_class")
    window_name = data.get("window_name")
    return Scope(
        window_class=(
            _resolve_string_matcher(window_class, join(path, "window_class"))
            if window_class is not None
            else None
        ),
        window_name=(
            _resolve_string_matcher(window_name, join(path, "window_name"))
            if window_name is not None
            else None
        ),
    )


def _resolve_precondition(raw: object, path: str) -> Precondition:
    entry_type, payload = _typed_entry(raw, path)
    if entry_type != "midi":
        raise InvalidConfigError(
            f"{join(path, 'type')}: unsupported precondition type '{entry_type}' (expected midi)"
        )

    data_path = join(path, "data")
    data = expect_mapping(payload, data_path)
    condition = get_string(data, "condition", data_path, required=True)
    field_names = _CONDITION_FIELDS.get(condition or "")
    if field_names is None:
        allowed = ", ".join(_CONDITION_FIELDS)
        raise InvalidConfigError(
            f"{join(data_path, 'condition')}: unknown condition '{condition}' (expected one of {allowed})"
        )
    _reject_unknown(data, frozenset({"condition", "channel", "invert", *field_names}), data_path)

    invert = bool(get_bool(data, "invert", data_path))
    channel = _resolve_number_matcher(data, "channel", data_path, _CHANNEL_MAX)

    if condition == "note_held":
        return NoteHeld(
            channel=channel,
            note=_resolve_number_matcher(data, "note", data_path, _DATA_MAX),
            invert=invert,
        )
    if condition == "control_value":
        return ControlValue(
            channel=channel,
            control=_resolve_number_matcher(data, "control", data_path, _DATA_MAX),
            value=_resolve_number_matcher(data, "value", data_path, _DATA_MAX),
            invert=invert,
        )
    if condition == "program":
        return ProgramSelected(
            channel=channel,
            program=_resolve_number_matcher(data, "program", data_path, _DATA_MAX),
            invert=invert,
        )
    return PitchBendValue(
        channel=channel,
        value=_resolve_number_matcher(data, "value", data_path, _PITCH_BEND_MAX),
        invert=invert,
    )


def _resolve_actions(items: list[Any], path: str) -> list[Action]:
    return [_resolve_action(item, join(path, index)) for index, item in enumerate(items)]


def _resolve_action(raw: object, path: str) -> Action:
    action_type, payload = _typed_entry(raw, path)
    builder = _ACTION_BUILDERS.get(action_type)
    if builder is None:
        allowed = ", ".join(_ACTION_BUILDERS)
        raise InvalidConfigError(
            f"{join(path, 'type')}: unknown action type '{action_type}' (expected one of {allowed})"
        )
    return builder(payload, join(path, "data"))


def _resolve_count(data: RawMapping, path: str) -> int:
    count = get_integer(data, "count", path)
    if count is None:
        return 1
    if count < 0:
        raise InvalidConfigError(f"{join(path, 'count')}: should be 0 or more, found {count}")
    return count


def _build_key_sequence(payload: object, path: str) -> Action:
    """String form sends the sequence once; mapping form takes ``sequence`` and ``count``."""
    if isinstance(payload, str):
        return KeySequence(payload, 1)
    if not isinstance(payload, dict):
        raise type_error(path, "string or mapping", payload)
    data = expect_mapping(payload, path)
    _reject_unknown(data, frozenset({"sequence", "count"}), path)
    sequence = get_string(data, "sequence", path, required=True)
    assert sequence is not None
    return KeySequence(sequence, _resolve_count(data, path))


def _build_enter_text(payload: object, path: str) -> Action:
    if isinstance(payload, str):
        return EnterText(payload, 1)
    if not isinstance(payload, dict):
        raise type_error(path, "string or mapping", payload)
    data = expect_mapping(payload, path)
    _reject_unknown(data, frozenset({"text", "count"}), path)
    text = get_string(data, "text", path, required=True)
    assert text is not None
    return EnterText(text, _resolve_count(data, path))


def _build_shell(payload: object, path: str) -> Action:
    data = expect_mapping(payload, path)
    _reject_unknown(data, frozenset({"command", "args", "env_vars"}), path)
    command = get_string(data, "command", path, required=True)
    if not command or not command.strip():
        raise InvalidConfigError(f"{join(path, 'command')}: must not be empty")
    _reject_nul(command, join(path, "command"))
    args = get_string_list(data, "args", path)
    for index, arg in enumerate(args or ()):
        _reject_nul(arg, join(join(path, "args"), index))
    env_vars = get_string_map(data, "env_vars", path)
    for name, value in (env_vars or {}).items():
        field_path = join(join(path, "env_vars"), name)
        if not name or "=" in name:
            raise InvalidConfigError(f"{field_path}: environment variable names must be non-empty and contain no '='")
        _reject_nul(name, field_path)
        _reject_nul(value, field_path)
    return Shell(
        command=command,
        args=tuple(args) if args is not None else None,
        env_vars=tuple(env_vars.items()) if env_vars is not None else None,
    )


def _reject_nul(value: str, path: str) -> None:
    if "\0" in value:
        raise InvalidConfigError(f"{path}: must not contain a NUL character")


def _build_combination(payload: object, path: str) -> Action:
    if not isinstance(payload, list):
        raise type_error(path, "list of actions", payload)
    return Combination(tuple(_resolve_actions(payload, path)))


_ACTION_BUILDERS: dict[str, Callable[[object, str], Action]] = {
    "key_sequence": _build_key_sequence,
    "enter_text": _build_enter_text,
    "shell": _build_shell,
    "combination": _build_combination,
}
