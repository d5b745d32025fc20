"""Focused-window tracking through X11."""

from __future__ import annotations

import logging
from typing import Any

from macropad.core.errors import AdapterInitError
from macropad.core.state import WindowInfo

LOGGER = logging.getLogger(__name__)


class X11FocusAdapter:
    def __init__(self) -> None:
        try:
            from Xlib.display import Display  # type: ignore
        except Exception as exc:  # pragma: no cover - import failure path
            raise AdapterInitError(
                "Focus tracking requires 'python-xlib'. Install dependency and retry."
            ) from exc

        try:
            self._display = Display()
        except Exception as exc:
            raise AdapterInitError(f"Could not connect to the X display: {exc}") from exc
        self._net_wm_name = self._display.intern_atom("_NET_WM_NAME")
        self._utf8_string = self._display.intern_atom("UTF8_STRING")

    def focused_window(self) -> WindowInfo | None:
        try:
            window = self._display.get_input_focus().focus
            while window and not isinstance(window, int):
                wm_class = window.get_wm_class()
                if wm_class:
                    return WindowInfo(window_class=wm_class[1], window_name=self._window_name(window))
                window = window.query_tree().parent
        except Exception as exc:
            LOGGER.warning("Could not query focused window: %s", exc)
        return None

    def _window_name(self, window: Any) -> str | None:
        prop = window.get_full_property(self._net_wm_name, self._utf8_string)
        if prop is not None and prop.value:
            value = prop.value
            return value.decode("utf-8", "replace") if isinstance(value, bytes) else str(value)
        name = window.get_wm_name()
        return str(name) if name else None
