"""Rule engine turning MIDI controller events into keyboard and shell macros."""

__version__ = "0.1.0"
