"""Domain-specific errors for macropad."""


class MacropadError(Exception):
    """Base error for macropad."""


class ConfigError(MacropadError):
    """Base error for configuration loading and resolution."""


class InvalidConfigError(ConfigError):
    """Raised when a configuration field is missing, malformed, or out of range."""


class UnsupportedVersionError(ConfigError):
    """Raised when no resolver exists for a configuration schema version."""


class ConfigLoadError(ConfigError):
    """Raised when a configuration source cannot be read or parsed."""


class BuilderConsumedError(MacropadError):
    """Raised when a MacroBuilder is used after build()."""


class AdapterError(MacropadError):
    """Base device/focus/keyboard adapter error."""


class AdapterInitError(AdapterError):
    """Raised when an adapter backend is unavailable at startup."""
