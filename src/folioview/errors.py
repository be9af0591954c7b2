"""Exception types for folioview."""


class FolioviewError(Exception):
    """Base exception for folioview errors."""

    pass


class InvalidModeError(FolioviewError, ValueError):
    """A mode token could not be resolved to a display mode."""

    pass


class OptionsParseError(FolioviewError):
    """A configured mode string (e.g. ``mode/2up``) is not a known mode."""

    pass


class UnknownModeError(FolioviewError, ValueError):
    """A params record carries a mode that cannot be serialized."""

    pass


class ConfigError(FolioviewError):
    """Configuration file or option values are invalid."""

    pass
