"""Display modes and their string forms."""

from enum import IntEnum

from .errors import InvalidModeError, OptionsParseError


class Mode(IntEnum):
    """Display modes. Values match the numeric mode constants of the URL API."""

    ONE_UP = 1
    TWO_UP = 2
    THUMB = 3


# Fragment tokens, e.g. ``mode/2up``
MODE_TOKENS = {
    "1up": Mode.ONE_UP,
    "2up": Mode.TWO_UP,
    "thumb": Mode.THUMB,
}
TOKEN_FOR_MODE = {mode: token for token, mode in MODE_TOKENS.items()}

READING_MODES = (Mode.ONE_UP, Mode.TWO_UP)


def resolve_mode(value) -> Mode:
    """Resolve an enum member, its integer value, or a ``1up|2up|thumb`` token.

    Raises:
        InvalidModeError: If the value names no mode.
    """
    if isinstance(value, Mode):
        return value
    if isinstance(value, str):
        if value in MODE_TOKENS:
            return MODE_TOKENS[value]
        raise InvalidModeError(f"Invalid mode: {value!r}")
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Mode(value)
        except ValueError:
            pass
    raise InvalidModeError(f"Invalid mode: {value!r}")


def mode_string_to_mode(mode_string: str) -> Mode:
    """Convert a ``mode/<token>`` string (as found in static defaults) to a Mode.

    Raises:
        OptionsParseError: If the string is not exactly one of the known forms.
    """
    prefix, _, token = mode_string.partition("/")
    if prefix != "mode" or token not in MODE_TOKENS:
        raise OptionsParseError(f"Invalid mode string: {mode_string}")
    return MODE_TOKENS[token]


def page_view_selected_event(mode: Mode) -> str:
    """Name of the event emitted after switching into ``mode``."""
    return f"{int(mode)}PageViewSelected"
