"""folioview - Navigation and viewport state for paginated document viewers."""

__version__ = "1.0.0"

from .book import Book, BookModel, Page
from .config import DEFAULT_OPTIONS, ViewerOptions, load_config, resolve_options
from .coordinator import ViewportCoordinator
from .errors import (
    ConfigError,
    FolioviewError,
    InvalidModeError,
    OptionsParseError,
    UnknownModeError,
)
from .events import EventBus, Events
from .fragment import Params, fragment_from_params, params_from_fragment
from .location import Location
from .modes import Mode
from .plugins import ReaderPlugin, register_plugin
from .reduce import ReductionFactor, next_reduce, quantize_reduce

__all__ = [
    "Book",
    "BookModel",
    "Page",
    "ViewerOptions",
    "DEFAULT_OPTIONS",
    "load_config",
    "resolve_options",
    "ViewportCoordinator",
    "FolioviewError",
    "ConfigError",
    "InvalidModeError",
    "OptionsParseError",
    "UnknownModeError",
    "EventBus",
    "Events",
    "Params",
    "fragment_from_params",
    "params_from_fragment",
    "Location",
    "Mode",
    "ReaderPlugin",
    "register_plugin",
    "ReductionFactor",
    "next_reduce",
    "quantize_reduce",
    "__version__",
]
