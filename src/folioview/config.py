"""Configuration management for folioview.

Viewer options are an immutable :class:`ViewerOptions` value. Overrides are
applied explicitly, layer by layer, with :func:`resolve_options`. Options can
be loaded from ``.folioview.yaml`` files (found by directory traversal) with
environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError
from .fragment import URL_MODES
from .reduce import ReductionFactor, sort_reduction_factors
from .utils import parse_animation_speed

CONFIG_FILENAME = ".folioview.yaml"
ENV_URL_MODE = "FOLIOVIEW_URL_MODE"
ENV_DEFAULTS = "FOLIOVIEW_DEFAULTS"

PAGE_PROGRESSIONS = ("lr", "rl")
ONE_PAGE_AUTOFITS = ("auto", "height", "width", "none")

DEFAULT_REDUCTION_FACTORS = (
    ReductionFactor(0.5),
    ReductionFactor(1),
    ReductionFactor(2),
    ReductionFactor(3),
    ReductionFactor(4),
    ReductionFactor(6),
)


@dataclass(frozen=True)
class ViewerOptions:
    """Options a viewer is constructed with. Never mutated after creation."""

    # Fragment-format defaults, e.g. "mode/1up" or "page/5/mode/2up"
    defaults: str | None = None
    # Leaf to open on when nothing else says otherwise (books > 2 pages)
    title_leaf: int | None = None
    page_progression: str = "lr"
    url_mode: str = "hash"
    url_history_base_path: str = "/"
    enable_url_plugin: bool = True
    flip_speed: int | str = "fast"
    reduction_factors: tuple[ReductionFactor, ...] = DEFAULT_REDUCTION_FACTORS
    one_page_min_breakpoint: int = 800
    one_page_autofit: str = "auto"
    two_page_controls_visible: bool = True
    thumb_columns: int = 6
    start_fullscreen: bool = False
    auto_resize: bool = True
    show_navbar: bool = True
    protected: bool = False
    # Per-plugin options, keyed by plugin name
    plugins: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    plugins_dir: str | None = None

    def validate(self) -> None:
        """Validate option values.

        Raises:
            ConfigError: If an option is invalid.
        """
        if self.page_progression not in PAGE_PROGRESSIONS:
            raise ConfigError(
                f"Invalid page_progression: {self.page_progression}. "
                f"Must be one of: {', '.join(PAGE_PROGRESSIONS)}"
            )
        if self.url_mode not in URL_MODES:
            raise ConfigError(
                f"Invalid url_mode: {self.url_mode}. "
                f"Must be one of: {', '.join(URL_MODES)}"
            )
        if self.one_page_autofit not in ONE_PAGE_AUTOFITS:
            raise ConfigError(
                f"Invalid one_page_autofit: {self.one_page_autofit}. "
                f"Must be one of: {', '.join(ONE_PAGE_AUTOFITS)}"
            )
        if not self.reduction_factors:
            raise ConfigError("reduction_factors must not be empty")
        for rf in self.reduction_factors:
            if rf.reduce <= 0:
                raise ConfigError(f"Reduction factor must be positive: {rf.reduce}")
        if parse_animation_speed(self.flip_speed) is None:
            raise ConfigError(f"Invalid flip_speed: {self.flip_speed!r}")
        if self.thumb_columns < 1:
            raise ConfigError("thumb_columns must be at least 1")
        if self.title_leaf is not None and self.title_leaf < 0:
            raise ConfigError("title_leaf must be non-negative")


DEFAULT_OPTIONS = ViewerOptions()

_OPTION_NAMES = {f.name for f in fields(ViewerOptions)}


def resolve_options(
    base: ViewerOptions = DEFAULT_OPTIONS, *layers: Mapping[str, Any] | None
) -> ViewerOptions:
    """Apply override layers over ``base``, in order, and validate.

    Later layers win. The ``plugins`` section is merged per plugin rather
    than replaced. ``reduction_factors`` may be given as dicts.

    Raises:
        ConfigError: On unknown option names or invalid values.
    """
    options = base
    for layer in layers:
        if not layer:
            continue
        unknown = set(layer) - _OPTION_NAMES
        if unknown:
            raise ConfigError(f"Unknown option(s): {', '.join(sorted(unknown))}")

        updates = dict(layer)
        if "plugins" in updates:
            updates["plugins"] = _merge_plugin_options(
                options.plugins, updates["plugins"] or {}
            )
        if "reduction_factors" in updates:
            updates["reduction_factors"] = _coerce_reduction_factors(
                updates["reduction_factors"]
            )
        options = replace(options, **updates)

    options.validate()
    return options


def _merge_plugin_options(
    current: Mapping[str, Mapping[str, Any]], new: Mapping[str, Any]
) -> dict[str, dict[str, Any]]:
    if not isinstance(new, Mapping):
        raise ConfigError("'plugins' must be a mapping of plugin name to options")
    merged = {name: dict(opts) for name, opts in current.items()}
    for name, opts in new.items():
        if opts is None:
            opts = {}
        if not isinstance(opts, Mapping):
            raise ConfigError(f"Options for plugin '{name}' must be a mapping")
        merged.setdefault(name, {}).update(opts)
    return merged


def _coerce_reduction_factors(value) -> tuple[ReductionFactor, ...]:
    if not isinstance(value, (list, tuple)):
        raise ConfigError("reduction_factors must be a list")
    factors = []
    for item in value:
        if isinstance(item, ReductionFactor):
            factors.append(item)
        elif isinstance(item, Mapping) and "reduce" in item:
            try:
                factors.append(ReductionFactor.from_dict(dict(item)))
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid reduction factor {item!r}: {e}") from e
        else:
            raise ConfigError(f"Invalid reduction factor {item!r}")
    return tuple(sort_reduction_factors(factors))


@dataclass
class FolioviewConfig:
    """Loaded configuration: resolved options plus where they came from."""

    options: ViewerOptions = DEFAULT_OPTIONS
    config_path: Path | None = None


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find .folioview.yaml by traversing up from start_path.

    Args:
        start_path: Directory to start searching from. Defaults to cwd.

    Returns:
        Path to config file if found, None otherwise.
    """
    if start_path is None:
        start_path = Path.cwd()
    else:
        start_path = Path(start_path).resolve()

    if start_path.is_file():
        start_path = start_path.parent

    current = start_path
    while True:
        config_path = current / CONFIG_FILENAME
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    config_path: Path | None = None,
    start_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> FolioviewConfig:
    """Load configuration from file, environment, and overrides.

    Priority (highest to lowest):
    1. ``overrides`` (e.g. CLI arguments)
    2. Environment variables (FOLIOVIEW_URL_MODE, FOLIOVIEW_DEFAULTS)
    3. Config file (.folioview.yaml)
    4. Defaults

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file(start_path)

    file_layer: dict[str, Any] = {}
    if config_path is not None:
        file_layer = _load_config_file(config_path)

    env_layer: dict[str, Any] = {}
    env_url_mode = os.environ.get(ENV_URL_MODE)
    if env_url_mode:
        env_layer["url_mode"] = env_url_mode
    env_defaults = os.environ.get(ENV_DEFAULTS)
    if env_defaults:
        env_layer["defaults"] = env_defaults

    options = resolve_options(DEFAULT_OPTIONS, file_layer, env_layer, overrides)
    return FolioviewConfig(options=options, config_path=config_path)


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Read the option layer from a YAML file.

    Relative ``plugins_dir`` paths are resolved against the file's directory.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    if data.get("plugins_dir"):
        plugins_dir = Path(data["plugins_dir"])
        if not plugins_dir.is_absolute():
            plugins_dir = config_path.parent / plugins_dir
        data["plugins_dir"] = str(plugins_dir)

    return data


def create_default_config(path: Path | None = None) -> Path:
    """Create a default .folioview.yaml config file.

    Raises:
        ConfigError: If file already exists or cannot be written.
    """
    if path is None:
        path = Path.cwd()
    else:
        path = Path(path)

    config_path = path / CONFIG_FILENAME

    if config_path.exists():
        raise ConfigError(f"Config file already exists: {config_path}")

    config_content = """# folioview configuration

# Initial view in fragment form, e.g. "mode/1up" or "page/5/mode/2up"
# defaults: "mode/2up"

# Reading direction: "lr" (left-to-right) or "rl" (right-to-left)
page_progression: "lr"

# How state is written to the URL: "hash" (#page/5) or "history" (/page/5)
url_mode: "hash"
url_history_base_path: "/"

# Two-page flip speed: milliseconds, "fast" or "slow"
flip_speed: "fast"

# Windows at most this wide open in one-page mode
one_page_min_breakpoint: 800

# Available zoom levels (2 = half size)
reduction_factors:
  - {reduce: 0.5}
  - {reduce: 1}
  - {reduce: 2}
  - {reduce: 3}
  - {reduce: 4}
  - {reduce: 6}

# Plugin options, keyed by plugin name
plugins:
  resume:
    enabled: true
  search:
    enabled: true

# Extra plugins are loaded from .py files in this directory
# plugins_dir: "plugins"
"""

    try:
        config_path.write_text(config_content)
    except OSError as e:
        raise ConfigError(f"Cannot write config file: {e}") from e

    return config_path


def options_to_dict(options: ViewerOptions) -> dict[str, Any]:
    """Convert options to plain data for display."""
    result: dict[str, Any] = {}
    for f in fields(ViewerOptions):
        value = getattr(options, f.name)
        if f.name == "reduction_factors":
            value = [rf.to_dict() for rf in value]
        elif f.name == "plugins":
            value = {name: dict(opts) for name, opts in value.items()}
        result[f.name] = value
    return result


def config_to_dict(config: FolioviewConfig) -> dict[str, Any]:
    """Convert config to dictionary for display."""
    result = options_to_dict(config.options)
    result["config_path"] = str(config.config_path) if config.config_path else None
    return result
