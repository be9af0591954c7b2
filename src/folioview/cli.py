"""Command-line interface for folioview."""

import asyncio
import logging
from pathlib import Path

import click
import yaml

from . import __version__
from .book import BookModel
from .config import (
    CONFIG_FILENAME,
    DEFAULT_REDUCTION_FACTORS,
    config_to_dict,
    create_default_config,
    find_config_file,
    load_config,
    resolve_options,
)
from .coordinator import ViewportCoordinator
from .errors import FolioviewError
from .fragment import URL_MODES, Params, fragment_from_params, params_from_fragment
from .location import Location
from .modes import MODE_TOKENS, TOKEN_FOR_MODE
from .reduce import (
    ZOOM_DIRECTIONS,
    ReductionFactor,
    next_reduce,
    quantize_reduce,
    sort_reduction_factors,
)


@click.group()
@click.version_option(version=__version__, prog_name="folioview")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
def main(verbose):
    """Navigation and viewport state for paginated document viewers.

    folioview decodes and encodes viewer URL fragments, steps through zoom
    levels, and runs a headless viewer against a book manifest.

    \b
    Quick start:
      folioview config init                    # Create .folioview.yaml
      folioview fragment decode "page/5/mode/2up"
      folioview fragment encode --index 5 --mode 2up
      folioview zoom next 3 in
      folioview simulate book.yaml -x next -x mode:thumb
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Fragments


@main.group()
def fragment():
    """Decode and encode viewer URL fragments."""
    pass


def _params_to_dict(params: Params) -> dict:
    data = {}
    for key in params.keys():
        value = getattr(params, key)
        if key == "mode":
            value = TOKEN_FOR_MODE[value]
        data[key] = value
    return data


@fragment.command("decode")
@click.argument("value")
def fragment_decode(value):
    """Show the parameters encoded in a fragment.

    Accepts the path form ("page/n5/mode/2up") and the legacy bare index
    ("42"), with or without a leading "#".
    """
    params = params_from_fragment(value)
    data = _params_to_dict(params)
    if not data:
        click.echo("(no parameters)")
        return
    click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), nl=False)


@fragment.command("encode")
@click.option("-i", "--index", type=int, help="Zero-based leaf index")
@click.option("-p", "--page", help="Page number (wins over --index)")
@click.option("-m", "--mode", type=click.Choice(sorted(MODE_TOKENS)), help="Display mode")
@click.option("-s", "--search", help="Search term")
@click.option(
    "--url-mode",
    type=click.Choice(URL_MODES),
    default="hash",
    show_default=True,
    help="URL mode; the search term is only encoded in hash mode",
)
def fragment_encode(index, page, mode, search, url_mode):
    """Build a fragment from parameters."""
    params = Params(
        index=index,
        page=page,
        mode=MODE_TOKENS[mode] if mode else None,
        search=search,
    )
    try:
        click.echo(fragment_from_params(params, url_mode))
    except FolioviewError as e:
        raise click.ClickException(str(e))


# Zoom


def _factors(values: tuple) -> list[ReductionFactor]:
    if not values:
        return sort_reduction_factors(DEFAULT_REDUCTION_FACTORS)
    return sort_reduction_factors(ReductionFactor(value) for value in values)


_factor_option = click.option(
    "-f",
    "--factor",
    "factors",
    type=float,
    multiple=True,
    help="Available reduction factor (can specify multiple; default: built-in set)",
)


@main.group()
def zoom():
    """Choose among reduction factors (2 = half size)."""
    pass


@zoom.command("next")
@click.argument("current", type=float)
@click.argument("direction", type=click.Choice(ZOOM_DIRECTIONS))
@_factor_option
def zoom_next(current, direction, factors):
    """Step from CURRENT to the next factor in DIRECTION."""
    result = next_reduce(current, direction, _factors(factors))
    click.echo(f"{result.reduce:g}")


@zoom.command("quantize")
@click.argument("reduce", type=float)
@_factor_option
def zoom_quantize(reduce, factors):
    """Snap REDUCE to the closest available factor."""
    result = quantize_reduce(reduce, _factors(factors))
    click.echo(f"{result.reduce:g}")


# Headless viewer


def _run_command(viewer: ViewportCoordinator, command: str) -> None:
    """Apply one simulate command, e.g. "next", "jump:12" or "mode:thumb"."""
    name, _, arg = command.partition(":")
    if name in ("next", "prev", "first", "last", "left", "right", "leftmost", "rightmost"):
        getattr(viewer, name)()
    elif name == "mode":
        viewer.switch_mode(arg)
    elif name == "jump":
        try:
            index = int(arg)
        except ValueError:
            raise click.ClickException(f"jump needs an index: {command}")
        viewer.jump_to_index(index)
    elif name == "page":
        if not viewer.jump_to_page(arg):
            click.echo(f"Page not found: {arg}", err=True)
    elif name == "zoom":
        viewer.zoom(1 if arg == "in" else -1)
    elif name == "key":
        viewer.handle_key(arg)
    elif name == "fullscreen":
        asyncio.run(viewer.toggle_fullscreen())
        viewer.settle()
    elif name == "search":
        viewer.search(arg, go_to_first_result=True)
    elif name == "resize":
        try:
            viewer.on_window_resize(int(arg))
        except ValueError:
            raise click.ClickException(f"resize needs a width: {command}")
    elif name == "bookmark":
        bookmarks = viewer.plugins.enabled("bookmarks")
        if bookmarks is None:
            raise click.ClickException("bookmark needs --bookmarks-file")
        bookmarks.add(note=arg)
    else:
        raise click.ClickException(f"Unknown command: {command}")


def _state_file_plugin(state_file):
    """Options enabling a file-backed plugin only when a file is given."""
    options = {"enabled": bool(state_file)}
    if state_file:
        options["state_file"] = state_file
    return options


@main.command()
@click.argument("book_path", type=click.Path(exists=True, dir_okay=False))
@click.option("-u", "--url", default="/", help="Initial URL, e.g. '/#page/5/mode/1up'")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Config file path",
)
@click.option(
    "-x",
    "--command",
    "commands",
    multiple=True,
    help=(
        "Command to run after init (can specify multiple): next, prev, first, "
        "last, left, right, mode:<1up|2up|thumb>, jump:<index>, page:<page>, "
        "zoom:<in|out>, key:<key>, search:<term>, resize:<width>, fullscreen, "
        "bookmark[:<note>]"
    ),
)
@click.option("-w", "--window-width", type=int, help="Window width in pixels")
@click.option(
    "--resume-file",
    type=click.Path(dir_okay=False),
    help="Resume state file (resume is disabled without one)",
)
@click.option(
    "--bookmarks-file",
    type=click.Path(dir_okay=False),
    help="Bookmarks file (bookmarks are disabled without one)",
)
def simulate(book_path, url, config_path, commands, window_width, resume_file, bookmarks_file):
    """Run a headless viewer over a book manifest.

    BOOK_PATH is a YAML file with either "num_leafs: N" or a "pages" list
    (page_num, leaf_num, viewable, text per page). The viewer starts from
    --url and the configuration, runs each --command in order, and prints the
    final state.
    """
    plugin_overrides = {
        "plugins": {
            "resume": _state_file_plugin(resume_file),
            "bookmarks": _state_file_plugin(bookmarks_file),
        }
    }

    try:
        cfg = load_config(config_path=Path(config_path) if config_path else None)
        book = BookModel.load(Path(book_path))
        options = cfg.options
        viewer = ViewportCoordinator(
            book,
            options=resolve_options(options, plugin_overrides),
            location=Location.from_url(url),
        )
        viewer.init(window_width=window_width)
        for command in commands:
            _run_command(viewer, command)
    except FolioviewError as e:
        raise click.ClickException(str(e))

    data = {
        "fragment": viewer.fragment,
        "url": viewer.location.href,
        "mode": TOKEN_FOR_MODE[viewer.mode],
        "index": viewer.current_index(),
        "page": viewer.book.get_page_num(viewer.current_index()),
        "displayed": list(viewer.state.displayed_indices),
        "reduce": viewer.reduce,
        "fullscreen": viewer.is_fullscreen,
    }
    bookmarks = viewer.plugins.enabled("bookmarks")
    if bookmarks is not None:
        data["bookmarks"] = [bookmark.id for bookmark in bookmarks.sorted_bookmarks()]
    click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), nl=False)


# Configuration


@main.group()
def config():
    """Manage configuration."""
    pass


@config.command("init")
@click.option(
    "-d",
    "--directory",
    type=click.Path(),
    default=".",
    help="Directory to create config in",
)
def config_init(directory):
    """Create a new .folioview.yaml configuration file."""
    try:
        config_path = create_default_config(Path(directory))
        click.echo(f"Created: {config_path}")
    except FolioviewError as e:
        raise click.ClickException(str(e))


@config.command("show")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Config file path",
)
def config_show(config_path):
    """Display current configuration.

    Shows merged configuration from file, environment, and defaults.
    """
    try:
        cfg = load_config(config_path=Path(config_path) if config_path else None)
        data = config_to_dict(cfg)
        click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False))
    except FolioviewError as e:
        raise click.ClickException(str(e))


@config.command("where")
@click.option(
    "-d",
    "--directory",
    type=click.Path(exists=True),
    help="Directory to search from",
)
def config_where(directory):
    """Show which config file would be used.

    Searches up the directory tree for .folioview.yaml.
    """
    start = Path(directory) if directory else Path.cwd()
    config_path = find_config_file(start)

    if config_path:
        click.echo(f"Config file: {config_path}")
    else:
        click.echo(f"No {CONFIG_FILENAME} found (searched from {start})")
