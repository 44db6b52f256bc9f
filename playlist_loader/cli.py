"""
Command-line interface for playlist-loader.

This module implements the CLI using Click; rich-click is used for the
output colors.

Commands:
    plist list                          List stored playlists
    plist list <name>                   Show the references of a playlist
    plist create <name> [--shuffle]     Create an empty playlist
    plist delete <name>                 Delete a playlist
    plist append <name> <refs>          Append '|'-separated references
    plist load <name> [--timeout N]     Resolve a playlist to tracks

Options:
    --config <path>                     Use this config.yaml instead of ./config.yaml

Usage:
    plist create "road trip" --shuffle
    plist append road_trip "https://youtu.be/xxx | never gonna give you up"
    plist load road_trip

Exit Codes:
    0   success
    1   configuration error or unexpected error
    2   playlist storage error (missing playlist, unreadable file, ...)
    3   load timed out
    4   other playlist-loader error
    130 interrupted by user
"""

import sys
from pathlib import Path
from typing import Callable

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.MAX_WIDTH = 100

from playlist_loader import __version__
from playlist_loader.core import (
    Config,
    ConfigError,
    PlaylistLoaderError,
    StorageError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from playlist_loader.core.logger import format_track_message
from playlist_loader.playlist import Playlist, PlaylistStore, Track, YtDlpResolver
from playlist_loader.utils import normalize_playlist_name, split_references

logger = get_logger(__name__)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.version_option(__version__, prog_name="playlist-loader")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """
    playlist-loader: Named playlists resolved to playable tracks.

    Playlists are stored as lists of URLs or search text and resolved
    with yt-dlp when loaded.

    \b
    EXAMPLES:
        plist create "road trip" --shuffle
        plist append road_trip "https://youtu.be/xxx | some song"
        plist load road_trip
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command("list")
@click.argument("name", required=False)
@click.pass_context
def list_command(ctx: click.Context, name: str | None) -> None:
    """List playlists, or the references stored in one playlist."""
    def action(config: Config) -> None:
        store = PlaylistStore(config.playlists.folder)
        if name is None:
            _print_playlist_names(store.get_playlist_names())
            return
        playlist = _get_existing_playlist(store, name)
        click.echo(f"References in '{playlist.name}':")
        for position, item in enumerate(playlist.items, start=1):
            click.echo(f"  {position}. {item}")

    _run(ctx, action)


@cli.command("create")
@click.argument("name")
@click.option("--owner", default="", help="Owner id stored with the playlist")
@click.option("--group", "group", default="", help="Group id stored with the playlist")
@click.option("--shuffle", is_flag=True, help="Shuffle the playlist when it is loaded")
@click.pass_context
def create_command(
    ctx: click.Context,
    name: str,
    owner: str,
    group: str,
    shuffle: bool
) -> None:
    """Create an empty playlist."""
    playlist_name = normalize_playlist_name(name)
    if not playlist_name:
        raise click.UsageError("Please provide a name for the playlist")

    def action(config: Config) -> None:
        store = PlaylistStore(config.playlists.folder)
        store.create_playlist(playlist_name, owner_id=owner, group_id=group, shuffle=shuffle)
        click.echo(f"Successfully created playlist '{playlist_name}'")

    _run(ctx, action)


@cli.command("delete")
@click.argument("name")
@click.pass_context
def delete_command(ctx: click.Context, name: str) -> None:
    """Delete a playlist."""
    playlist_name = normalize_playlist_name(name)

    def action(config: Config) -> None:
        store = PlaylistStore(config.playlists.folder)
        store.delete_playlist(playlist_name)
        click.echo(f"Successfully deleted playlist '{playlist_name}'")

    _run(ctx, action)


@cli.command("append")
@click.argument("name")
@click.argument("references", nargs=-1, required=True)
@click.pass_context
def append_command(ctx: click.Context, name: str, references: tuple[str, ...]) -> None:
    """Append '|'-separated URLs or search text to a playlist."""
    items = split_references(" ".join(references))
    if not items:
        raise click.UsageError("Please include URLs or search text to add")

    def action(config: Config) -> None:
        store = PlaylistStore(config.playlists.folder)
        count = store.append_tracks(name, items)
        click.echo(f"Successfully added {count} items to playlist '{name}'")

    _run(ctx, action)


@cli.command("load")
@click.argument("name")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    metavar="<seconds>",
    help="Give up waiting after this many seconds"
)
@click.pass_context
def load_command(ctx: click.Context, name: str, timeout: float | None) -> None:
    """Resolve every reference of a playlist and report the result."""
    def action(config: Config) -> None:
        store = PlaylistStore(config.playlists.folder)
        playlist = _get_existing_playlist(store, name)
        finished = _load_playlist(config, playlist, timeout)
        _print_load_result(playlist)
        if not finished:
            click.echo(
                f"Timed out after {timeout}s: {len(playlist.tracks)} tracks loaded so far",
                err=True
            )
            sys.exit(3)

    _run(ctx, action)


def _run(ctx: click.Context, action: Callable[[Config], None]) -> None:
    """
    Load configuration, set up logging and run a command body.

    Maps playlist-loader errors to exit codes and always shuts
    logging down.

    Raises:
        SystemExit: On errors (with appropriate exit code).
    """
    try:
        config = load_config(ctx.obj.get("config_path"))
        setup_logging(config.logging.directory)
        action(config)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except StorageError as e:
        click.echo(f"Playlist error: {e.message}", err=True)
        logger.error(f"Playlist error: {e.message}", exc_info=True)
        sys.exit(2)

    except PlaylistLoaderError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        shutdown_logging()


def _get_existing_playlist(store: PlaylistStore, name: str) -> Playlist:
    playlist = store.get_playlist(name)
    if playlist is None:
        raise StorageError(f"Playlist '{name}' doesn't exist", details={"name": name})
    return playlist


def _load_playlist(config: Config, playlist: Playlist, timeout: float | None) -> bool:
    """
    Load a playlist through yt-dlp and wait for it.

    Returns:
        True if loading finished, False if the timeout elapsed first.
    """
    resolver = YtDlpResolver(
        threads=config.resolver.threads,
        search_results=config.resolver.search_results,
        cookie_file=config.resolver.cookie_file
    )
    finished = False
    try:
        playlist.load(resolver, config.playback.is_too_long, on_track=_log_track)
        finished = playlist.wait(timeout)
    finally:
        resolver.shutdown(wait=finished)
    return finished


def _log_track(track: Track) -> None:
    logger.info(format_track_message(track.title, track.url))


def _print_playlist_names(names: list[str]) -> None:
    if not names:
        click.echo("There are no playlists in the playlists folder")
        return
    click.echo("Available playlists:")
    for name in names:
        click.echo(f"  {name}")


def _print_load_result(playlist: Playlist) -> None:
    tracks = playlist.tracks
    errors = playlist.errors

    click.echo(f"Tracks on '{playlist.name}':")
    for position, track in enumerate(tracks, start=1):
        click.echo(f"  {position}. {track.title} [{_format_duration(track.duration_ms)}] {track.url}")

    if errors:
        click.echo(f"{len(errors)} items failed to load:")
        for error in errors:
            click.echo(f"  {error.index + 1}. {error.item} ({error.reason})")


def _format_duration(duration_ms: int) -> str:
    """Format milliseconds as M:SS or H:MM:SS."""
    total_seconds = duration_ms // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `plist` from the command line.
    """
    cli()


if __name__ == "__main__":
    main()
