"""
Configuration management for playlist-loader.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - Folder holding the playlist JSON files
    - Maximum allowed track duration
    - Resolver settings (worker threads, search results, cookie file)
    - Directory for log files

Every section is optional; missing values fall back to defaults.

Example config.yaml:
    playlists:
      folder: "Playlists"

    playback:
      max_seconds: 600  # 0 disables the limit

    resolver:
      threads: 4
      search_results: 5
      cookie_file: null  # Optional: path to cookies.txt

    logging:
      directory: "logs"
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from playlist_loader.core.exceptions import ConfigError


# Default configuration file name (in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_PLAYLISTS_FOLDER = "Playlists"
DEFAULT_LOG_DIRECTORY = "logs"
DEFAULT_THREADS = 4
DEFAULT_SEARCH_RESULTS = 5


@dataclass(frozen=True)
class PlaylistsConfig:
    """
    Playlist storage configuration.

    Attributes:
        folder: Absolute path of the folder containing one <name>.json
                file per playlist. Created on demand.
    """
    folder: Path


@dataclass(frozen=True)
class PlaybackConfig:
    """
    Playback limits.

    Attributes:
        max_seconds: Longest track allowed, in seconds.
                     0 (the default) means no limit.
    """
    max_seconds: int = 0

    def is_too_long(self, track: Any) -> bool:
        """
        Duration policy used when loading playlists.

        Args:
            track: Anything with a duration_ms attribute.

        Returns:
            True if a limit is set and the track's rounded duration in
            seconds is above it.
        """
        if self.max_seconds <= 0:
            return False
        return round(track.duration_ms / 1000) > self.max_seconds


@dataclass(frozen=True)
class ResolverConfig:
    """
    Track resolver configuration.

    Attributes:
        threads: Number of worker threads shared by all playlists.
        search_results: How many results a text search asks for.
                        Only the first one is used when loading.
        cookie_file: Optional cookies.txt passed to yt-dlp.
    """
    threads: int
    search_results: int
    cookie_file: Path | None


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    Attributes:
        directory: Absolute path where log files are written.
    """
    directory: Path


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable (frozen dataclass).

    Example:
        config = load_config()
        print(f"Playlists in: {config.playlists.folder}")
        print(f"Max duration: {config.playback.max_seconds}s")
    """
    playlists: PlaylistsConfig
    playback: PlaybackConfig
    resolver: ResolverConfig
    logging: LoggingConfig


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is not found, has invalid YAML syntax,
                     is not a dictionary, or contains invalid values.

    Thread Safety:
        This function is NOT thread-safe. Call it once at startup.
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file means "all defaults"
    if raw_config is None:
        raw_config = {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return Config(
        playlists=_parse_playlists_config(_section(raw_config, "playlists")),
        playback=_parse_playback_config(_section(raw_config, "playback")),
        resolver=_parse_resolver_config(_section(raw_config, "resolver")),
        logging=_parse_logging_config(_section(raw_config, "logging")),
    )


def _section(raw_config: dict[str, Any], name: str) -> dict[str, Any]:
    """Return an optional section, checking it is a dictionary."""
    section = raw_config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _parse_path(value: Any, field: str, default: str) -> Path:
    if value is None:
        value = default
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{field}' must be a non-empty string",
            details={"field": field}
        )
    return Path(value.strip()).expanduser().resolve()


def _parse_positive_int(value: Any, field: str, default: int) -> int:
    if value is None:
        return default
    # bool is a subclass of int, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(
            f"'{field}' must be a positive integer",
            details={"field": field, "value": value}
        )
    return value


def _parse_playlists_config(section: dict[str, Any]) -> PlaylistsConfig:
    folder = _parse_path(section.get("folder"), "playlists.folder", DEFAULT_PLAYLISTS_FOLDER)
    return PlaylistsConfig(folder=folder)


def _parse_playback_config(section: dict[str, Any]) -> PlaybackConfig:
    """
    Parse the playback section.

    Raises:
        ConfigError: If max_seconds is not a non-negative integer.
    """
    max_seconds = section.get("max_seconds", 0)
    if max_seconds is None:
        max_seconds = 0
    if isinstance(max_seconds, bool) or not isinstance(max_seconds, int) or max_seconds < 0:
        raise ConfigError(
            "'playback.max_seconds' must be a non-negative integer",
            details={"field": "playback.max_seconds", "value": max_seconds}
        )
    return PlaybackConfig(max_seconds=max_seconds)


def _parse_resolver_config(section: dict[str, Any]) -> ResolverConfig:
    """
    Parse the resolver section, applying defaults.

    Raises:
        ConfigError: If threads or search_results is not a positive integer,
                     or if cookie_file is set but doesn't exist.
    """
    threads = _parse_positive_int(section.get("threads"), "resolver.threads", DEFAULT_THREADS)
    search_results = _parse_positive_int(
        section.get("search_results"), "resolver.search_results", DEFAULT_SEARCH_RESULTS
    )

    cookie_file = None
    raw_cookie = section.get("cookie_file")
    if raw_cookie is not None:
        if not isinstance(raw_cookie, str):
            raise ConfigError(
                "'resolver.cookie_file' must be a string path or null",
                details={"field": "resolver.cookie_file"}
            )
        cookie_path = Path(raw_cookie).expanduser().resolve()
        if not cookie_path.exists():
            raise ConfigError(
                f"Cookie file not found: {cookie_path}",
                details={"field": "resolver.cookie_file", "path": str(cookie_path)}
            )
        cookie_file = cookie_path

    return ResolverConfig(
        threads=threads,
        search_results=search_results,
        cookie_file=cookie_file
    )


def _parse_logging_config(section: dict[str, Any]) -> LoggingConfig:
    directory = _parse_path(section.get("directory"), "logging.directory", DEFAULT_LOG_DIRECTORY)
    return LoggingConfig(directory=directory)
