"""
Core module for playlist-loader.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with multiple outputs

Usage:
    from playlist_loader.core import (
        Config, load_config,
        setup_logging, get_logger,
        PlaylistLoaderError, ConfigError, StorageError
    )
"""

from playlist_loader.core.config import (
    Config,
    LoggingConfig,
    PlaybackConfig,
    PlaylistsConfig,
    ResolverConfig,
    load_config,
)
from playlist_loader.core.exceptions import (
    ConfigError,
    PlaylistLoaderError,
    ResolverError,
    StorageError,
)
from playlist_loader.core.logger import (
    get_logger,
    log_load_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "PlaylistsConfig",
    "PlaybackConfig",
    "ResolverConfig",
    "LoggingConfig",
    "load_config",
    # Exceptions
    "PlaylistLoaderError",
    "ConfigError",
    "StorageError",
    "ResolverError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_load_failure",
    "shutdown_logging",
]
