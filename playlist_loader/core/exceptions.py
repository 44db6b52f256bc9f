"""
Exception classes for playlist-loader.

This module defines the custom exceptions used throughout the application.
Per-item resolution problems are NOT exceptions: they are recorded as
LoadError values on the playlist and never interrupt a load.

Exception Hierarchy:
    PlaylistLoaderError (base)
        ConfigError - Configuration file issues
        StorageError - Playlist file issues (create/delete/append/read)
        ResolverError - Resolver-side failure for a single reference
"""


class PlaylistLoaderError(Exception):
    """
    Base exception for all playlist-loader errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all playlist-loader errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., file path, reference).

    Example:
        try:
            store.create_playlist("road_trip", owner_id, group_id)
        except PlaylistLoaderError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'file_path': Playlist file involved in the error
                     - 'reference': Raw track reference that failed
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(PlaylistLoaderError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found
        - config.yaml has invalid YAML syntax
        - Invalid field values (e.g., negative thread count)

    Example:
        raise ConfigError(
            "'resolver.threads' must be a positive integer",
            details={'field': 'resolver.threads', 'value': -1}
        )
    """
    pass


class StorageError(PlaylistLoaderError):
    """
    Raised when a playlist file cannot be created, read, written or deleted.

    This is a RECOVERABLE error: it is reported to the user and the
    operation is abandoned, but the process keeps running.

    Common causes:
        - Playlist already exists (create) or doesn't exist (delete/append)
        - Playlist file is corrupted (invalid JSON or unexpected structure)
        - Permission denied or disk full

    Example:
        raise StorageError(
            "Playlist 'road_trip' doesn't exist",
            details={'file_path': '/path/to/Playlists/road_trip.json'}
        )
    """
    pass


class ResolverError(PlaylistLoaderError):
    """
    Raised by a resolver when a single reference cannot be resolved.

    This is a NON-CRITICAL error. It never escapes a load: the ordered
    resolver converts it to a ResolutionFailed outcome whose reason is
    this error's message, and the playlist records it as a LoadError.

    Example:
        raise ResolverError(
            "Video unavailable",
            details={'reference': 'https://youtube.com/watch?v=xxx'}
        )
    """
    pass
