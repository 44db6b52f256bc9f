"""
Utility functions for playlist-loader.

This module provides small helpers shared by the CLI, the store and
the resolvers:
    - Playlist name normalization (names double as file names)
    - Splitting a '|'-separated list of references
    - URL detection for references

Usage:
    from playlist_loader.utils import (
        normalize_playlist_name,
        split_references,
        is_url
    )
"""

import re


# Characters stripped from playlist names (unsafe in file names)
_INVALID_NAME_CHARS = re.compile(r'[*?|/\\":<>]')
_WHITESPACE = re.compile(r"\s+")

REFERENCE_SEPARATOR = "|"


def normalize_playlist_name(raw: str) -> str:
    """
    Turn user input into a playlist name usable as a file name.

    Args:
        raw: Name as typed by the user.

    Returns:
        The name with whitespace runs replaced by '_' and the characters
        * ? | / \\ " : < > removed. May be empty.

    Examples:
        normalize_playlist_name("road trip")   # "road_trip"
        normalize_playlist_name(" a/b:c ")     # "abc"
    """
    name = _WHITESPACE.sub("_", raw.strip())
    return _INVALID_NAME_CHARS.sub("", name)


def split_references(raw: str) -> list[str]:
    """
    Split a '|'-separated list of references.

    Args:
        raw: e.g. "https://youtu.be/x | some song | https://..."

    Returns:
        Trimmed, non-empty references in input order.
    """
    return [part.strip() for part in raw.split(REFERENCE_SEPARATOR) if part.strip()]


def is_url(reference: str) -> bool:
    """Return True if the reference looks like an http(s) URL."""
    lowered = reference.strip().lower()
    return lowered.startswith("http://") or lowered.startswith("https://")
