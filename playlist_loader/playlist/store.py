"""
Thread-safe JSON storage for playlist definitions.

Each playlist is one file, <folder>/<name>.json:

    {
        "name": "road_trip",
        "authorId": "1234",
        "guildId": "5678",
        "shuffle": false,
        "tracks": ["https://youtu.be/xxx", "some song name"]
    }

The store only reads and writes these records. Loading the tracks is
the Playlist's job (see loader.py).

Usage:
    store = PlaylistStore(config.playlists.folder)
    store.create_playlist("road_trip", owner_id="1234", group_id="5678")
    store.append_tracks("road_trip", ["https://youtu.be/xxx"])
    playlist = store.get_playlist("road_trip")
"""

import json
import threading
from pathlib import Path
from typing import Any

from playlist_loader.core.exceptions import StorageError
from playlist_loader.core.logger import get_logger
from playlist_loader.playlist.loader import Playlist
from playlist_loader.playlist.shuffle import RandomSource, shuffle_in_place

logger = get_logger(__name__)


PLAYLIST_EXTENSION = ".json"


class PlaylistStore:
    """
    Playlist files in one folder.

    All public methods acquire self._lock, so a store can be shared
    between threads.

    Attributes:
        folder: Folder containing the playlist files.
    """

    def __init__(self, folder: Path, rng: RandomSource | None = None) -> None:
        """
        Initialize the store. The folder is created lazily.

        Args:
            folder: Folder containing the playlist files.
            rng: Randomness used to shuffle items of shuffled playlists,
                 and handed to the Playlist objects it builds.
        """
        self.folder = folder
        self._rng = rng
        self._lock = threading.Lock()

    def _path(self, name: str) -> Path:
        return self.folder / f"{name}{PLAYLIST_EXTENSION}"

    # =========================================================================
    # Folder
    # =========================================================================

    def folder_exists(self) -> bool:
        return self.folder.is_dir()

    def create_folder(self) -> None:
        """
        Create the playlists folder if needed.

        Raises:
            StorageError: If the folder cannot be created.
        """
        try:
            self.folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Unable to create playlists folder: {e}",
                details={"path": str(self.folder), "original_error": str(e)}
            ) from e

    def get_playlist_names(self) -> list[str]:
        """
        List stored playlist names, sorted.

        Creates the folder (and returns an empty list) if it doesn't exist.
        """
        with self._lock:
            return self._list_names()

    def _list_names(self) -> list[str]:
        if not self.folder_exists():
            self.create_folder()
            return []
        return sorted(path.stem for path in self.folder.glob(f"*{PLAYLIST_EXTENSION}"))

    # =========================================================================
    # Playlist files
    # =========================================================================

    def create_playlist(
        self,
        name: str,
        owner_id: str,
        group_id: str,
        shuffle: bool = False
    ) -> None:
        """
        Create an empty playlist file.

        Raises:
            StorageError: If the playlist exists or cannot be written.
        """
        with self._lock:
            self.create_folder()
            path = self._path(name)
            if path.exists():
                raise StorageError(
                    f"Playlist '{name}' already exists",
                    details={"file_path": str(path)}
                )
            record = {
                "name": name,
                "authorId": owner_id,
                "guildId": group_id,
                "shuffle": shuffle,
                "tracks": [],
            }
            self._write_record(path, record)
        logger.info(f"Created playlist '{name}'")

    def delete_playlist(self, name: str) -> None:
        """
        Delete a playlist file.

        Raises:
            StorageError: If the playlist doesn't exist or cannot be removed.
        """
        with self._lock:
            path = self._path(name)
            if not path.exists():
                raise StorageError(
                    f"Playlist '{name}' doesn't exist",
                    details={"file_path": str(path)}
                )
            try:
                path.unlink()
            except OSError as e:
                raise StorageError(
                    f"Unable to delete playlist '{name}': {e}",
                    details={"file_path": str(path), "original_error": str(e)}
                ) from e
        logger.info(f"Deleted playlist '{name}'")

    def append_tracks(self, name: str, references: list[str]) -> int:
        """
        Append references to a playlist.

        Returns:
            Number of references appended.

        Raises:
            StorageError: If the playlist doesn't exist, is corrupted,
                          or cannot be written.
        """
        with self._lock:
            path = self._path(name)
            if not path.exists():
                raise StorageError(
                    f"Playlist '{name}' doesn't exist",
                    details={"file_path": str(path)}
                )
            record = self._read_record(path)
            record["tracks"].extend(references)
            self._write_record(path, record)
        logger.info(f"Appended {len(references)} items to playlist '{name}'")
        return len(references)

    def get_playlist(self, name: str) -> Playlist | None:
        """
        Build a Playlist from its file.

        If the record's shuffle flag is set, the item order is shuffled
        before the Playlist is built.

        Returns:
            The Playlist, or None if no such playlist exists.

        Raises:
            StorageError: If the file is unreadable or corrupted.
        """
        with self._lock:
            if name not in self._list_names():
                return None
            record = self._read_record(self._path(name))

        items = list(record["tracks"])
        shuffle = bool(record.get("shuffle", False))
        if shuffle:
            shuffle_in_place(items, self._rng)

        return Playlist(
            name=name,
            items=items,
            shuffle=shuffle,
            owner_id=str(record.get("authorId", "")),
            group_id=str(record.get("guildId", "")),
            rng=self._rng,
        )

    def get_user_playlist_count(self, user_id: str) -> int:
        """
        Count the playlists created by a user.

        Unreadable playlist files are skipped with a warning.
        """
        count = 0
        with self._lock:
            for name in self._list_names():
                try:
                    record = self._read_record(self._path(name))
                except StorageError as e:
                    logger.warning(f"Skipping playlist '{name}': {e.message}")
                    continue
                if str(record.get("authorId", "")) == user_id:
                    count += 1
        return count

    # =========================================================================
    # Record I/O (lock held by caller)
    # =========================================================================

    def _read_record(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                record = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(
                f"Playlist file corrupted: {path.name}",
                details={"file_path": str(path), "line": e.lineno}
            ) from e
        except OSError as e:
            raise StorageError(
                f"Unable to read playlist file {path.name}: {e}",
                details={"file_path": str(path), "original_error": str(e)}
            ) from e

        if not isinstance(record, dict) or not isinstance(record.get("tracks"), list):
            raise StorageError(
                f"Playlist file has unexpected structure: {path.name}",
                details={"file_path": str(path)}
            )
        return record

    def _write_record(self, path: Path, record: dict[str, Any]) -> None:
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StorageError(
                f"Unable to write playlist file {path.name}: {e}",
                details={"file_path": str(path), "original_error": str(e)}
            ) from e
