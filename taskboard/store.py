"""
TASKBOARD - Persistent Store Adapters
=====================================
Key-value byte storage the board is written through to.

The board lives under one fixed key. Stores raise PersistFailure on I/O
errors; the manager treats writes as best effort.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from .exceptions import PersistFailure

logger = logging.getLogger("taskboard.store")


class BoardStore(Protocol):
    def read(self, key: str) -> Optional[bytes]:
        ...

    def write(self, key: str, data: bytes) -> None:
        ...


class MemoryStore:
    """In-process store (tests, throwaway boards)"""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def read(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def write(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)


class FileStore:
    """
    File-backed store: one JSON file per key.

    Primary storage: {directory}/{key}.json
    Writes go to a temp file in the same directory and are renamed into place.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _get_file(self, key: str) -> Path:
        """Get path to the file holding a key"""
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[bytes]:
        file_path = self._get_file(key)
        if not file_path.exists():
            logger.debug(f"No stored board at {file_path}")
            return None
        try:
            return file_path.read_bytes()
        except OSError as e:
            logger.warning(f"Error reading {file_path}: {e}")
            return None

    def write(self, key: str, data: bytes) -> None:
        file_path = self._get_file(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, file_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistFailure(f"Could not write {file_path}: {e}") from e
