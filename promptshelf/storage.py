"""Storage backends for the prompt library.

A backend loads and saves the whole library as one unit. The backend is
chosen once from configuration (see :func:`open_backend`); callers never
switch backends mid-run.

Supported backends:
    - json    A single JSON document on local disk
    - memory  In-process only, nothing is written
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from promptshelf.config import Config
from promptshelf.errors import StorageError
from promptshelf.models import LibraryData

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """Loads and saves a complete LibraryData snapshot."""

    name: str = "abstract"

    @abstractmethod
    def load(self) -> LibraryData:
        ...

    @abstractmethod
    def save(self, data: LibraryData) -> None:
        ...


class MemoryBackend(StorageBackend):
    """Keeps the library in memory. Useful for tests and dry runs."""

    name = "memory"

    def __init__(self, data: LibraryData | None = None) -> None:
        self._data = copy.deepcopy(data) if data else LibraryData()

    def load(self) -> LibraryData:
        return copy.deepcopy(self._data)

    def save(self, data: LibraryData) -> None:
        self._data = copy.deepcopy(data)


class JsonFileBackend(StorageBackend):
    """Stores the library as one JSON file, replaced atomically on save."""

    name = "json"

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> LibraryData:
        if not self.path.exists():
            logger.debug("No library at %s, starting empty", self.path)
            return LibraryData()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"Library file {self.path} is not valid JSON: {e}")
        except OSError as e:
            raise StorageError(f"Could not read library file {self.path}: {e}")

        try:
            data = LibraryData.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Library file {self.path} is malformed: {e}")

        logger.debug(
            "Loaded %d prompts, %d projects, %d categories from %s",
            len(data.prompts),
            len(data.projects),
            len(data.categories),
            self.path,
        )
        return data

    def save(self, data: LibraryData) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".library-", suffix=".json", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data.to_dict(), f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Could not write library file {self.path}: {e}")

        logger.debug("Saved library to %s", self.path)


def open_backend(config: Config) -> StorageBackend:
    """Return the backend named by ``config.storage``.

    Raises:
        StorageError: If the configured backend is unknown.
    """
    if config.storage == "json":
        backend: StorageBackend = JsonFileBackend(config.library_path)
    elif config.storage == "memory":
        backend = MemoryBackend()
    else:
        raise StorageError(
            f"Unknown storage backend '{config.storage}'. Supported: json, memory"
        )

    logger.info("Using %s storage backend", backend.name)
    return backend
