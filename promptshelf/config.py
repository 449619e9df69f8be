"""Runtime configuration read from environment variables.

    PROMPTSHELF_HOME     -- data directory (default: ~/.promptshelf)
    PROMPTSHELF_LIBRARY  -- library file (default: $PROMPTSHELF_HOME/library.json)
    PROMPTSHELF_STORAGE  -- "json" (default) or "memory"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Config:
    """Settings resolved once at startup."""

    home: Path
    library_path: Path
    storage: str = "json"


def load_config() -> Config:
    """Build a Config from the current environment."""
    home = Path(
        os.getenv("PROMPTSHELF_HOME", "").strip() or Path.home() / ".promptshelf"
    ).expanduser()
    library = os.getenv("PROMPTSHELF_LIBRARY", "").strip()
    library_path = Path(library).expanduser() if library else home / "library.json"
    storage = os.getenv("PROMPTSHELF_STORAGE", "json").lower().strip() or "json"
    return Config(home=home, library_path=library_path, storage=storage)
