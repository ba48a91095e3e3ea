"""FileStore: one JSON file per key in a local directory.

This is the default persistent store: it mirrors the browser's
localStorage model (a handful of named blobs, private to this machine)
without needing any database.
"""

from __future__ import annotations

import logging
from pathlib import Path

from prinbox_store.base import BaseStore

logger = logging.getLogger(__name__)

DEFAULT_STORE_DIR = "~/.prinbox"


class FileStore(BaseStore):
    """Stores each blob as `<directory>/<key>.json`.

    Writes land in a sibling `.tmp` file that is then renamed over the
    target, so readers see either the old blob or the new one.
    """

    def __init__(self, directory: str = DEFAULT_STORE_DIR):
        self._dir = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, content: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        target = self._path(key)
        temp_file = target.with_suffix(".tmp")
        temp_file.write_text(content, encoding="utf-8")
        temp_file.replace(target)
        logger.debug("FileStore wrote %s", target)
