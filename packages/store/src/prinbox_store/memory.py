"""In-memory store: the default when no persistent store is configured.

Read state lives only as long as the process. Using a MemoryStore rather
than None lets the engine always call load()/save() without conditional
checks, and doubles as the fake backend in tests.
"""

from __future__ import annotations

from prinbox_store.base import BaseStore


class MemoryStore(BaseStore):
    """Keeps blobs in a plain dict: zero configuration required."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._blobs: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self._blobs.get(key)

    def write(self, key: str, content: str) -> None:
        self._blobs[key] = content
