"""Abstract blob store interface.

Every client-local backend (file, SQLite, Gist, memory) implements this
interface. The read-state and settings blobs depend on BaseStore, not on a
concrete backend, so backends are swappable without touching the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseStore(ABC):
    """Scoped key-value store of opaque text blobs.

    Backends are free to raise on I/O failure; the typed blobs built on top
    (VersionedBlob and friends) absorb and log those errors. A single write()
    must replace the whole value for its key or leave the prior value intact.
    """

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Return the blob stored under key, or None if nothing was written yet."""

    @abstractmethod
    def write(self, key: str, content: str) -> None:
        """Replace the blob stored under key."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional: subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """
