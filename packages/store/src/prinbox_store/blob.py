"""Versioned JSON documents on top of a BaseStore.

Every persisted document is a JSON object carrying a `version` field so the
layout can evolve. Persistence is never allowed to break the inbox: read and
write failures are logged here and reported as None / False, not raised.
"""

from __future__ import annotations

import json
import logging

from prinbox_store.base import BaseStore

logger = logging.getLogger(__name__)


class VersionedBlob:
    """One JSON document stored under a fixed key."""

    def __init__(self, backend: BaseStore, key: str, version: int = 1):
        self.backend = backend
        self.key = key
        self.version = version

    def read(self) -> dict | None:
        """Return the stored document, or None if missing or unreadable.

        Documents written by an older layout without a `version` field are
        returned as-is; callers decide how to interpret them.
        """
        try:
            raw = self.backend.read(self.key)
        except Exception as e:
            logger.warning("Could not read %r (%s): %s", self.key, type(e).__name__, e)
            return None
        if raw is None:
            return None

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring malformed %r blob: %s", self.key, e)
            return None
        if not isinstance(payload, dict):
            logger.warning("Ignoring %r blob: expected a JSON object, got %s", self.key, type(payload).__name__)
            return None

        stored_version = payload.get("version")
        if isinstance(stored_version, int) and stored_version > self.version:
            logger.warning(
                "Ignoring %r blob written by a newer version (v%d > v%d)", self.key, stored_version, self.version
            )
            return None
        return payload

    def write(self, payload: dict) -> bool:
        """Persist payload with the current version stamp. Returns False on failure."""
        document = {"version": self.version, **payload}
        try:
            self.backend.write(self.key, json.dumps(document, indent=2, sort_keys=True))
        except Exception as e:
            # The in-memory state stays authoritative for this session.
            logger.warning("Could not persist %r (%s): %s", self.key, type(e).__name__, e)
            return False
        return True
