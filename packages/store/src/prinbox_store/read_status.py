"""ReadMarkerStore: the persisted pull-request id -> ReadMarker mapping.

Layout (version 1):

    {
      "version": 1,
      "markers": {
        "<pull_request_id>": {"lastReadAt": "<ISO-8601>", "commentsReadCount": 3}
      },
      "undo": {
        "<pull_request_id>": {...}
      }
    }

`undo` holds the one-level undo snapshot and is absent until the first
mutation. It shares the document with `markers` so both land in the same
backend write and can never disagree.

The older flat layout without a version (`{"<id>": {...}}`) is still
accepted on load. A load failure of any kind returns an empty mapping, so
classification degrades to "everything unread" instead of failing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from prinbox_store.base import BaseStore
from prinbox_store.blob import VersionedBlob
from prinbox_store.models import ReadMarker

logger = logging.getLogger(__name__)

READ_STATUS_KEY = "read_status"
SCHEMA_VERSION = 1


@dataclass
class ReadState:
    markers: dict[int, ReadMarker] = field(default_factory=dict)
    # None when no mutation has been recorded yet; {} is a real snapshot.
    undo: dict[int, ReadMarker] | None = None


class ReadMarkerStore:
    """Loads and saves the whole marker mapping as one blob.

    save() writes the complete mapping, plus the undo snapshot when given,
    in a single backend write; there is no per-key update path.
    """

    def __init__(self, backend: BaseStore, key: str = READ_STATUS_KEY):
        self._blob = VersionedBlob(backend, key, version=SCHEMA_VERSION)

    @property
    def key(self) -> str:
        return self._blob.key

    def load(self) -> dict[int, ReadMarker]:
        return self.load_state().markers

    def load_state(self) -> ReadState:
        payload = self._blob.read()
        if payload is None:
            return ReadState()

        if "version" not in payload:
            return ReadState(markers=self._parse(payload, "markers") or {})

        undo = None
        if payload.get("undo") is not None:
            undo = self._parse(payload["undo"], "undo")
        return ReadState(markers=self._parse(payload.get("markers") or {}, "markers") or {}, undo=undo)

    def save(self, markers: dict[int, ReadMarker], undo: dict[int, ReadMarker] | None = None) -> bool:
        payload: dict = {"markers": _markers_to_dict(markers)}
        if undo is not None:
            payload["undo"] = _markers_to_dict(undo)
        return self._blob.write(payload)

    def _parse(self, entries, section: str) -> dict[int, ReadMarker] | None:
        if not isinstance(entries, dict):
            logger.warning("Ignoring %s in %r blob: not an object", section, self.key)
            return None

        markers: dict[int, ReadMarker] = {}
        for raw_id, entry in entries.items():
            try:
                markers[int(raw_id)] = _marker_from_dict(entry)
            except (AttributeError, TypeError, ValueError, KeyError) as e:
                logger.warning("Skipping malformed read marker %r: %s", raw_id, e)
        return markers


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _markers_to_dict(markers: dict[int, ReadMarker]) -> dict:
    return {str(pr_id): _marker_to_dict(m) for pr_id, m in markers.items()}


def _marker_to_dict(marker: ReadMarker) -> dict:
    return {
        "lastReadAt": marker.last_read_at.isoformat(),
        "commentsReadCount": marker.comments_read_count,
    }


def _marker_from_dict(d: dict) -> ReadMarker:
    return ReadMarker(
        last_read_at=_parse_timestamp(d["lastReadAt"]),
        comments_read_count=int(d.get("commentsReadCount") or 0),
    )
