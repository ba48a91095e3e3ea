"""SettingsStore: the persisted `{organization, usernames}` blob."""

from __future__ import annotations

from prinbox_store.base import BaseStore
from prinbox_store.blob import VersionedBlob
from prinbox_store.models import ViewerSettings

SETTINGS_KEY = "settings"


class SettingsStore:
    def __init__(self, backend: BaseStore, key: str = SETTINGS_KEY):
        self._blob = VersionedBlob(backend, key, version=1)

    def load(self) -> ViewerSettings:
        payload = self._blob.read() or {}
        usernames = payload.get("usernames") or []
        return ViewerSettings(
            organization=str(payload.get("organization") or ""),
            usernames=[str(u) for u in usernames if u],
        )

    def save(self, settings: ViewerSettings) -> bool:
        return self._blob.write({"organization": settings.organization, "usernames": list(settings.usernames)})
