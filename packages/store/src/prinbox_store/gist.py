"""GistStore: keep read state in a private GitHub Gist.

Why a Gist:
- Zero infra: no file to back up, and the same token that fetches pull
  requests can read and write it (given the `gist` scope).
- Each blob is one file inside the Gist, so a single edit() call replaces
  exactly one key.

Read state is still client-local in spirit: nothing here merges concurrent
writers, and two machines sharing a Gist simply overwrite each other.
"""

from __future__ import annotations

import logging

from github import Github, InputFileContent

from prinbox_store.base import BaseStore

logger = logging.getLogger(__name__)

_FILE_PREFIX = "prinbox_"


class GistStore(BaseStore):
    """Stores each blob as `prinbox_<key>.json` inside one Gist.

    The Gist ID is stored in .prinbox.yml under `gist_id`. Running
    `prinbox init` with the gist backend creates the Gist and writes the ID
    to .prinbox.yml automatically.
    """

    def __init__(self, gist_id: str, token: str):
        self._gist_id = gist_id
        self._gh = Github(token)

    @staticmethod
    def filename(key: str) -> str:
        return f"{_FILE_PREFIX}{key}.json"

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def read(self, key: str) -> str | None:
        gist = self._get_gist()
        file_obj = gist.files.get(self.filename(key))
        if file_obj is None:
            return None
        return file_obj.content

    def write(self, key: str, content: str) -> None:
        gist = self._get_gist()
        gist.edit(files={self.filename(key): InputFileContent(content)})
        logger.debug("GistStore updated %s in gist %s", self.filename(key), self._gist_id)


def create_gist(token: str, description: str = "prinbox read state") -> str:
    """Create an empty private Gist for prinbox and return its ID."""
    user = Github(token).get_user()
    gist = user.create_gist(
        public=False,
        files={GistStore.filename("settings"): InputFileContent('{"version": 1}')},
        description=description,
    )
    return gist.id
