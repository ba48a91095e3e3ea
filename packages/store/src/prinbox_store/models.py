"""Persisted state models.

Decoupled from prinbox_core so the store layer can be used independently.
prinbox_core imports ReadMarker from here; nothing in this package knows
about pull requests beyond their numeric id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ReadMarker:
    """When, and at what comment count, a pull request was last acknowledged.

    Absence of a marker means "never explicitly read".
    """

    last_read_at: datetime  # timezone-aware
    comments_read_count: int


@dataclass
class ViewerSettings:
    """Which organization and authors the inbox watches."""

    organization: str = ""
    usernames: list[str] = field(default_factory=list)
