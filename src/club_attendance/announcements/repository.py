from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Announcement


class AnnouncementRepository(Protocol):
    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        raise NotImplementedError

    def get_current(self) -> Optional[Announcement]:
        """The active announcement flagged current, if any."""

        raise NotImplementedError

    def list_all(self) -> Sequence[Announcement]:
        """Every announcement (soft-deleted included), newest first, with author name."""

        raise NotImplementedError

    def create(self, *, title: str, content: str, author_id: Optional[int], is_current: bool = False) -> int:
        raise NotImplementedError

    def update(self, *, announcement_id: int, fields: Mapping[str, Any]) -> bool:
        """Update columns; setting ``is_current`` true clears the flag on every other row first."""

        raise NotImplementedError

    def deactivate(self, *, announcement_id: int) -> bool:
        raise NotImplementedError
