from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..common.validators import require_non_empty
from ..core.exceptions import NotFound, ValidationError
from ..database.mysql_base import store_errors
from .model import Announcement
from .repository import AnnouncementRepository

logger = logging.getLogger(__name__)


class AnnouncementService:
    """Admin-managed notices; at most one is shown on the kiosk at a time."""

    def __init__(self, announcements: AnnouncementRepository):
        self._announcements = announcements

    def current(self) -> Optional[Announcement]:
        with store_errors("current_announcement"):
            return self._announcements.get_current()

    def list_all(self) -> Sequence[Announcement]:
        with store_errors("list_announcements"):
            return self._announcements.list_all()

    def create(self, *, title: str, content: str, author_id: Optional[int], is_current: bool = False) -> int:
        title = require_non_empty(title, "タイトル")
        content = require_non_empty(content, "本文")
        with store_errors("create_announcement"):
            announcement_id = self._announcements.create(
                title=title, content=content, author_id=author_id, is_current=bool(is_current)
            )
        logger.info("announcement %s created by %s", announcement_id, author_id)
        return announcement_id

    def update(self, announcement_id: int, changes: Mapping[str, Any]) -> None:
        fields: dict[str, Any] = {}
        for name, value in changes.items():
            if name == "title":
                fields[name] = require_non_empty(value, "タイトル")
            elif name == "content":
                fields[name] = require_non_empty(value, "本文")
            elif name in ("is_active", "is_current"):
                fields[name] = bool(value)
            else:
                raise ValidationError(f"編集できない項目です: {name}")

        with store_errors("update_announcement"):
            existing = self._announcements.get_by_id(int(announcement_id))
            if not existing:
                raise NotFound("お知らせが見つかりません。")
            if fields.get("is_current") and not fields.get("is_active", existing.is_active):
                raise ValidationError("削除済みのお知らせは表示できません")
            self._announcements.update(announcement_id=existing.announcement_id, fields=fields)

    def delete(self, announcement_id: int) -> None:
        with store_errors("delete_announcement"):
            if not self._announcements.deactivate(announcement_id=int(announcement_id)):
                raise NotFound("お知らせが見つかりません。")
        logger.info("announcement %s deactivated", announcement_id)
