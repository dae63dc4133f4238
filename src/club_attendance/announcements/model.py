from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Announcement:
    announcement_id: int
    title: str
    content: str
    author_id: Optional[int] = None
    author_name: Optional[str] = None
    is_active: bool = True
    is_current: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "announcement_id": self.announcement_id,
            "title": self.title,
            "content": self.content,
            "author": {"member_id": self.author_id, "display_name": self.author_name} if self.author_id else None,
            "is_active": self.is_active,
            "is_current": self.is_current,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
