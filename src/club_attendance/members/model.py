from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Member:
    """Domain entity: a club member bound to one physical card.

    Plain data object; no database access lives here.
    """

    member_id: int
    external_id: str
    display_name: str
    card_id: str
    generation: int
    team_id: Optional[int]
    role: Role = Role.MEMBER
    is_active: bool = True
    student_number: Optional[str] = None
    joined_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class ExternalIdentity:
    """Principal handed over by the identity provider after login."""

    subject: str
    provider_id: str
    display_name: Optional[str] = None

    @property
    def is_verified(self) -> bool:
        return bool((self.subject or "").strip()) and bool((self.provider_id or "").strip())


EDITABLE_FIELDS = ("display_name", "card_id", "generation", "student_number", "team_id", "role", "is_active")
