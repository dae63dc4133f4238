from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class TempRegistration:
    """Short-lived pairing of an unregistered card with a single-use token.

    Lifecycle: created -> accessed (first fetch) -> used (registration
    completed). Expiry applies independently once ``now > expires_at``.
    """

    registration_id: int
    card_id: str
    token: str
    created_at: datetime
    expires_at: datetime
    accessed_at: Optional[datetime] = None
    is_used: bool = False

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def seconds_remaining(self, now: datetime) -> int:
        return max(0, int((self.expires_at - now).total_seconds()))

    def with_accessed(self, accessed_at: datetime) -> "TempRegistration":
        return replace(self, accessed_at=accessed_at)


@dataclass(frozen=True)
class RegistrationDetails:
    """Profile fields the new member fills in on the registration page."""

    display_name: str
    generation: int
    team_id: int
    student_number: Optional[str] = None
