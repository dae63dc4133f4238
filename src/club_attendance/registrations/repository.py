from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..members.model import Member
from .model import RegistrationDetails, TempRegistration


class RegistrationRepository(Protocol):
    def upsert_for_card(
        self,
        *,
        card_id: str,
        token: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> TempRegistration:
        """Create or replace the single live registration of ``card_id``.

        Replacing resets the token, the timestamps, ``accessed_at`` and ``is_used``.
        """

        raise NotImplementedError

    def get_by_token(self, token: str) -> Optional[TempRegistration]:
        raise NotImplementedError

    def mark_accessed(self, *, registration_id: int, accessed_at: datetime) -> bool:
        """Stamp ``accessed_at`` only if it is still empty."""

        raise NotImplementedError

    def complete(
        self,
        *,
        registration_id: int,
        external_id: str,
        details: RegistrationDetails,
    ) -> Optional[Member]:
        """Mark the registration used and create its member in one transaction.

        Returns None when the registration was already used (compare-and-set
        lost). Raises DuplicateIdentity / AlreadyRegistered on unique-key
        collisions; the registration then stays unused.
        """

        raise NotImplementedError

    def list_all(self) -> Sequence[TempRegistration]:
        raise NotImplementedError

    def delete(self, *, registration_id: int) -> bool:
        raise NotImplementedError
