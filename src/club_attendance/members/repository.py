from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..audit.model import FieldChange
from .model import Member


class MemberRepository(Protocol):
    """Repository interface for members.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, member_id: int) -> Optional[Member]:
        raise NotImplementedError

    def get_by_card_id(self, card_id: str) -> Optional[Member]:
        """Lookup by an already-normalized card id."""

        raise NotImplementedError

    def get_by_external_id(self, external_id: str) -> Optional[Member]:
        raise NotImplementedError

    def get_by_display_name(self, display_name: str) -> Optional[Member]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Member]:
        raise NotImplementedError

    def list_by_team(self, team_id: int) -> Sequence[Member]:
        """Active members of a team."""

        raise NotImplementedError

    def count_by_team(self, team_id: int) -> int:
        raise NotImplementedError

    def update_fields(
        self,
        member_id: int,
        fields: Mapping[str, Any],
        *,
        editor_id: Optional[int] = None,
        changes: Sequence[FieldChange] = (),
    ) -> bool:
        """Apply ``fields`` and write one `user_edit_logs` row per change.

        Both happen in the same transaction: either the edit and its audit
        rows are stored, or neither is.
        """

        raise NotImplementedError
