from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .team_model import Team


class TeamRepository(Protocol):
    def get_by_id(self, team_id: int) -> Optional[Team]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Team]:
        """All teams ordered by name."""

        raise NotImplementedError

    def create(self, *, name: str) -> int:
        raise NotImplementedError

    def rename(self, *, team_id: int, name: str) -> bool:
        raise NotImplementedError

    def delete(self, *, team_id: int) -> bool:
        raise NotImplementedError
