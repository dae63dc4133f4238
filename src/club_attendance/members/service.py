from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..audit.model import FieldChange
from ..common.cards import normalize_card_id
from ..common.datetime_utils import now_local
from ..common.grades import generation_to_grade
from ..common.validators import require_non_empty, require_positive_int
from ..core.enums import AttendanceType, Role
from ..core.exceptions import (
    AlreadyRegistered,
    AuthorizationError,
    DuplicateIdentity,
    NotFound,
    TeamInUse,
    Unauthenticated,
    ValidationError,
)
from ..database.mysql_base import store_errors
from .model import EDITABLE_FIELDS, ExternalIdentity, Member
from .repository import MemberRepository
from .team_model import Team
from .team_repository import TeamRepository

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Role):
        return value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class MemberService:
    """Use case: look up members and let admins edit them (with audit trail)."""

    def __init__(
        self,
        members: MemberRepository,
        teams: TeamRepository,
        attendance: AttendanceRepository,
    ):
        self._members = members
        self._teams = teams
        self._attendance = attendance

    def member_for_identity(self, identity: Optional[ExternalIdentity]) -> Member:
        if identity is None or not identity.is_verified:
            raise Unauthenticated()
        with store_errors("member_for_identity"):
            member = self._members.get_by_external_id(identity.provider_id)
        if not member or not member.is_active:
            raise AuthorizationError("部員として登録されていません。")
        return member

    def is_registered(self, identity: ExternalIdentity) -> bool:
        with store_errors("is_registered"):
            member = self._members.get_by_external_id(identity.provider_id)
        return bool(member and member.is_active)

    def require_admin(self, identity: Optional[ExternalIdentity]) -> Member:
        member = self.member_for_identity(identity)
        if not member.is_admin:
            raise AuthorizationError()
        return member

    def list_admin_view(self, *, today: Optional[date] = None) -> list[dict]:
        today = today or now_local().date()
        with store_errors("list_admin_view"):
            members = self._members.list_all()
            teams = {t.team_id: t for t in self._teams.list_all()}
            latest = self._attendance.latest_events_for([m.member_id for m in members])

        out: list[dict] = []
        for m in members:
            event = latest.get(m.member_id)
            team = teams.get(m.team_id) if m.team_id is not None else None
            out.append(
                {
                    "member_id": m.member_id,
                    "display_name": m.display_name,
                    "card_id": m.card_id,
                    "generation": m.generation,
                    "grade": generation_to_grade(m.generation, today=today),
                    "student_number": m.student_number,
                    "team": {"team_id": team.team_id, "name": team.name} if team else None,
                    "role": m.role.value,
                    "is_active": m.is_active,
                    "status": event.type.value if event else AttendanceType.OUT.value,
                    "last_timestamp": event.timestamp.isoformat() if event else None,
                }
            )
        return out

    def update_member(self, *, editor_id: Optional[int], member_id: int, changes: Mapping[str, Any]) -> list[str]:
        """Apply admin edits and write one audit row per changed field.

        Returns the names of the fields that actually changed.
        """

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"編集できない項目です: {', '.join(sorted(unknown))}")

        with store_errors("update_member"):
            member = self._members.get_by_id(int(member_id))
            if not member:
                raise NotFound("ユーザーが見つかりません。")

            cleaned = self._clean_changes(member, changes)
            diff = {k: v for k, v in cleaned.items() if getattr(member, k) != v}
            if not diff:
                return []

            self._members.update_fields(
                member.member_id,
                diff,
                editor_id=editor_id,
                changes=[FieldChange(k, _as_text(getattr(member, k)), _as_text(v)) for k, v in diff.items()],
            )

        logger.info("member %s edited by %s: %s", member_id, editor_id, ", ".join(sorted(diff)))
        return sorted(diff)

    def _clean_changes(self, member: Member, changes: Mapping[str, Any]) -> dict:
        cleaned: dict[str, Any] = {}
        for name, value in changes.items():
            if name == "display_name":
                value = require_non_empty(value, "表示名")
                other = self._members.get_by_display_name(value)
                if other and other.member_id != member.member_id:
                    raise DuplicateIdentity(DuplicateIdentity.DISPLAY_NAME)
            elif name == "card_id":
                value = normalize_card_id(value)
                other = self._members.get_by_card_id(value)
                if other and other.member_id != member.member_id:
                    raise AlreadyRegistered()
            elif name == "generation":
                value = require_positive_int(value, "期生")
            elif name == "team_id":
                if value in (None, ""):
                    value = None
                else:
                    value = require_positive_int(value, "班")
                    if not self._teams.get_by_id(value):
                        raise ValidationError("班が存在しません")
            elif name == "role":
                try:
                    value = Role(value)
                except ValueError:
                    raise ValidationError("権限の値が正しくありません")
            elif name == "is_active":
                value = bool(value)
            elif name == "student_number":
                value = (value or "").strip() or None
            cleaned[name] = value
        return cleaned


class TeamService:
    """Use case: manage teams (admin)."""

    def __init__(self, teams: TeamRepository, members: MemberRepository):
        self._teams = teams
        self._members = members

    def list_teams(self) -> Sequence[Team]:
        with store_errors("list_teams"):
            return self._teams.list_all()

    def get_team(self, team_id: int) -> Team:
        with store_errors("get_team"):
            team = self._teams.get_by_id(int(team_id))
        if not team:
            raise NotFound("班が見つかりません。")
        return team

    def create_team(self, name: str) -> int:
        name = require_non_empty(name, "班名")
        with store_errors("create_team"):
            team_id = self._teams.create(name=name)
        logger.info("team %s created: %s", team_id, name)
        return team_id

    def rename_team(self, team_id: int, name: str) -> None:
        name = require_non_empty(name, "班名")
        self.get_team(team_id)
        with store_errors("rename_team"):
            self._teams.rename(team_id=int(team_id), name=name)

    def delete_team(self, team_id: int) -> None:
        self.get_team(team_id)
        with store_errors("delete_team"):
            count = self._members.count_by_team(int(team_id))
            if count > 0:
                raise TeamInUse(count)
            self._teams.delete(team_id=int(team_id))
        logger.info("team %s deleted", team_id)
