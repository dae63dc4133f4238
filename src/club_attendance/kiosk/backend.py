from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from ..announcements.service import AnnouncementService
from ..attendance.service import AttendanceService
from ..core.enums import AttendanceType
from ..members.service import TeamService
from ..registrations.service import RegistrationService

UNASSIGNED_TEAM_LABEL = "未設定"


@dataclass(frozen=True)
class TapOutcome:
    member_id: int
    display_name: str
    team_name: str
    generation: int
    type: AttendanceType
    message: str
    duplicate: bool = False

    @property
    def headline(self) -> str:
        return f"{self.display_name} ({self.team_name}・{self.generation}期生)"


@dataclass(frozen=True)
class RegistrationTicket:
    token: str
    url: str
    expires_at: datetime


class KioskBackend(Protocol):
    """What the kiosk needs from the server. Failures raise DomainError subclasses."""

    def toggle(self, card_id: str) -> TapOutcome:
        raise NotImplementedError

    def begin_registration(self, card_id: str) -> RegistrationTicket:
        raise NotImplementedError

    def registration_status(self, token: str) -> dict:
        raise NotImplementedError

    def current_announcement(self) -> Optional[dict]:
        raise NotImplementedError


class ServiceKioskBackend(KioskBackend):
    """Calls the services in-process."""

    def __init__(
        self,
        attendance: AttendanceService,
        registrations: RegistrationService,
        teams: TeamService,
        announcements: AnnouncementService,
    ):
        self._attendance = attendance
        self._registrations = registrations
        self._teams = teams
        self._announcements = announcements

    def toggle(self, card_id: str) -> TapOutcome:
        result = self._attendance.toggle(card_id)
        member = result.member
        team_name = UNASSIGNED_TEAM_LABEL
        if member.team_id is not None:
            team = next((t for t in self._teams.list_teams() if t.team_id == member.team_id), None)
            if team:
                team_name = team.name
        return TapOutcome(
            member_id=member.member_id,
            display_name=member.display_name,
            team_name=team_name,
            generation=member.generation,
            type=result.type,
            message=result.message,
            duplicate=result.duplicate,
        )

    def begin_registration(self, card_id: str) -> RegistrationTicket:
        registration = self._registrations.begin_registration(card_id)
        return RegistrationTicket(
            token=registration.token,
            url=self._registrations.registration_url(registration.token),
            expires_at=registration.expires_at,
        )

    def registration_status(self, token: str) -> dict:
        return self._registrations.registration_status(token)

    def current_announcement(self) -> Optional[dict]:
        announcement = self._announcements.current()
        return announcement.to_dict() if announcement else None
