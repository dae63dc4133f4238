from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .announcements.mysql_announcement_repository import MySQLAnnouncementRepository
from .announcements.repository import AnnouncementRepository
from .announcements.service import AnnouncementService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditService
from .common.datetime_utils import now_local
from .core.constants import KIOSK_RESET_SECONDS, REGISTRATION_TTL_MINUTES, STATS_WINDOW_DAYS
from .database.connection import DBConfig, DatabaseConnection
from .kiosk.backend import ServiceKioskBackend
from .members.mysql_member_repository import MySQLMemberRepository
from .members.mysql_team_repository import MySQLTeamRepository
from .members.repository import MemberRepository
from .members.service import MemberService, TeamService
from .members.team_repository import TeamRepository
from .registrations.mysql_registration_repository import MySQLRegistrationRepository
from .registrations.repository import RegistrationRepository
from .registrations.service import RegistrationService
from .stats.service import StatsService


@dataclass(frozen=True)
class Settings:
    base_url: str = "http://localhost:5000"
    registration_ttl_minutes: int = REGISTRATION_TTL_MINUTES
    kiosk_reset_seconds: int = KIOSK_RESET_SECONDS
    stats_window_days: int = STATS_WINDOW_DAYS

    @classmethod
    def from_module(cls, settings) -> "Settings":
        return cls(
            base_url=str(getattr(settings, "APP_BASE_URL", cls.base_url)),
            registration_ttl_minutes=int(getattr(settings, "REGISTRATION_TTL_MINUTES", REGISTRATION_TTL_MINUTES)),
            kiosk_reset_seconds=int(getattr(settings, "KIOSK_RESET_SECONDS", KIOSK_RESET_SECONDS)),
            stats_window_days=int(getattr(settings, "STATS_WINDOW_DAYS", STATS_WINDOW_DAYS)),
        )


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    settings: Settings
    clock: Callable[[], datetime]

    members_repo: MemberRepository
    teams_repo: TeamRepository
    attendance_repo: AttendanceRepository
    registrations_repo: RegistrationRepository
    announcements_repo: AnnouncementRepository
    audit_repo: AuditRepository

    member_service: MemberService
    team_service: TeamService
    attendance_service: AttendanceService
    registration_service: RegistrationService
    stats_service: StatsService
    announcement_service: AnnouncementService
    audit_service: AuditService
    kiosk_backend: ServiceKioskBackend


def assemble_container(
    *,
    members_repo: MemberRepository,
    teams_repo: TeamRepository,
    attendance_repo: AttendanceRepository,
    registrations_repo: RegistrationRepository,
    announcements_repo: AnnouncementRepository,
    audit_repo: AuditRepository,
    settings: Optional[Settings] = None,
    clock: Callable[[], datetime] = now_local,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services on top of any repository implementations."""

    settings = settings or Settings()

    member_service = MemberService(members_repo, teams_repo, attendance_repo)
    team_service = TeamService(teams_repo, members_repo)
    attendance_service = AttendanceService(attendance_repo, members_repo, audit_repo, clock=clock)
    registration_service = RegistrationService(
        registrations_repo,
        members_repo,
        teams_repo,
        base_url=settings.base_url,
        ttl_minutes=settings.registration_ttl_minutes,
        clock=clock,
    )
    stats_service = StatsService(
        attendance_repo,
        members_repo,
        teams_repo,
        window_days=settings.stats_window_days,
        clock=clock,
    )
    announcement_service = AnnouncementService(announcements_repo)
    audit_service = AuditService(audit_repo)
    kiosk_backend = ServiceKioskBackend(attendance_service, registration_service, team_service, announcement_service)

    return Container(
        conn=conn,
        settings=settings,
        clock=clock,
        members_repo=members_repo,
        teams_repo=teams_repo,
        attendance_repo=attendance_repo,
        registrations_repo=registrations_repo,
        announcements_repo=announcements_repo,
        audit_repo=audit_repo,
        member_service=member_service,
        team_service=team_service,
        attendance_service=attendance_service,
        registration_service=registration_service,
        stats_service=stats_service,
        announcement_service=announcement_service,
        audit_service=audit_service,
        kiosk_backend=kiosk_backend,
    )


def build_container(*, db_config: dict, settings: Optional[Settings] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble_container(
        conn=conn,
        members_repo=MySQLMemberRepository(conn),
        teams_repo=MySQLTeamRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        registrations_repo=MySQLRegistrationRepository(conn),
        announcements_repo=MySQLAnnouncementRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        settings=settings,
    )
