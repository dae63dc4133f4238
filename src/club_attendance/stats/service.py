from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, now_local
from ..common.grades import generation_to_grade
from ..core.constants import STATS_WINDOW_DAYS
from ..core.enums import AttendanceType
from ..core.exceptions import AccessDenied, NotFound, ValidationError
from ..database.mysql_base import store_errors
from ..members.model import Member
from ..members.repository import MemberRepository
from ..members.team_repository import TeamRepository
from .aggregation import average_daily_rate, build_daily_summary, project_monthly_status
from .calculator.base import ActivityCalculator
from .calculator.paired_calculator import PairedSessionCalculator
from .model import DailySummary, DayStatus, TeamMemberStatus, TeamStats


class StatsService:
    """Monthly aggregation and rolling statistics over the attendance ledger."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        members: MemberRepository,
        teams: TeamRepository,
        *,
        calculator: Optional[ActivityCalculator] = None,
        window_days: int = STATS_WINDOW_DAYS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._members = members
        self._teams = teams
        self._calculator = calculator or PairedSessionCalculator()
        self._window_days = int(window_days)
        self._clock = clock

    def monthly_status(self, member_id: int, month: date) -> list[DayStatus]:
        start, end = month_bounds(month)
        with store_errors("monthly_status"):
            events = self._attendance.in_events_between(start=start, end=end, member_ids=[int(member_id)])
        return project_monthly_status(events)

    def daily_summary(self, month: date) -> dict[date, DailySummary]:
        start, end = month_bounds(month)
        with store_errors("daily_summary"):
            rows = self._attendance.summary_rows(start=start, end=end)
        return build_daily_summary(rows)

    def team_attendance_rate(
        self,
        team_id: int,
        *,
        days: Optional[int] = None,
        since: Optional[date] = None,
        today: Optional[date] = None,
    ) -> float:
        """Average daily attendance rate (%) of a team over a trailing window.

        The window starts at the later of ``today - days`` and ``since`` (the
        requesting member's registration date).
        """

        days = self._window_days if days is None else int(days)
        if days < 0:
            raise ValidationError("日数が正しくありません")
        today = today or self._clock().date()

        start = today - timedelta(days=days)
        if since is not None and since > start:
            start = since
        if start > today:
            return 0.0

        with store_errors("team_attendance_rate"):
            team_members = self._members.list_by_team(int(team_id))
            if not team_members:
                return 0.0
            active_dates = self._attendance.active_dates_between(start=start, end=today)
            if not active_dates:
                return 0.0
            team_events = self._attendance.in_events_between(
                start=start,
                end=today,
                member_ids=[m.member_id for m in team_members],
            )

        return average_daily_rate(
            active_dates=active_dates,
            team_in_events=team_events,
            team_size=len(team_members),
        )

    def activity_hours(self, member_id: int, *, days: int, now: Optional[datetime] = None) -> float:
        now = now or self._clock()
        with store_errors("activity_hours"):
            events = self._attendance.events_for_member_since(int(member_id), now - timedelta(days=int(days)))
        return self._calculator.total_seconds(events) / 3600

    def team_stats(self, team_id: int, *, since: Optional[date] = None, today: Optional[date] = None) -> TeamStats:
        today = today or self._clock().date()
        with store_errors("team_stats"):
            team_members = self._members.list_by_team(int(team_id))
            member_ids = [m.member_id for m in team_members]
            today_events = (
                self._attendance.in_events_between(start=today, end=today, member_ids=member_ids)
                if member_ids
                else []
            )

        attendees = len({e.member_id for e in today_events})
        total = len(team_members)
        return TeamStats(
            total_members=total,
            today_attendees=attendees,
            today_attendance_rate=(attendees / total * 100) if total else 0.0,
            average_attendance_rate=self.team_attendance_rate(team_id, since=since, today=today),
            window_days=self._window_days,
        )

    def teams_with_member_status(self) -> list[dict]:
        """Every team with how many of its members are currently `in`."""

        with store_errors("teams_with_member_status"):
            teams = self._teams.list_all()
            members = [m for m in self._members.list_all() if m.team_id is not None and m.is_active]
            latest = self._attendance.latest_events_for([m.member_id for m in members])

        counts: dict[int, dict] = {}
        for m in members:
            c = counts.setdefault(m.team_id, {"current": 0, "total": 0})
            c["total"] += 1
            event = latest.get(m.member_id)
            if event and event.type == AttendanceType.IN:
                c["current"] += 1

        return [
            {"team_id": t.team_id, "name": t.name, **counts.get(t.team_id, {"current": 0, "total": 0})}
            for t in teams
        ]

    def team_detail(self, team_id: int, *, viewer: Member, today: Optional[date] = None) -> dict:
        if not viewer.is_admin and viewer.team_id != int(team_id):
            raise AccessDenied()

        today = today or self._clock().date()
        with store_errors("team_detail"):
            team = self._teams.get_by_id(int(team_id))
            if not team:
                raise NotFound("班が見つかりません。")
            team_members = self._members.list_by_team(team.team_id)
            latest = self._attendance.latest_events_for([m.member_id for m in team_members])

        rows = []
        for m in team_members:
            event = latest.get(m.member_id)
            rows.append(
                TeamMemberStatus(
                    member_id=m.member_id,
                    display_name=m.display_name,
                    generation=m.generation,
                    grade=generation_to_grade(m.generation, today=today),
                    status=event.type.value if event else AttendanceType.OUT.value,
                    timestamp=event.timestamp.isoformat() if event else None,
                )
            )
        rows.sort(key=lambda r: (-r.generation, r.display_name))

        since = viewer.joined_at.date() if viewer.joined_at else None
        stats = self.team_stats(team.team_id, since=since, today=today)
        return {
            "team": {"team_id": team.team_id, "name": team.name},
            "members": [r.__dict__ for r in rows],
            "stats": stats.to_dict(),
        }
