"""Pure aggregation rules over ledger rows.

Two deliberately different dedup policies live in this package: the ledger
toggle lets the latest `in` win, while the daily views below count a member
at most once per day.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

from ..attendance.model import AttendanceEvent, SummaryRow
from ..core.enums import AttendanceType
from .model import DailySummary, DayStatus, TeamDaySummary


def project_monthly_status(events: Iterable[AttendanceEvent]) -> list[DayStatus]:
    """One `in` status per distinct date that has an `in` event."""

    dates = {e.date for e in events if e.type == AttendanceType.IN}
    return [DayStatus(date=d, status=AttendanceType.IN.value) for d in sorted(dates)]


def build_daily_summary(rows: Iterable[SummaryRow]) -> dict[date, DailySummary]:
    seen: set[tuple[date, int]] = set()
    summary: dict[date, DailySummary] = {}

    for r in rows:
        key = (r.date, r.member_id)
        if key in seen:
            continue
        seen.add(key)

        day = summary.get(r.date)
        if day is None:
            day = summary[r.date] = DailySummary(date=r.date)
        day.total += 1

        if r.team_id is None:
            day.unassigned += 1
            continue

        team = day.by_team.get(r.team_id)
        if team is None:
            team = day.by_team[r.team_id] = TeamDaySummary(team_id=r.team_id, name=r.team_name or "")
        team.total += 1
        team.by_generation[r.generation] = team.by_generation.get(r.generation, 0) + 1

    return dict(sorted(summary.items()))


def average_daily_rate(
    *,
    active_dates: Iterable[date],
    team_in_events: Sequence[AttendanceEvent],
    team_size: int,
) -> float:
    """Mean over active club days of (distinct team attendees / team size) * 100.

    An empty team contributes 0% on every day; no active days gives 0.
    """

    days = set(active_dates)
    if not days:
        return 0.0
    if team_size <= 0:
        return 0.0

    attendees: dict[date, set[int]] = {}
    for e in team_in_events:
        if e.date in days and e.type == AttendanceType.IN:
            attendees.setdefault(e.date, set()).add(e.member_id)

    total = sum(len(attendees.get(d, ())) / team_size * 100 for d in days)
    return total / len(days)
