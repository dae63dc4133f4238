from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class DayStatus:
    date: date
    status: str


@dataclass
class TeamDaySummary:
    team_id: int
    name: str
    total: int = 0
    by_generation: dict[int, int] = field(default_factory=dict)

    def sorted_generations(self) -> list[tuple[int, int]]:
        """(generation, count) pairs, most recent cohort first."""

        return sorted(self.by_generation.items(), key=lambda kv: kv[0], reverse=True)

    def to_dict(self) -> dict:
        return {
            "team_id": self.team_id,
            "name": self.name,
            "total": self.total,
            "by_generation": {str(g): n for g, n in self.sorted_generations()},
        }


@dataclass
class DailySummary:
    date: date
    total: int = 0
    by_team: dict[int, TeamDaySummary] = field(default_factory=dict)
    # Distinct members without a team; counted in ``total`` only.
    unassigned: int = 0

    def sorted_teams(self) -> list[TeamDaySummary]:
        return sorted(self.by_team.values(), key=lambda t: (t.name, t.team_id))

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "total": self.total,
            "unassigned": self.unassigned,
            "teams": [t.to_dict() for t in self.sorted_teams()],
        }


@dataclass(frozen=True)
class TeamStats:
    total_members: int
    today_attendees: int
    today_attendance_rate: float
    average_attendance_rate: float
    window_days: int

    def to_dict(self) -> dict:
        return {
            "total_members": self.total_members,
            "today_attendees": self.today_attendees,
            "today_attendance_rate": round(self.today_attendance_rate, 1),
            "average_attendance_rate": round(self.average_attendance_rate, 1),
            "window_days": self.window_days,
        }


@dataclass(frozen=True)
class TeamMemberStatus:
    member_id: int
    display_name: str
    generation: int
    grade: str
    status: str
    timestamp: Optional[str]
