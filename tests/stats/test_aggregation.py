from __future__ import annotations

from datetime import date, datetime

from club_attendance.attendance.model import AttendanceEvent, SummaryRow
from club_attendance.core.enums import AttendanceType
from club_attendance.stats.aggregation import average_daily_rate, build_daily_summary, project_monthly_status


def _in(event_id, member_id, ts):
    return AttendanceEvent(event_id, member_id, AttendanceType.IN, ts, ts.date())


def test_monthly_status_one_entry_per_day():
    events = [
        _in(1, 1, datetime(2025, 5, 2, 17, 0)),
        _in(2, 1, datetime(2025, 5, 2, 19, 0)),
        _in(3, 1, datetime(2025, 5, 9, 17, 0)),
    ]

    days = project_monthly_status(events)

    assert [(d.date, d.status) for d in days] == [(date(2025, 5, 2), "in"), (date(2025, 5, 9), "in")]


def test_daily_summary_counts_member_once_per_day():
    d = date(2025, 5, 2)
    rows = [
        SummaryRow(d, 1, 1, "プログラミング班", 10),
        SummaryRow(d, 1, 1, "プログラミング班", 10),
        SummaryRow(d, 2, 1, "プログラミング班", 9),
    ]

    summary = build_daily_summary(rows)

    assert summary[d].total == 2
    team = summary[d].by_team[1]
    assert team.total == 2
    assert team.sorted_generations() == [(10, 1), (9, 1)]


def test_daily_summary_teamless_members_counted_in_total():
    d = date(2025, 5, 2)
    rows = [
        SummaryRow(d, 1, 1, "プログラミング班", 10),
        SummaryRow(d, 4, None, None, 11),
    ]

    day = build_daily_summary(rows)[d]

    assert day.total == 2
    assert day.unassigned == 1
    assert day.to_dict()["teams"] == [
        {"team_id": 1, "name": "プログラミング班", "total": 1, "by_generation": {"10": 1}}
    ]


def test_average_rate_zero_without_active_days():
    assert average_daily_rate(active_dates=[], team_in_events=[], team_size=3) == 0.0


def test_average_rate_zero_for_empty_team():
    assert average_daily_rate(active_dates=[date(2025, 5, 2)], team_in_events=[], team_size=0) == 0.0


def test_average_rate_over_active_days():
    d1, d2 = date(2025, 5, 2), date(2025, 5, 3)
    events = [
        _in(1, 1, datetime(2025, 5, 2, 17, 0)),
        _in(2, 2, datetime(2025, 5, 2, 17, 5)),
        _in(3, 1, datetime(2025, 5, 2, 19, 0)),
    ]

    # Day 1: 2 of 2 members, day 2: nobody from the team.
    assert average_daily_rate(active_dates=[d1, d2], team_in_events=events, team_size=2) == 50.0
