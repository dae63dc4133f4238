from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from club_attendance.core.enums import AttendanceType
from club_attendance.core.exceptions import AccessDenied, NotFound
from club_attendance.stats.service import StatsService


@pytest.fixture
def svc(attendance_repo, members_repo, teams_repo, clock):
    return StatsService(attendance_repo, members_repo, teams_repo, clock=clock)


def test_activity_hours_counts_paired_sessions(svc, attendance_repo, fixed_now):
    attendance_repo.add(1, AttendanceType.IN, datetime(2025, 5, 14, 10, 0))
    attendance_repo.add(1, AttendanceType.OUT, datetime(2025, 5, 14, 11, 30))
    attendance_repo.add(1, AttendanceType.IN, datetime(2025, 5, 14, 17, 0))

    assert svc.activity_hours(1, days=7, now=fixed_now) == 1.5


def test_activity_hours_ignores_events_before_window(svc, attendance_repo, fixed_now):
    attendance_repo.add(1, AttendanceType.IN, fixed_now - timedelta(days=10, hours=2))
    attendance_repo.add(1, AttendanceType.OUT, fixed_now - timedelta(days=10))

    assert svc.activity_hours(1, days=7, now=fixed_now) == 0


def test_monthly_status_for_member(svc, attendance_repo):
    attendance_repo.add(1, AttendanceType.IN, datetime(2025, 5, 2, 17, 0))
    attendance_repo.add(1, AttendanceType.OUT, datetime(2025, 5, 2, 19, 0))
    attendance_repo.add(1, AttendanceType.IN, datetime(2025, 5, 2, 19, 30))
    attendance_repo.add(1, AttendanceType.IN, datetime(2025, 6, 1, 17, 0))
    attendance_repo.add(2, AttendanceType.IN, datetime(2025, 5, 3, 17, 0))

    days = svc.monthly_status(1, date(2025, 5, 1))

    assert [d.date for d in days] == [date(2025, 5, 2)]


def test_daily_summary_dedups_repeated_taps(svc, attendance_repo):
    attendance_repo.add(1, AttendanceType.IN, datetime(2025, 5, 2, 17, 0))
    attendance_repo.add(1, AttendanceType.OUT, datetime(2025, 5, 2, 18, 0))
    attendance_repo.add(1, AttendanceType.IN, datetime(2025, 5, 2, 18, 30))
    attendance_repo.add(3, AttendanceType.IN, datetime(2025, 5, 2, 17, 0))

    summary = svc.daily_summary(date(2025, 5, 1))
    day = summary[date(2025, 5, 2)]

    assert day.total == 2
    assert [t.name for t in day.sorted_teams()] == ["CG班", "プログラミング班"]


def test_team_rate_zero_without_activity(svc):
    assert svc.team_attendance_rate(1, days=30, today=date(2025, 5, 14)) == 0.0


def test_team_rate_averages_over_active_days(svc, attendance_repo):
    # Active club days: 5/12 (team 2 only) and 5/13 (alice from team 1).
    attendance_repo.add(3, AttendanceType.IN, datetime(2025, 5, 12, 17, 0))
    attendance_repo.add(1, AttendanceType.IN, datetime(2025, 5, 13, 17, 0))

    rate = svc.team_attendance_rate(1, days=30, today=date(2025, 5, 14))

    # Team 1 has two members: 0% then 50%.
    assert rate == 25.0


def test_team_rate_window_starts_at_registration(svc, attendance_repo):
    attendance_repo.add(3, AttendanceType.IN, datetime(2025, 5, 12, 17, 0))
    attendance_repo.add(1, AttendanceType.IN, datetime(2025, 5, 13, 17, 0))

    rate = svc.team_attendance_rate(1, days=30, since=date(2025, 5, 13), today=date(2025, 5, 14))

    assert rate == 50.0


def test_team_stats_today(svc, attendance_repo, fixed_now):
    attendance_repo.add(1, AttendanceType.IN, fixed_now - timedelta(hours=1))
    attendance_repo.add(1, AttendanceType.OUT, fixed_now - timedelta(minutes=30))
    attendance_repo.add(1, AttendanceType.IN, fixed_now - timedelta(minutes=10))

    stats = svc.team_stats(1)

    assert stats.total_members == 2
    assert stats.today_attendees == 1
    assert stats.today_attendance_rate == 50.0


def test_teams_with_member_status(svc, attendance_repo, fixed_now):
    attendance_repo.add(1, AttendanceType.IN, fixed_now)
    attendance_repo.add(2, AttendanceType.IN, fixed_now)
    attendance_repo.add(2, AttendanceType.OUT, fixed_now + timedelta(minutes=1))

    teams = {t["team_id"]: t for t in svc.teams_with_member_status()}

    assert teams[1]["current"] == 1
    assert teams[1]["total"] == 2
    assert teams[2]["current"] == 0


def test_team_detail_sorted_by_generation_then_name(svc, members_repo, attendance_repo, fixed_now):
    alice = members_repo.get_by_id(1)
    attendance_repo.add(2, AttendanceType.IN, fixed_now)

    detail = svc.team_detail(1, viewer=alice)

    assert [m["display_name"] for m in detail["members"]] == ["alice", "bob"]
    assert detail["members"][0]["grade"] == "1年生"
    assert detail["members"][1]["status"] == "in"
    assert detail["stats"]["total_members"] == 2


def test_team_detail_denied_for_other_team(svc, members_repo):
    with pytest.raises(AccessDenied):
        svc.team_detail(2, viewer=members_repo.get_by_id(1))


def test_team_detail_admin_sees_any_team(svc, members_repo):
    carol = members_repo.get_by_id(3)

    assert svc.team_detail(1, viewer=carol)["team"]["name"] == "プログラミング班"
    with pytest.raises(NotFound):
        svc.team_detail(99, viewer=carol)
