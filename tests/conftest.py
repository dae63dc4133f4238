from __future__ import annotations

from datetime import datetime

import pytest

from club_attendance.core.enums import Role
from club_attendance.members.team_model import Team

from .fakes import (
    Clock,
    FakeAnnouncementsRepo,
    FakeAttendanceRepo,
    FakeAuditRepo,
    FakeMembersRepo,
    FakeRegistrationsRepo,
    FakeTeamsRepo,
)


@pytest.fixture
def fixed_now():
    return datetime(2025, 5, 14, 18, 0, 0)


@pytest.fixture
def clock(fixed_now):
    return Clock(fixed_now)


@pytest.fixture
def teams_repo():
    return FakeTeamsRepo([Team(1, "プログラミング班"), Team(2, "CG班")])


@pytest.fixture
def members_repo(audit_repo):
    repo = FakeMembersRepo(audit=audit_repo)
    repo.add(
        member_id=1,
        external_id="ext-alice",
        display_name="alice",
        card_id="04a1b2c3",
        generation=10,
        team_id=1,
        joined_at=datetime(2025, 4, 1, 9, 0, 0),
    )
    repo.add(
        member_id=2,
        external_id="ext-bob",
        display_name="bob",
        card_id="04d4e5f6",
        generation=9,
        team_id=1,
        joined_at=datetime(2024, 4, 1, 9, 0, 0),
    )
    repo.add(
        member_id=3,
        external_id="ext-carol",
        display_name="carol",
        card_id="0499aabb",
        generation=10,
        team_id=2,
        role=Role.ADMIN,
        joined_at=datetime(2025, 4, 1, 9, 0, 0),
    )
    return repo


@pytest.fixture
def attendance_repo(members_repo, teams_repo):
    return FakeAttendanceRepo(members_repo, teams_repo)


@pytest.fixture
def registrations_repo(members_repo):
    return FakeRegistrationsRepo(members_repo)


@pytest.fixture
def announcements_repo():
    return FakeAnnouncementsRepo()


@pytest.fixture
def audit_repo():
    return FakeAuditRepo()
