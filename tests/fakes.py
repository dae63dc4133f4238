from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from club_attendance.announcements.model import Announcement
from club_attendance.attendance.model import AttendanceEvent, SummaryRow
from club_attendance.audit.model import DailyLogoutLogEntry, UserEditLogEntry
from club_attendance.core.enums import AttendanceType, Role
from club_attendance.core.exceptions import AlreadyRegistered, DuplicateIdentity
from club_attendance.members.model import Member
from club_attendance.members.team_model import Team
from club_attendance.registrations.model import TempRegistration


class FakeTeamsRepo:
    def __init__(self, teams=()):
        self._teams: dict[int, Team] = {t.team_id: t for t in teams}
        self._next_id = max(self._teams, default=0) + 1

    def get_by_id(self, team_id):
        return self._teams.get(int(team_id))

    def list_all(self):
        return sorted(self._teams.values(), key=lambda t: t.name)

    def create(self, *, name):
        team_id = self._next_id
        self._next_id += 1
        self._teams[team_id] = Team(team_id=team_id, name=name)
        return team_id

    def rename(self, *, team_id, name):
        if team_id not in self._teams:
            return False
        self._teams[team_id] = Team(team_id=team_id, name=name)
        return True

    def delete(self, *, team_id):
        return self._teams.pop(int(team_id), None) is not None


class FakeMembersRepo:
    """Members plus the audit rows their edits write; ``fail_with`` aborts an edit before anything is kept."""

    def __init__(self, members=(), *, audit: Optional["FakeAuditRepo"] = None):
        self._members: dict[int, Member] = {m.member_id: m for m in members}
        self._next_id = max(self._members, default=0) + 1
        self._audit = audit
        self.fail_with: Optional[Exception] = None

    def add(self, **kwargs) -> Member:
        kwargs.setdefault("member_id", self._next_id)
        kwargs.setdefault("role", Role.MEMBER)
        member = Member(**kwargs)
        self._members[member.member_id] = member
        self._next_id = max(self._next_id, member.member_id + 1)
        return member

    def get_by_id(self, member_id):
        return self._members.get(int(member_id))

    def get_by_card_id(self, card_id):
        return next((m for m in self._members.values() if m.card_id == card_id), None)

    def get_by_external_id(self, external_id):
        return next((m for m in self._members.values() if m.external_id == external_id), None)

    def get_by_display_name(self, display_name):
        return next((m for m in self._members.values() if m.display_name == display_name), None)

    def list_all(self):
        return sorted(self._members.values(), key=lambda m: m.member_id)

    def list_by_team(self, team_id):
        return [m for m in self.list_all() if m.team_id == int(team_id) and m.is_active]

    def count_by_team(self, team_id):
        return sum(1 for m in self._members.values() if m.team_id == int(team_id))

    def update_fields(self, member_id, fields, *, editor_id=None, changes=()):
        if self.fail_with:
            raise self.fail_with
        member = self._members.get(int(member_id))
        if not member:
            return False
        self._members[member.member_id] = replace(member, **dict(fields))
        if self._audit is not None:
            self._audit.add_user_edits(editor_id=editor_id, target_id=member.member_id, changes=changes)
        return True


class FakeAttendanceRepo:
    """Ledger kept as a list; ``before_append`` lets a test slip in a concurrent write."""

    def __init__(self, members: Optional[FakeMembersRepo] = None, teams: Optional[FakeTeamsRepo] = None):
        self.events: list[AttendanceEvent] = []
        self._next_id = 1
        self._members = members
        self._teams = teams
        self.before_append: Optional[Callable[[int], None]] = None
        self.fail_with: Optional[Exception] = None

    def add(self, member_id: int, type: AttendanceType | str, timestamp: datetime) -> AttendanceEvent:
        event = AttendanceEvent(
            attendance_id=self._next_id,
            member_id=int(member_id),
            type=AttendanceType(type),
            timestamp=timestamp,
            date=timestamp.date(),
        )
        self._next_id += 1
        self.events.append(event)
        return event

    def _for_member(self, member_id):
        return [e for e in self.events if e.member_id == int(member_id)]

    def latest_event_for(self, member_id):
        events = self._for_member(member_id)
        return max(events, key=lambda e: (e.timestamp, e.attendance_id)) if events else None

    def latest_events_for(self, member_ids=None):
        ids = {e.member_id for e in self.events} if member_ids is None else {int(m) for m in member_ids}
        out = {}
        for member_id in ids:
            latest = self.latest_event_for(member_id)
            if latest:
                out[member_id] = latest
        return out

    def append_if_latest(self, *, member_id, expected_latest_id, type, timestamp):
        if self.before_append:
            hook, self.before_append = self.before_append, None
            hook(member_id)
        current = self.latest_event_for(member_id)
        if (current.attendance_id if current else None) != expected_latest_id:
            return None
        return self.add(member_id, type, timestamp)

    def append(self, *, member_id, type, timestamp):
        return self.add(member_id, type, timestamp)

    def logout_all_currently_in(self, *, timestamp):
        if self.fail_with:
            raise self.fail_with
        ids = sorted(m for m, e in self.latest_events_for(None).items() if e.type == AttendanceType.IN)
        for member_id in ids:
            self.add(member_id, AttendanceType.OUT, timestamp)
        return ids

    def recent_for_member(self, member_id, limit):
        events = sorted(self._for_member(member_id), key=lambda e: (e.timestamp, e.attendance_id), reverse=True)
        return events[: int(limit)]

    def events_for_member_since(self, member_id, since):
        events = [e for e in self._for_member(member_id) if e.timestamp >= since]
        return sorted(events, key=lambda e: (e.timestamp, e.attendance_id))

    def in_events_between(self, *, start, end, member_ids=None):
        ids = None if member_ids is None else {int(m) for m in member_ids}
        return sorted(
            (
                e
                for e in self.events
                if e.type == AttendanceType.IN and start <= e.date <= end and (ids is None or e.member_id in ids)
            ),
            key=lambda e: (e.timestamp, e.attendance_id),
        )

    def summary_rows(self, *, start, end):
        rows = []
        for e in self.in_events_between(start=start, end=end):
            member = self._members.get_by_id(e.member_id)
            team = self._teams.get_by_id(member.team_id) if member.team_id is not None else None
            rows.append(
                SummaryRow(
                    date=e.date,
                    member_id=e.member_id,
                    team_id=member.team_id,
                    team_name=team.name if team else None,
                    generation=member.generation,
                )
            )
        return rows

    def active_dates_between(self, *, start, end):
        return {e.date for e in self.events if start <= e.date <= end}


class FakeRegistrationsRepo:
    def __init__(self, members: FakeMembersRepo):
        self._members = members
        self._rows: dict[int, TempRegistration] = {}
        self._next_id = 1
        self.before_complete: Optional[Callable[[int], None]] = None

    def upsert_for_card(self, *, card_id, token, created_at, expires_at):
        existing = next((r for r in self._rows.values() if r.card_id == card_id), None)
        registration_id = existing.registration_id if existing else self._next_id
        if not existing:
            self._next_id += 1
        row = TempRegistration(
            registration_id=registration_id,
            card_id=card_id,
            token=token,
            created_at=created_at,
            expires_at=expires_at,
        )
        self._rows[registration_id] = row
        return row

    def get_by_token(self, token):
        return next((r for r in self._rows.values() if r.token == token), None)

    def mark_accessed(self, *, registration_id, accessed_at):
        row = self._rows.get(registration_id)
        if not row or row.accessed_at is not None:
            return False
        self._rows[registration_id] = row.with_accessed(accessed_at)
        return True

    def mark_used(self, registration_id):
        self._rows[registration_id] = replace(self._rows[registration_id], is_used=True)

    def complete(self, *, registration_id, external_id, details):
        if self.before_complete:
            hook, self.before_complete = self.before_complete, None
            hook(registration_id)

        row = self._rows.get(registration_id)
        if not row or row.is_used:
            return None
        if self._members.get_by_external_id(external_id):
            raise DuplicateIdentity(DuplicateIdentity.EXTERNAL_IDENTITY)
        if self._members.get_by_display_name(details.display_name):
            raise DuplicateIdentity(DuplicateIdentity.DISPLAY_NAME)
        if self._members.get_by_card_id(row.card_id):
            raise AlreadyRegistered()

        self.mark_used(registration_id)
        return self._members.add(
            external_id=external_id,
            display_name=details.display_name,
            card_id=row.card_id,
            generation=details.generation,
            team_id=details.team_id,
            student_number=details.student_number,
            joined_at=row.created_at,
        )

    def list_all(self):
        return sorted(self._rows.values(), key=lambda r: r.created_at, reverse=True)

    def delete(self, *, registration_id):
        return self._rows.pop(int(registration_id), None) is not None


class FakeAnnouncementsRepo:
    def __init__(self):
        self.rows: dict[int, Announcement] = {}
        self._next_id = 1

    def get_by_id(self, announcement_id):
        return self.rows.get(int(announcement_id))

    def get_current(self):
        return next((a for a in self.rows.values() if a.is_current and a.is_active), None)

    def list_all(self):
        return sorted(self.rows.values(), key=lambda a: a.announcement_id, reverse=True)

    def _clear_current(self, keep=None):
        for a in list(self.rows.values()):
            if a.is_current and a.announcement_id != keep:
                self.rows[a.announcement_id] = replace(a, is_current=False)

    def create(self, *, title, content, author_id, is_current=False):
        if is_current:
            self._clear_current()
        announcement_id = self._next_id
        self._next_id += 1
        self.rows[announcement_id] = Announcement(
            announcement_id=announcement_id,
            title=title,
            content=content,
            author_id=author_id,
            is_current=is_current,
        )
        return announcement_id

    def update(self, *, announcement_id, fields):
        row = self.rows.get(int(announcement_id))
        if not row:
            return False
        if fields.get("is_current"):
            self._clear_current(keep=row.announcement_id)
        self.rows[row.announcement_id] = replace(row, **dict(fields))
        return True

    def deactivate(self, *, announcement_id):
        row = self.rows.get(int(announcement_id))
        if not row:
            return False
        self.rows[row.announcement_id] = replace(row, is_active=False, is_current=False)
        return True


class FakeAuditRepo:
    def __init__(self):
        self.user_edits: list[UserEditLogEntry] = []
        self.logout_runs: list[DailyLogoutLogEntry] = []

    def add_user_edits(self, *, editor_id, target_id, changes):
        for c in changes:
            self.user_edits.append(
                UserEditLogEntry(
                    log_id=len(self.user_edits) + 1,
                    editor_id=editor_id,
                    target_id=target_id,
                    field_name=c.field_name,
                    old_value=c.old_value,
                    new_value=c.new_value,
                    created_at=datetime(2025, 5, 1, 12, 0, 0),
                )
            )
        return len(changes)

    def list_user_edits(self, *, limit=200):
        return list(reversed(self.user_edits))[:limit]

    def record_logout_run(self, *, affected_count, status):
        self.logout_runs.append(
            DailyLogoutLogEntry(
                log_id=len(self.logout_runs) + 1,
                affected_count=affected_count,
                status=status,
                executed_at=datetime(2025, 5, 1, 23, 0, 0),
            )
        )
        return len(self.logout_runs)

    def list_logout_runs(self, *, limit=200):
        return list(reversed(self.logout_runs))[:limit]


class Clock:
    """Settable clock for services and the kiosk."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def today(self) -> date:
        return self.now.date()
