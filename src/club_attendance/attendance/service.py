from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..audit.repository import AuditRepository
from ..common.cards import normalize_card_id
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceType, LogoutRunStatus
from ..core.exceptions import NotFound, StoreUnavailable, UnknownCard, ValidationError
from ..database.mysql_base import store_errors
from ..members.model import Member
from ..members.repository import MemberRepository
from .model import AttendanceEvent, ToggleResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

TYPE_LABELS = {
    AttendanceType.IN: "出勤",
    AttendanceType.OUT: "退勤",
}

TAP_MESSAGES = {
    AttendanceType.IN: "出勤しました",
    AttendanceType.OUT: "退勤しました",
}


class AttendanceService:
    """Use cases around the attendance ledger: kiosk taps and admin corrections."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        members: MemberRepository,
        audit: AuditRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._members = members
        self._audit = audit
        self._clock = clock

    def toggle(self, card_id: str, *, now: Optional[datetime] = None) -> ToggleResult:
        """Flip the tapped member between `in` and `out`.

        The caller never picks the resulting type; it is the opposite of the
        member's latest event (`in` when there is none).
        """

        normalized = normalize_card_id(card_id)
        with store_errors("toggle"):
            member = self._members.get_by_card_id(normalized)
            if not member or not member.is_active:
                logger.info("tap from unknown card %s", normalized)
                raise UnknownCard()
            result = self._toggle_member(member, now=now or self._clock(), messages=TAP_MESSAGES)

        logger.info(
            "member %s tapped %s%s",
            member.member_id,
            result.type.value,
            " (duplicate)" if result.duplicate else "",
        )
        return result

    def force_toggle(self, member_id: int, *, now: Optional[datetime] = None) -> ToggleResult:
        with store_errors("force_toggle"):
            member = self._require_member(member_id)
            result = self._toggle_member(
                member,
                now=now or self._clock(),
                messages={t: f"ユーザーを強制的に{label}させました。" for t, label in TYPE_LABELS.items()},
            )
        logger.info("admin forced member %s to %s", member_id, result.type.value)
        return result

    def force_set(self, member_id: int, type: AttendanceType | str, *, now: Optional[datetime] = None) -> AttendanceEvent:
        try:
            requested = AttendanceType(type)
        except ValueError:
            raise ValidationError("打刻種別が正しくありません")

        with store_errors("force_set"):
            self._require_member(member_id)
            event = self._attendance.append(member_id=int(member_id), type=requested, timestamp=now or self._clock())
        logger.info("admin set member %s to %s", member_id, requested.value)
        return event

    def force_logout_all(self, *, now: Optional[datetime] = None) -> int:
        """Clock out everybody currently `in`; safe to re-run."""

        try:
            with store_errors("force_logout_all"):
                affected = self._attendance.logout_all_currently_in(timestamp=now or self._clock())
        except StoreUnavailable:
            with store_errors("record_logout_run"):
                self._audit.record_logout_run(affected_count=0, status=LogoutRunStatus.ERROR)
            raise

        with store_errors("record_logout_run"):
            self._audit.record_logout_run(affected_count=len(affected), status=LogoutRunStatus.SUCCESS)
        logger.info("force logout affected %d member(s)", len(affected))
        return len(affected)

    def current_status(self, member_id: int) -> AttendanceType:
        with store_errors("current_status"):
            latest = self._attendance.latest_event_for(int(member_id))
        return latest.type if latest else AttendanceType.OUT

    def currently_in_member_ids(self) -> list[int]:
        with store_errors("currently_in"):
            latest = self._attendance.latest_events_for(None)
        return sorted(m for m, e in latest.items() if e.type == AttendanceType.IN)

    def history(self, member_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[AttendanceEvent]:
        """Most recent events first."""

        with store_errors("history"):
            return list(self._attendance.recent_for_member(int(member_id), int(limit)))

    def get_history_ui(self, member_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict]:
        return [self._to_ui(r) for r in self.history(member_id, limit=limit)]

    def _require_member(self, member_id: int) -> Member:
        member = self._members.get_by_id(int(member_id))
        if not member:
            raise NotFound("ユーザーが見つかりません。")
        return member

    def _toggle_member(self, member: Member, *, now: datetime, messages: dict) -> ToggleResult:
        previous = self._attendance.latest_event_for(member.member_id)
        next_type = previous.type.opposite() if previous else AttendanceType.IN

        event = self._attendance.append_if_latest(
            member_id=member.member_id,
            expected_latest_id=previous.attendance_id if previous else None,
            type=next_type,
            timestamp=now,
        )
        if event is not None:
            return ToggleResult(member=member, type=next_type, message=messages[next_type], event=event)

        # Lost the race: report what the concurrent tap recorded instead of toggling back.
        winner = self._attendance.latest_event_for(member.member_id)
        if winner is None:
            raise NotFound("ユーザーが見つかりません。")
        return ToggleResult(
            member=member,
            type=winner.type,
            message=messages[winner.type],
            event=winner,
            duplicate=True,
        )

    @staticmethod
    def _to_ui(e: AttendanceEvent) -> dict:
        css = {
            AttendanceType.IN: "bg-success",
            AttendanceType.OUT: "bg-secondary",
        }.get(e.type, "bg-secondary")

        return {
            "date": e.date.strftime("%Y-%m-%d"),
            "time": e.timestamp.strftime("%H:%M:%S"),
            "type": e.type.value,
            "label": TYPE_LABELS.get(e.type, e.type.value),
            "css_class": css,
        }
