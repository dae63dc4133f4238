from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from ..core.enums import AttendanceType
from .model import AttendanceEvent, SummaryRow


class AttendanceRepository(Protocol):
    """Append-only attendance ledger."""

    def latest_event_for(self, member_id: int) -> Optional[AttendanceEvent]:
        """Most recent event by timestamp (ties broken by id), or None."""

        raise NotImplementedError

    def latest_events_for(self, member_ids: Optional[Iterable[int]] = None) -> Mapping[int, AttendanceEvent]:
        """Latest event per member; all members when ``member_ids`` is None."""

        raise NotImplementedError

    def append_if_latest(
        self,
        *,
        member_id: int,
        expected_latest_id: Optional[int],
        type: AttendanceType,
        timestamp: datetime,
    ) -> Optional[AttendanceEvent]:
        """Compare-and-set append.

        Inserts only while the member's latest event id still equals
        ``expected_latest_id`` (None meaning "no events yet"), atomically per
        member. Returns the new event, or None when another writer got there
        first.
        """

        raise NotImplementedError

    def append(self, *, member_id: int, type: AttendanceType, timestamp: datetime) -> AttendanceEvent:
        """Unconditional append used by administrative corrections."""

        raise NotImplementedError

    def logout_all_currently_in(self, *, timestamp: datetime) -> Sequence[int]:
        """Atomically append `out` for every member whose latest event is `in`.

        Returns the affected member ids.
        """

        raise NotImplementedError

    def recent_for_member(self, member_id: int, limit: int) -> Sequence[AttendanceEvent]:
        raise NotImplementedError

    def events_for_member_since(self, member_id: int, since: datetime) -> Sequence[AttendanceEvent]:
        """Events at or after ``since`` in chronological order."""

        raise NotImplementedError

    def in_events_between(
        self,
        *,
        start: date,
        end: date,
        member_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[AttendanceEvent]:
        """`in` events whose derived date lies in [start, end]."""

        raise NotImplementedError

    def summary_rows(self, *, start: date, end: date) -> Sequence[SummaryRow]:
        raise NotImplementedError

    def active_dates_between(self, *, start: date, end: date) -> set[date]:
        """Distinct dates in [start, end] with any recorded event."""

        raise NotImplementedError
