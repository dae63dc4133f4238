from __future__ import annotations

from datetime import datetime

from club_attendance.attendance.model import AttendanceEvent
from club_attendance.core.enums import AttendanceType
from club_attendance.stats.calculator.paired_calculator import PairedSessionCalculator


def _event(event_id, type, ts):
    return AttendanceEvent(event_id, 1, AttendanceType(type), ts, ts.date())


def test_paired_calculator_sums_closed_sessions():
    events = [
        _event(1, "in", datetime(2025, 5, 14, 10, 0)),
        _event(2, "out", datetime(2025, 5, 14, 11, 30)),
        _event(3, "in", datetime(2025, 5, 14, 17, 0)),
    ]

    assert PairedSessionCalculator().total_seconds(events) == 90 * 60


def test_paired_calculator_later_in_replaces_pending_one():
    events = [
        _event(1, "out", datetime(2025, 5, 14, 9, 0)),
        _event(2, "in", datetime(2025, 5, 14, 10, 0)),
        _event(3, "in", datetime(2025, 5, 14, 11, 0)),
        _event(4, "out", datetime(2025, 5, 14, 11, 45)),
    ]

    assert PairedSessionCalculator().total_seconds(events) == 45 * 60
