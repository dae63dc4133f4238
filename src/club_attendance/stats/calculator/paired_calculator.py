from __future__ import annotations

from typing import Sequence

from ...attendance.model import AttendanceEvent
from ...core.enums import AttendanceType
from .base import ActivityCalculator


class PairedSessionCalculator(ActivityCalculator):
    """Sum of well-formed in -> out pairs.

    A later `in` replaces a pending one, an `out` with nothing open is
    ignored, and a trailing open `in` does not count.
    """

    def total_seconds(self, events: Sequence[AttendanceEvent]) -> int:
        total = 0
        opened_at = None
        for e in events:
            if e.type == AttendanceType.IN:
                opened_at = e.timestamp
            elif e.type == AttendanceType.OUT and opened_at is not None:
                total += int((e.timestamp - opened_at).total_seconds())
                opened_at = None
        return total
