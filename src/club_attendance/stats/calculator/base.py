from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ...attendance.model import AttendanceEvent


class ActivityCalculator(ABC):
    """Calculator interface (Strategy Pattern for time spent in the club room)."""

    @abstractmethod
    def total_seconds(self, events: Sequence[AttendanceEvent]) -> int:
        """Seconds of activity in chronologically ordered ``events``."""

        raise NotImplementedError
