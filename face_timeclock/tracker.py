from __future__ import annotations

from collections import deque
from typing import Optional

from .config import REQUIRED_CONSECUTIVE_MATCHES
from .types import TrackerResult


class ConsecutiveMatchTracker:
    """Confirms an identity only after an unbroken run of matches for it.

    A no-match resets the run; a different candidate restarts it at one.
    """

    def __init__(self, required_matches: int = REQUIRED_CONSECUTIVE_MATCHES):
        if int(required_matches) < 1:
            raise ValueError("required_matches must be at least 1.")
        self.required_matches = int(required_matches)
        self._history: deque[str] = deque(maxlen=self.required_matches + 2)
        self._streak = 0

    @property
    def streak(self) -> int:
        return self._streak

    @property
    def candidate(self) -> Optional[str]:
        return self._history[-1] if self._history else None

    @property
    def history(self) -> tuple[str, ...]:
        return tuple(self._history)

    def add_match(self, employee_id: Optional[str]) -> TrackerResult:
        if not employee_id:
            self.reset()
            return TrackerResult(confirmed=False, employee_id=None, streak=0)

        if self._history and self._history[-1] != employee_id:
            self._history.clear()
            self._history.append(employee_id)
            self._streak = 1
            return TrackerResult(confirmed=False, employee_id=employee_id, streak=1)

        self._history.append(employee_id)
        self._streak += 1
        return TrackerResult(
            confirmed=self._streak >= self.required_matches,
            employee_id=employee_id,
            streak=self._streak,
        )

    def reset(self) -> None:
        self._history.clear()
        self._streak = 0
