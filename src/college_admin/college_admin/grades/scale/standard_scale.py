from __future__ import annotations

from .base import GradingScale

# (inclusive lower bound, letter, grade point), best first.
BANDS = (
    (90.0, "A+", 10.0),
    (80.0, "A", 9.0),
    (70.0, "B+", 8.0),
    (60.0, "B", 7.0),
    (50.0, "C+", 6.0),
    (40.0, "C", 5.0),
    (33.0, "D", 4.0),
)


class StandardGradingScale(GradingScale):
    """Ten-point scale: A+ from 90%, down to D from 33%, F below."""

    _points = {letter: points for _, letter, points in BANDS}

    def letter_for(self, percentage: float) -> str:
        for lower, letter, _ in BANDS:
            if percentage >= lower:
                return letter
        return self.failing_letter

    def points_for(self, letter: str) -> float:
        return self._points.get(letter, 0.0)

    @property
    def letters(self) -> tuple:
        return tuple(letter for _, letter, _ in BANDS) + (self.failing_letter,)
