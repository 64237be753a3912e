from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class GradingScale(ABC):
    """Grading interface (Strategy Pattern for letter grades)."""

    failing_letter = "F"

    @abstractmethod
    def letter_for(self, percentage: float) -> str:
        raise NotImplementedError

    @abstractmethod
    def points_for(self, letter: str) -> float:
        raise NotImplementedError

    @property
    @abstractmethod
    def letters(self) -> tuple:
        """All letters, best first."""
        raise NotImplementedError

    def letter_for_marks(self, marks: float, max_marks: Optional[float]) -> str:
        """Letter for marks out of max_marks; a non-positive max yields the failing letter."""
        if not max_marks or max_marks <= 0:
            return self.failing_letter
        return self.letter_for(float(marks) * 100 / float(max_marks))
