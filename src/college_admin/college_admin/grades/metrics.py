from __future__ import annotations

from typing import Iterable, Optional, Tuple

from ..common.numbers import round2
from ..core.constants import DEFAULT_COURSE_CREDITS
from .scale.base import GradingScale


def weighted_gpa(
    graded: Iterable[Tuple[str, Optional[int]]],
    scale: GradingScale,
    *,
    default_credits: int = DEFAULT_COURSE_CREDITS,
) -> float:
    """Credit-weighted grade point average over (letter, credits) pairs.

    Missing credits count as `default_credits`. No pairs (or zero total credits) gives 0.
    """
    weighted = 0.0
    total_credits = 0
    for letter, credits in graded:
        weight = int(credits) if credits else int(default_credits)
        weighted += scale.points_for(letter) * weight
        total_credits += weight
    if total_credits <= 0:
        return 0.0
    return round2(weighted / total_credits)
