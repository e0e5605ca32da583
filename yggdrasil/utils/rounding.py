"""통계용 정수 반올림 유틸리티.

Integer rounding for dashboard figures. Halves always round up
(2.5 -> 3, 12.5 -> 13); the built-in ``round`` would send them to the
nearest even number instead.
"""

import math
from typing import Sequence


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def average(values: Sequence[int]) -> int:
    """정수 평균, 빈 목록은 0 (Rounded mean; 0 for an empty sequence)."""
    return round_half_up(sum(values) / len(values)) if values else 0


def percentage(part: int, total: int) -> int:
    """백분율, total이 0이면 0 (Rounded percentage; 0 when total is 0)."""
    return round_half_up(part / total * 100) if total else 0
