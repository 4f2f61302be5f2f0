"""Interquartile-range fences over a fare sample.

Used only as a fallback acceptance test for fares that fall outside the
official tariff window.
"""

from collections.abc import Sequence

from pydantic import BaseModel

MIN_SAMPLES = 4
FENCE_FACTOR = 1.5


class IQRBounds(BaseModel):
    q1: float
    q3: float
    iqr: float
    lower_bound: float
    upper_bound: float

    def contains(self, value: float) -> bool:
        return self.lower_bound <= value <= self.upper_bound


def _median(values: Sequence[float]) -> float:
    n = len(values)
    mid = n // 2
    if n % 2:
        return values[mid]
    return (values[mid - 1] + values[mid]) / 2


def interquartile_range(samples: Sequence[float]) -> IQRBounds | None:
    """Tukey fences using the exclusive median split.

    For odd-length samples the middle element belongs to neither half.
    Returns None when fewer than four samples are available.
    """
    if len(samples) < MIN_SAMPLES:
        return None

    ordered = sorted(samples)
    half = len(ordered) // 2
    lower_half = ordered[:half]
    upper_half = ordered[half + 1 :] if len(ordered) % 2 else ordered[half:]

    q1 = _median(lower_half)
    q3 = _median(upper_half)
    iqr = q3 - q1
    return IQRBounds(
        q1=q1,
        q3=q3,
        iqr=iqr,
        lower_bound=q1 - FENCE_FACTOR * iqr,
        upper_bound=q3 + FENCE_FACTOR * iqr,
    )
