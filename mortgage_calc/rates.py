"""Interest rate interpolation across duration anchors."""

from __future__ import annotations

from typing import Mapping, Optional

from .logging import get_logger

logger = get_logger(__name__)


def interpolate_rate(duration: float, rates: Optional[Mapping[int, float]]) -> float:
    """Return the annual rate (percent) for ``duration`` years.

    The formula between two anchors ``D1 < D < D2`` is::

        rate(D) = rate(D1) + (rate(D2) - rate(D1)) * (D - D1) / (D2 - D1)

    An exact anchor is returned as is. Durations below the lowest anchor use
    the lowest anchor's rate, durations above the highest use the highest
    anchor's rate. When an anchor is missing the two nearest available ones
    are used. A missing table or a non-positive duration yields ``0.0``,
    which callers treat as "rate unavailable".
    """
    if not duration or duration <= 0 or not rates:
        return 0.0

    if duration in rates:
        return float(rates[duration])

    anchors = sorted(rates)
    if duration < anchors[0]:
        return float(rates[anchors[0]])
    if duration > anchors[-1]:
        return float(rates[anchors[-1]])

    for d1, d2 in zip(anchors, anchors[1:]):
        if d1 < duration < d2:
            rate1 = float(rates[d1])
            rate2 = float(rates[d2])
            interpolated = rate1 + (rate2 - rate1) * (duration - d1) / (d2 - d1)
            logger.debug("Interpolated %.4f%% for %s years between %s and %s", interpolated, duration, d1, d2)
            return interpolated
    return 0.0
