from typing import Sequence

from breathpacer.utils.models import BreathPoint

# Slopes flatter than this are treated as a hold
_FLAT = 1e-12


def flat_extension(last: BreathPoint, t: float) -> float:
    """
    Extrapolation policy past the end of a track: a zero-slope line from the
    last point out to infinity.
    """
    return last.h


def height_at(points: Sequence[BreathPoint], t: float) -> float:
    """
    Height of the piecewise-linear track at time t (ms).

    Before (or at) the sentinel the sentinel height is returned; past the last
    point the track is extended with flat_extension.
    """
    if not points:
        return 0.0
    if t <= points[0].t:
        return points[0].h

    for left, right in zip(points, points[1:]):
        if left.t <= t <= right.t:
            span = right.t - left.t
            if span <= 0:
                return right.h
            return left.h + (right.h - left.h) * (t - left.t) / span

    return flat_extension(points[-1], t)


def phase_at(points: Sequence[BreathPoint], t: float) -> str:
    """Breathing phase of the segment containing t: inhale, exhale, hold or idle."""
    if len(points) < 2 or t < points[0].t or t > points[-1].t:
        return "idle"

    for left, right in zip(points, points[1:]):
        # right-open so a vertex reports the segment that starts there
        if left.t <= t < right.t or (right is points[-1] and t == right.t):
            slope = right.h - left.h
            if slope > _FLAT:
                return "inhale"
            if slope < -_FLAT:
                return "exhale"
            return "hold"
    return "idle"
