"""
reward_accounting.py - Point and reward math.
Pure functions: no storage, no clock, no logging. Both the SQL store and the
offline cache call apply() so the rules are identical in every mode.
"""

import math
from typing import NamedTuple

from config import REWARD_THRESHOLD, MAX_DELTA
from errors import InvalidDelta


class PointState(NamedTuple):
    points: int
    rewards: int


class AccountingResult(NamedTuple):
    after: PointState
    rewards_earned: int

    @property
    def reward_fired(self) -> bool:
        return self.rewards_earned > 0


def validate_delta(delta, max_delta: int = MAX_DELTA) -> int:
    """
    Returns delta as an int or raises InvalidDelta.
    Integral floats (e.g. 5.0 from a JSON body) are accepted; bools are not.
    """
    if isinstance(delta, bool):
        raise InvalidDelta()
    if isinstance(delta, float):
        if not math.isfinite(delta) or not delta.is_integer():
            raise InvalidDelta()
        delta = int(delta)
    if not isinstance(delta, int):
        raise InvalidDelta()
    if abs(delta) > max_delta:
        raise InvalidDelta(f"Invalid delta: magnitude exceeds {max_delta}")
    return delta


def cycle_points(points: int, threshold: int = REWARD_THRESHOLD) -> int:
    """Progress within the current reward cycle."""
    return points % threshold


def apply(before: PointState, delta, threshold: int = REWARD_THRESHOLD,
          max_delta: int = MAX_DELTA) -> AccountingResult:
    """
    Applies a signed delta to a student's totals.

    Points are clamped at zero. Rewards are earned only when the clamped
    total rises and lands at or past a threshold multiple; one reward per
    multiple crossed.
    """
    delta = validate_delta(delta, max_delta)

    after_points = max(0, before.points + delta)

    earned = 0
    if after_points > before.points and after_points >= threshold:
        earned = max(0, after_points // threshold - before.points // threshold)

    return AccountingResult(PointState(after_points, before.rewards + earned), earned)
