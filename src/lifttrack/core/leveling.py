"""
Leveling curve: cumulative XP → level.

Levels 1..20 come from a fixed threshold table; beyond level 20 each
threshold is the level-20 threshold grown by 15% per level:

    threshold(n) = floor(threshold(20) * 1.15^(n - 20))     for n > 20

The curve is unbounded, so every XP total maps to exactly one level.
All functions are pure.
"""

import math
from fractions import Fraction

from .config import LEVEL_GROWTH_DENOMINATOR, LEVEL_GROWTH_NUMERATOR, XP_THRESHOLDS
from .models import XpProgress

_TABLE_MAX_LEVEL = len(XP_THRESHOLDS)
_GROWTH = Fraction(LEVEL_GROWTH_NUMERATOR, LEVEL_GROWTH_DENOMINATOR)


def threshold_for_level(level: int) -> int:
    """
    Total XP needed to reach a level.

    Args:
        level: Level number (levels below 1 map to 0 XP)

    Returns:
        Minimum cumulative XP for the level
    """
    if level <= 0:
        return 0
    if level <= _TABLE_MAX_LEVEL:
        return XP_THRESHOLDS[level - 1]
    # Exact rational power so that e.g. level 21 is 29440, not 29439.99…
    scaled = XP_THRESHOLDS[-1] * _GROWTH ** (level - _TABLE_MAX_LEVEL)
    return math.floor(scaled)


def level_for_xp(total_xp: int) -> int:
    """
    Highest level whose threshold is ≤ total_xp.

    Negative input is treated as 0 XP (level 1).

    Args:
        total_xp: Cumulative XP

    Returns:
        Level (≥ 1)
    """
    if total_xp <= 0:
        return 1

    if total_xp < XP_THRESHOLDS[-1]:
        for i in range(_TABLE_MAX_LEVEL - 1, -1, -1):
            if total_xp >= XP_THRESHOLDS[i]:
                return i + 1

    level = _TABLE_MAX_LEVEL
    while threshold_for_level(level + 1) <= total_xp:
        level += 1
    return level


def xp_progress(total_xp: int) -> XpProgress:
    """
    Describe progress through the current level.

    percent_to_next = floor(100 * xp_into_level / xp_to_next_level), clamped
    to 100 (and reported as 100 when the next level costs nothing).

    Args:
        total_xp: Cumulative XP

    Returns:
        XpProgress for display
    """
    total_xp = max(0, total_xp)
    level = level_for_xp(total_xp)
    current = threshold_for_level(level)
    following = threshold_for_level(level + 1)

    xp_into_level = total_xp - current
    xp_to_next_level = following - current

    if xp_to_next_level > 0:
        percent = min(100, (100 * xp_into_level) // xp_to_next_level)
    else:
        percent = 100

    return XpProgress(
        level=level,
        xp_into_level=xp_into_level,
        xp_to_next_level=xp_to_next_level,
        percent_to_next=percent,
    )
