"""Level curve and computation.

Level L starts at (L - 1)^2 * 100 cumulative XP, so level = floor(sqrt(xp / 100)) + 1.
The reader's desktop client renders progress bars from the same curve.
"""

from __future__ import annotations

import math

XP_LEVEL_FACTOR = 100


def level_for(experience_points: int) -> int:
    """Level reached with the given total XP. Monotonic, never below 1."""
    if experience_points < 0:
        msg = f"experience_points must be non-negative, got {experience_points}"
        raise ValueError(msg)
    # integer sqrt, exact at every boundary
    return math.isqrt(experience_points // XP_LEVEL_FACTOR) + 1


def xp_for_level(level: int) -> int:
    """Cumulative XP at which ``level`` begins."""
    if level < 1:
        msg = f"level must be >= 1, got {level}"
        raise ValueError(msg)
    return (level - 1) ** 2 * XP_LEVEL_FACTOR


def xp_for_next_level(level: int) -> int:
    """Cumulative XP needed to leave ``level``."""
    return xp_for_level(level + 1)


def compute_level(total_xp: int) -> dict:
    """Compute level info from total XP."""
    level = level_for(total_xp)
    floor_xp = xp_for_level(level)
    next_level_xp = xp_for_next_level(level)

    return {
        "level": level,
        "xp_into_level": total_xp - floor_xp,
        "xp_for_level": next_level_xp - floor_xp,
        "next_level": level + 1,
        "next_level_xp": next_level_xp,
    }
