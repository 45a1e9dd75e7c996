"""Progression maths: XP levels, level titles, point ranks and streak bonuses."""

import math
from typing import Dict, List, Tuple

BASE_LEVEL_XP = 100
LEVEL_GROWTH = 1.2

LEVEL_TITLES: List[Tuple[int, str]] = [
    (50, "Lendário"),
    (40, "Mestre Supremo"),
    (30, "Mestre"),
    (25, "Expert"),
    (20, "Especialista"),
    (15, "Avançado"),
    (10, "Intermediário"),
    (5, "Aprendiz"),
]
DEFAULT_TITLE = "Iniciante"

RANK_THRESHOLDS: List[Tuple[int, str]] = [
    (5000, "diamond"),
    (3000, "platinum"),
    (1500, "gold"),
    (500, "silver"),
]
RANK_ORDER = ["bronze", "silver", "gold", "platinum", "diamond"]

STREAK_BONUSES: List[Tuple[int, float]] = [
    (30, 2.0),
    (14, 1.5),
    (7, 1.25),
    (3, 1.1),
]


def level_cost(level: int) -> int:
    """XP needed to go from ``level`` to ``level + 1``."""
    return math.floor(BASE_LEVEL_XP * LEVEL_GROWTH ** (level - 1))


def calculate_level(xp: int) -> int:
    """
    Level reached with a given XP total.

    Level 1 covers 0-99 XP and each following level costs 20% more
    than the previous one.
    """
    level = 1
    total = 0
    while xp >= total + level_cost(level):
        total += level_cost(level)
        level += 1
    return level


def xp_for_level(level: int) -> int:
    """Total XP at which ``level`` starts."""
    return sum(level_cost(i) for i in range(1, level))


def xp_to_next_level(xp: int) -> Dict[str, float]:
    """Progress inside the current level."""
    level = calculate_level(xp)
    start = xp_for_level(level)
    needed = xp_for_level(level + 1) - start
    current = xp - start
    return {
        "current": current,
        "needed": needed,
        "progress": current / needed * 100,
    }


def level_title(level: int) -> str:
    for threshold, title in LEVEL_TITLES:
        if level >= threshold:
            return title
    return DEFAULT_TITLE


def rank_from_points(points: int) -> str:
    for threshold, rank in RANK_THRESHOLDS:
        if points >= threshold:
            return rank
    return "bronze"


def rank_at_least(rank: str, required: str) -> bool:
    """Whether ``rank`` is equal to or above ``required``. Unknown ranks count as bronze."""
    def position(r: str) -> int:
        return RANK_ORDER.index(r) if r in RANK_ORDER else 0

    return position(rank) >= position(required)


def streak_bonus(streak_days: int) -> float:
    """Reward multiplier for a login streak."""
    for days, multiplier in STREAK_BONUSES:
        if streak_days >= days:
            return multiplier
    return 1.0
