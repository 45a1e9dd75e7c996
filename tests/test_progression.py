"""Level, rank, streak and achievement rules."""

import pytest

from app.services import achievements, cosmetics
from app.services.progression import (
    calculate_level,
    level_title,
    rank_at_least,
    rank_from_points,
    streak_bonus,
    xp_for_level,
    xp_to_next_level,
)


@pytest.mark.parametrize(
    "xp,level",
    [(0, 1), (99, 1), (100, 2), (219, 2), (220, 3), (363, 3), (364, 4)],
)
def test_calculate_level(xp, level):
    assert calculate_level(xp) == level


def test_level_costs_grow_twenty_percent():
    assert xp_for_level(2) == 100
    assert xp_for_level(3) - xp_for_level(2) == 120
    assert xp_for_level(4) - xp_for_level(3) == 144


def test_xp_to_next_level():
    progress = xp_to_next_level(150)
    assert progress["current"] == 50
    assert progress["needed"] == 120
    assert progress["progress"] == pytest.approx(50 / 120 * 100)


@pytest.mark.parametrize(
    "level,title",
    [(1, "Iniciante"), (5, "Aprendiz"), (12, "Intermediário"), (30, "Mestre"), (60, "Lendário")],
)
def test_level_title(level, title):
    assert level_title(level) == title


@pytest.mark.parametrize(
    "points,rank",
    [(0, "bronze"), (499, "bronze"), (500, "silver"), (1500, "gold"), (3000, "platinum"), (5000, "diamond")],
)
def test_rank_from_points(points, rank):
    assert rank_from_points(points) == rank


def test_rank_at_least():
    assert rank_at_least("gold", "silver")
    assert rank_at_least("silver", "silver")
    assert not rank_at_least("bronze", "silver")
    assert rank_at_least("mystery", "bronze")


@pytest.mark.parametrize("days,bonus", [(0, 1.0), (3, 1.1), (7, 1.25), (14, 1.5), (45, 2.0)])
def test_streak_bonus(days, bonus):
    assert streak_bonus(days) == bonus


def test_profile_rules_unlock_streak_and_level_achievements():
    profile = {"achievements": ["welcome"], "level": 5, "streak_days": 7}
    assert achievements.check_achievements(profile) == ["streak-7", "level-5"]


def test_owned_achievements_are_not_returned_again():
    profile = {"achievements": ["welcome", "level-5"], "level": 6}
    assert achievements.check_achievements(profile) == []


def test_first_action_needs_a_count_of_one():
    profile = {"achievements": ["welcome"]}
    assert achievements.check_achievements(profile, {"action": "post", "post_count": 1}) == ["first-post"]
    assert achievements.check_achievements(profile, {"action": "post", "post_count": 2}) == []


def test_ranking_achievements_ignore_missing_position():
    profile = {"achievements": ["welcome"]}
    assert achievements.check_achievements(profile, {"ranking_position": None}) == []
    assert achievements.check_achievements(profile, {"ranking_position": 1}) == ["top-10", "top-1"]
    assert achievements.check_achievements(profile, {"ranking_position": 7}) == ["top-10"]


def test_achievement_xp_by_rarity():
    assert achievements.achievement_xp("first-post") == 50
    assert achievements.achievement_xp("streak-7") == 150
    assert achievements.achievement_xp("level-10") == 500
    assert achievements.achievement_xp("top-1") == 1000
    assert achievements.achievement_xp("nope") == 0


def test_cosmetic_catalogue():
    assert cosmetics.is_free(cosmetics.get_item("avatar", "default-1"))
    frame = cosmetics.get_item("frame", "frame-gold")
    assert frame["xp_cost"] == 300
    assert frame["required_level"] == 3
    assert cosmetics.get_item("frame", "missing") is None
