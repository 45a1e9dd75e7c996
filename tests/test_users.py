"""Profiles, rewards, streaks, achievements, cosmetics and roles."""

import pytest

from app.crud.base import today_iso, yesterday_iso
from app.crud.user import UserCRUD
from app.utils.exceptions import (
    AuthorizationError,
    ConflictError,
    InsufficientPointsError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def users(store):
    return UserCRUD(store)


def test_new_profile_defaults(make_user):
    profile = make_user("alice0001", display_name="Alice")
    assert profile["level"] == 1
    assert profile["rank"] == "bronze"
    assert profile["points"] == 0
    assert profile["xp"] == 0
    assert profile["role"] == "user"
    assert profile["achievements"] == ["welcome"]
    assert profile["referral_code"] == "REFALICE000"


def test_duplicate_profile_conflicts(users, make_user):
    make_user("alice")
    with pytest.raises(ConflictError):
        users.create_profile("alice")


def test_ensure_profile_is_idempotent(users):
    first = users.ensure_profile("bob", email="bob@example.com", display_name="Bob")
    second = users.ensure_profile("bob", display_name="Other")
    assert first["id"] == second["id"]
    assert second["display_name"] == "Bob"


def test_blank_display_name_is_rejected(users, make_user):
    make_user("alice")
    with pytest.raises(ValidationError):
        users.update_profile("alice", display_name="   ")
    assert users.update_profile("alice", display_name=" Alicia ")["display_name"] == "Alicia"


def test_apply_reward_derives_level_and_rank(users, make_user):
    make_user("alice")
    result = users.apply_reward("alice", xp=100, points=500)
    assert result == {"xp": 100, "points": 500, "level": 2, "rank": "silver", "level_up": True}


def test_apply_reward_clamps_at_zero(users, make_user):
    make_user("alice")
    users.apply_reward("alice", xp=50, points=10)
    result = users.apply_reward("alice", xp=-500, points=-500)
    assert result["xp"] == 0
    assert result["points"] == 0
    profile = users.get_profile("alice")
    assert profile["xp"] == 0
    assert profile["points"] == 0


def test_level_up_unlocks_level_achievement(users, make_user):
    make_user("alice")
    users.apply_reward("alice", xp=1000)
    profile = users.get_profile("alice")
    assert "level-5" in profile["achievements"]
    # 1000 plus the 150 XP of the rare achievement
    assert profile["xp"] == 1150
    assert profile["level"] == 7


def test_streak_continues_from_yesterday(users, make_user):
    make_user("alice", streak_days=6, last_active_date=yesterday_iso())
    profile = users.record_activity("alice")
    assert profile["streak_days"] == 7
    assert profile["last_active_date"] == today_iso()
    assert "streak-7" in profile["achievements"]


def test_streak_restarts_after_a_gap(users, make_user):
    make_user("alice", streak_days=12, last_active_date="2000-01-01")
    assert users.record_activity("alice")["streak_days"] == 1


def test_streak_counts_once_per_day(users, make_user):
    make_user("alice", streak_days=3, last_active_date=today_iso())
    assert users.record_activity("alice")["streak_days"] == 3


def test_leaderboard_and_ranking_position(users, make_user):
    make_user("alice", points=300)
    make_user("bob", points=900)
    make_user("carol", points=100)

    board = users.leaderboard(limit=2)
    assert [entry["uid"] for entry in board] == ["bob", "alice"]
    assert board[0]["position"] == 1
    assert users.ranking_position("carol") == 3


def test_unlock_achievement_once(users, make_user):
    make_user("alice")
    assert users.unlock_achievement("alice", "first-post") == 50
    assert users.unlock_achievement("alice", "first-post") == 0
    assert users.get_profile("alice")["xp"] == 50
    with pytest.raises(NotFoundError):
        users.unlock_achievement("alice", "nope")


def test_unlock_cosmetic_spends_xp_and_equips(users, make_user):
    make_user("alice")
    users.apply_reward("alice", xp=1000)
    profile = users.unlock_cosmetic("alice", "frame", "frame-gold")
    assert profile["xp"] == 1150 - 300
    assert "frame-gold" in profile["unlocked_frames"]
    assert profile["current_frame_id"] == "frame-gold"

    # Owned items are re-equipped for free
    assert users.unlock_cosmetic("alice", "frame", "frame-gold")["xp"] == 850


def test_unlock_cosmetic_checks_level_then_xp(users, make_user):
    make_user("alice")
    with pytest.raises(ValidationError):
        users.unlock_cosmetic("alice", "frame", "frame-gold")

    make_user("bob", level=3)
    with pytest.raises(InsufficientPointsError):
        users.unlock_cosmetic("bob", "frame", "frame-gold")


def test_equip_requires_ownership_except_free_items(users, make_user):
    make_user("alice")
    profile = users.equip_cosmetic("alice", "avatar", "default-2")
    assert profile["current_avatar_id"] == "default-2"
    assert "robot" in profile["photo_url"]
    with pytest.raises(AuthorizationError):
        users.equip_cosmetic("alice", "avatar", "premium-1")


def test_set_role(users, make_user):
    make_user("alice")
    assert users.set_role("alice", "moderator")["role"] == "moderator"
    with pytest.raises(ValidationError):
        users.set_role("alice", "owner")


def test_delete_user_removes_mission_history(users, make_user, store):
    from app.crud.missions import MissionCRUD

    make_user("alice")
    MissionCRUD(store).initialize_today("alice")
    users.delete_user("alice")
    assert not users.exists("alice")
    assert store.collection("users").document("alice").collection("dailyMissions").get() == []
