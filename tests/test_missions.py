"""Daily missions, rewards, claims and the all-missions bonus."""

import pytest

from app.crud.missions import ALL_MISSIONS_BONUS, MissionCRUD
from app.crud.user import UserCRUD
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def missions(store):
    return MissionCRUD(store)


def test_login_reward_is_paid_once_per_day(missions, make_user, store):
    make_user("alice")
    first = missions.initialize_today("alice")
    second = missions.initialize_today("alice")

    assert first["login_reward_granted"] is True
    assert second["login_reward_granted"] is False
    login = first["missions_doc"]["missions"]["daily-login"]
    assert login["completed"] and login["claimed"]

    profile = UserCRUD(store).get_profile("alice")
    assert profile["xp"] == 50
    assert profile["points"] == 25
    assert profile["streak_days"] == 1


def test_complete_mission_pays_on_completion_only_once(missions, make_user, store):
    make_user("alice")
    result = missions.complete_mission("alice", "visit-store")
    assert result["completed"] is True
    assert result["rewards"] == {"xp": 25, "points": 15, "title": "Explorador"}
    assert missions.complete_mission("alice", "visit-store")["completed"] is False

    profile = UserCRUD(store).get_profile("alice")
    assert profile["points"] == 25 + 15


def test_all_missions_bonus(missions, make_user, store):
    make_user("alice")
    missions.complete_mission("alice", "visit-store")
    missions.complete_mission("alice", "engage-community")
    result = missions.complete_mission("alice", "share-progress")

    assert result["bonus"] == {"awarded": True, "bonus": ALL_MISSIONS_BONUS}
    assert missions.check_all_missions_bonus("alice") == {"awarded": False, "bonus": None}

    profile = UserCRUD(store).get_profile("alice")
    assert "missions-complete" in profile["achievements"]
    assert profile["points"] == 25 + 15 + 35 + 25 + 50


def test_unknown_mission(missions, make_user):
    make_user("alice")
    with pytest.raises(NotFoundError):
        missions.complete_mission("alice", "fly-to-the-moon")


def test_multi_step_mission_waits_for_claim(missions, make_user, store):
    make_user("alice")
    definition = missions.create_definition({
        "title": "Leia Três Tutoriais",
        "xp_reward": 30,
        "points_reward": 5,
        "requirement": 3,
    })
    assert definition["id"] == "leia-tres-tutoriais"

    step = missions.complete_mission("alice", "leia-tres-tutoriais")
    assert step == {"completed": False, "progress": 1, "rewards": None, "bonus": None}

    with pytest.raises(ValidationError):
        missions.claim_reward("alice", "leia-tres-tutoriais")

    points_before = UserCRUD(store).get_profile("alice")["points"]
    state = missions.update_progress("alice", "leia-tres-tutoriais", 10)
    assert state["progress"] == 3
    assert state["completed"] is True
    assert state["claimed"] is False
    assert UserCRUD(store).get_profile("alice")["points"] == points_before

    claimed = missions.claim_reward("alice", "leia-tres-tutoriais")
    assert claimed["rewards"] == {"xp": 30, "points": 5, "title": "Leia Três Tutoriais"}
    assert UserCRUD(store).get_profile("alice")["points"] == points_before + 5

    with pytest.raises(ConflictError):
        missions.claim_reward("alice", "leia-tres-tutoriais")
    with pytest.raises(ConflictError):
        missions.update_progress("alice", "leia-tres-tutoriais", 1)


def test_negative_progress_is_rejected(missions, make_user):
    make_user("alice")
    with pytest.raises(ValidationError):
        missions.update_progress("alice", "visit-store", -1)


def test_definitions(missions):
    missions.create_definition({"title": "Semanal", "type": "weekly"})
    with pytest.raises(ConflictError):
        missions.create_definition({"title": "semanal"})
    with pytest.raises(ValidationError):
        missions.create_definition({"title": "Bad", "type": "hourly"})

    assert "semanal" not in missions.daily_mission_ids()
    updated = missions.update_definition("semanal", {"active": False, "xp_reward": 10})
    assert updated["active"] is False
    assert updated["xp_reward"] == 10
    assert missions.list_definitions(active_only=True) == []

    missions.delete_definition("semanal")
    with pytest.raises(NotFoundError):
        missions.delete_definition("semanal")


def test_definition_overrides_built_in_reward(missions):
    missions.create_definition({"title": "Visit Store", "xp_reward": 99, "points_reward": 1})
    assert missions.reward_for("visit-store")["xp"] == 99


def test_verify_login_reward_repairs_unpaid_login(missions, make_user, store):
    make_user("alice")
    missions.initialize_today("alice")
    assert missions.verify_login_reward("alice") is False

    missions._daily_ref("alice").update({"xp_verified": False})
    assert missions.verify_login_reward("alice") is True
    assert missions.verify_login_reward("alice") is False
    assert UserCRUD(store).get_profile("alice")["xp"] == 100
