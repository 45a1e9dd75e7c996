"""
Mission CRUD Operations
Daily mission progress per user and the admin-managed mission definitions.
"""

from typing import Any, Dict, List, Optional

from google.api_core.exceptions import AlreadyExists, NotFound
from google.cloud import firestore

from app.crud.base import BaseCRUD, build_model, slugify, snapshot_to_dict, today_iso
from app.crud.user import UserCRUD
from app.models.collections import COLLECTION_MISSIONS, COLLECTION_USERS, SUBCOLLECTION_DAILY_MISSIONS
from app.models.mission import MissionDefinition, MissionState
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

LOGIN_MISSION = "daily-login"

MISSION_REWARDS: Dict[str, Dict[str, Any]] = {
    "daily-login": {"xp": 50, "points": 25, "title": "Login Diário"},
    "engage-community": {"xp": 75, "points": 35, "title": "Membro Ativo"},
    "share-progress": {"xp": 50, "points": 25, "title": "Compartilhador"},
    "visit-store": {"xp": 25, "points": 15, "title": "Explorador"},
}

ALL_MISSIONS_BONUS = {
    "xp": 100,
    "points": 50,
    "title": "Dedicação Total",
    "description": "Completou todas as missões do dia!",
}


class MissionCRUD(BaseCRUD):
    """CRUD operations for mission definitions and users' daily mission documents."""

    def __init__(self, db):
        super().__init__(db)
        self.users = UserCRUD(db)

    @property
    def collection_name(self) -> str:
        return COLLECTION_MISSIONS

    def _daily_ref(self, uid: str, day: Optional[str] = None):
        return (
            self.db.collection(COLLECTION_USERS)
            .document(uid)
            .collection(SUBCOLLECTION_DAILY_MISSIONS)
            .document(day or today_iso())
        )

    # ── Definitions ─────────────────────────────────────────────

    def list_definitions(self, active_only: bool = False) -> List[Dict[str, Any]]:
        query = self.get_collection()
        if active_only:
            query = self.where(query, "active", "==", True)
        return [snapshot_to_dict(doc) for doc in query.get()]

    def create_definition(self, data: Dict[str, Any]) -> Dict[str, Any]:
        definition = build_model(MissionDefinition, **data)
        mission_id = slugify(definition.title)
        if not mission_id:
            raise ValidationError("Title must contain letters or digits")
        if self.exists(mission_id):
            raise ConflictError("Mission already exists", details={"id": mission_id})
        self.create(definition.to_dict(), doc_id=mission_id)
        logger.info(f"Mission definition created: {mission_id}")
        return self.require(mission_id, "Mission")

    def update_definition(self, mission_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        current = self.require(mission_id, "Mission")
        merged = {k: v for k, v in current.items() if k in MissionDefinition.model_fields}
        merged.update({k: v for k, v in data.items() if v is not None})
        definition = build_model(MissionDefinition, **merged)
        self.update(mission_id, definition.to_dict())
        return self.require(mission_id, "Mission")

    def delete_definition(self, mission_id: str) -> None:
        self.require(mission_id, "Mission")
        self.delete(mission_id)

    def _definition(self, mission_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(mission_id)

    def reward_for(self, mission_id: str) -> Dict[str, Any]:
        """Reward and requirement for a mission: its definition when present, else the built-in table."""
        definition = self._definition(mission_id)
        if definition is not None:
            return {
                "xp": definition.get("xp_reward", 0),
                "points": definition.get("points_reward", 0),
                "title": definition.get("title", mission_id),
                "requirement": definition.get("requirement", 1),
            }
        reward = MISSION_REWARDS.get(mission_id)
        if reward is None:
            raise NotFoundError("Mission not found", details={"id": mission_id})
        return {**reward, "requirement": 1}

    def daily_mission_ids(self) -> List[str]:
        ids = list(MISSION_REWARDS)
        for definition in self.list_definitions(active_only=True):
            if definition.get("type") == "daily" and definition["id"] not in ids:
                ids.append(definition["id"])
        return ids

    # ── Daily progress ──────────────────────────────────────────

    def get_today(self, uid: str) -> Optional[Dict[str, Any]]:
        doc = self._daily_ref(uid).get()
        return doc.to_dict() if doc.exists else None

    def initialize_today(self, uid: str) -> Dict[str, Any]:
        """
        Create today's mission document once, auto-completing the login mission.

        The login reward is granted only by the call that creates the document,
        so it is paid at most once per day. Also records today's activity for
        the streak.

        Returns:
            Dict with ``missions_doc`` and ``login_reward_granted``.
        """
        self.users.get_profile(uid)
        self.users.record_activity(uid)

        today = today_iso()
        missions = {}
        for mission_id in self.daily_mission_ids():
            is_login = mission_id == LOGIN_MISSION
            missions[mission_id] = MissionState(
                mission_id=mission_id,
                progress=1 if is_login else 0,
                completed=is_login,
                claimed=is_login,
            ).to_dict()
            if is_login:
                missions[mission_id]["completed_at"] = firestore.SERVER_TIMESTAMP
                missions[mission_id]["claimed_at"] = firestore.SERVER_TIMESTAMP

        ref = self._daily_ref(uid, today)
        try:
            ref.create({
                "date": today,
                "missions": missions,
                "updated_at": firestore.SERVER_TIMESTAMP,
                "xp_verified": True,
                "all_missions_bonus_claimed": False,
            })
        except AlreadyExists:
            return {"missions_doc": ref.get().to_dict(), "login_reward_granted": False}

        reward = self.reward_for(LOGIN_MISSION)
        self.users.apply_reward(uid, xp=reward["xp"], points=reward["points"])
        logger.info(f"Daily missions initialized for {uid}; login reward granted")
        return {"missions_doc": ref.get().to_dict(), "login_reward_granted": True}

    def _ensure_today(self, uid: str) -> Dict[str, Any]:
        doc = self.get_today(uid)
        if doc is None:
            doc = self.initialize_today(uid)["missions_doc"]
        return doc

    def _mission(self, doc: Dict[str, Any], mission_id: str) -> Dict[str, Any]:
        mission = (doc.get("missions") or {}).get(mission_id)
        if mission is None:
            raise NotFoundError("Mission not active today", details={"id": mission_id})
        return mission

    def complete_mission(self, uid: str, mission_id: str) -> Dict[str, Any]:
        """
        Advance a mission by one step; on completion claim and pay its reward.

        Returns:
            Dict with ``completed`` (whether this call completed it), ``progress``,
            ``rewards`` and the all-missions ``bonus`` result.
        """
        doc = self._ensure_today(uid)
        mission = self._mission(doc, mission_id)
        if mission.get("completed"):
            return {"completed": False, "progress": mission.get("progress", 0), "rewards": None, "bonus": None}

        reward = self.reward_for(mission_id)
        requirement = reward["requirement"]
        progress = min(mission.get("progress", 0) + 1, requirement)
        completed = progress >= requirement

        prefix = f"missions.{mission_id}"
        self._daily_ref(uid).update({
            f"{prefix}.progress": progress,
            f"{prefix}.completed": completed,
            f"{prefix}.completed_at": firestore.SERVER_TIMESTAMP if completed else None,
            f"{prefix}.claimed": completed,
            f"{prefix}.claimed_at": firestore.SERVER_TIMESTAMP if completed else None,
            "updated_at": firestore.SERVER_TIMESTAMP,
        })

        if not completed:
            return {"completed": False, "progress": progress, "rewards": None, "bonus": None}

        self.users.apply_reward(uid, xp=reward["xp"], points=reward["points"])
        logger.info(f"Mission {mission_id} completed by {uid} (+{reward['xp']} XP, +{reward['points']} pts)")
        rewards = {"xp": reward["xp"], "points": reward["points"], "title": reward["title"]}
        return {
            "completed": True,
            "progress": progress,
            "rewards": rewards,
            "bonus": self.check_all_missions_bonus(uid),
        }

    def update_progress(self, uid: str, mission_id: str, progress: int) -> Dict[str, Any]:
        """Set progress directly. Completion is recorded but the reward waits for a claim."""
        if progress < 0:
            raise ValidationError("Progress cannot be negative")
        doc = self._ensure_today(uid)
        mission = self._mission(doc, mission_id)
        if mission.get("claimed"):
            raise ConflictError("Mission reward already claimed", details={"id": mission_id})

        requirement = self.reward_for(mission_id)["requirement"]
        progress = min(progress, requirement)
        completed = progress >= requirement
        prefix = f"missions.{mission_id}"
        self._daily_ref(uid).update({
            f"{prefix}.progress": progress,
            f"{prefix}.completed": completed,
            f"{prefix}.completed_at": firestore.SERVER_TIMESTAMP if completed else None,
            "updated_at": firestore.SERVER_TIMESTAMP,
        })
        return self._mission(self.get_today(uid), mission_id)

    def claim_reward(self, uid: str, mission_id: str) -> Dict[str, Any]:
        """
        Pay out a completed mission that has not been claimed yet.

        Raises:
            ValidationError: If the mission is not complete.
            ConflictError: If it was already claimed.
        """
        doc = self._ensure_today(uid)
        mission = self._mission(doc, mission_id)
        if not mission.get("completed"):
            raise ValidationError("Mission not completed", details={"id": mission_id})
        if mission.get("claimed"):
            raise ConflictError("Mission reward already claimed", details={"id": mission_id})

        prefix = f"missions.{mission_id}"
        self._daily_ref(uid).update({
            f"{prefix}.claimed": True,
            f"{prefix}.claimed_at": firestore.SERVER_TIMESTAMP,
            "updated_at": firestore.SERVER_TIMESTAMP,
        })
        reward = self.reward_for(mission_id)
        self.users.apply_reward(uid, xp=reward["xp"], points=reward["points"])
        return {
            "rewards": {"xp": reward["xp"], "points": reward["points"], "title": reward["title"]},
            "bonus": self.check_all_missions_bonus(uid),
        }

    def check_all_missions_bonus(self, uid: str) -> Optional[Dict[str, Any]]:
        """
        Pay the all-missions bonus once every mission of the day is complete.

        Returns:
            None when today's document does not exist, else ``{"awarded": bool, "bonus": ...}``.
        """
        doc = self.get_today(uid)
        if doc is None:
            return None
        if doc.get("all_missions_bonus_claimed"):
            return {"awarded": False, "bonus": None}

        missions = doc.get("missions") or {}
        if not missions or not all(m.get("completed") for m in missions.values()):
            return {"awarded": False, "bonus": None}

        self._daily_ref(uid).update({
            "all_missions_bonus_claimed": True,
            "updated_at": firestore.SERVER_TIMESTAMP,
        })
        self.users.apply_reward(uid, xp=ALL_MISSIONS_BONUS["xp"], points=ALL_MISSIONS_BONUS["points"])
        self.users.check_achievements(uid, {"action": "mission_complete"})
        logger.info(f"All-missions bonus awarded to {uid}")
        return {"awarded": True, "bonus": ALL_MISSIONS_BONUS}

    def verify_login_reward(self, uid: str) -> bool:
        """
        Repair a login mission marked claimed whose reward was never paid.

        Returns:
            True if the reward was paid now.
        """
        doc = self.get_today(uid)
        if doc is None:
            return False
        login = (doc.get("missions") or {}).get(LOGIN_MISSION)
        if not login or not login.get("claimed") or doc.get("xp_verified"):
            return False

        try:
            self._daily_ref(uid).update({"xp_verified": True})
        except NotFound:
            return False
        reward = self.reward_for(LOGIN_MISSION)
        self.users.apply_reward(uid, xp=reward["xp"], points=reward["points"])
        logger.warning(f"Missing login reward repaired for {uid}")
        return True
