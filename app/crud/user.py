"""
User CRUD Operations
Profiles, progression rewards, streaks, achievements, cosmetics and roles.
"""

from typing import Any, Dict, List, Optional

from google.cloud import firestore

from app.crud.base import BaseCRUD, build_model, today_iso, yesterday_iso
from app.models.collections import COLLECTION_USERS, SUBCOLLECTION_DAILY_MISSIONS
from app.models.user import ROLES, UserModel
from app.services import achievements as achievement_catalogue
from app.services import cosmetics
from app.services.progression import calculate_level, rank_from_points
from app.utils.exceptions import (
    AuthorizationError,
    ConflictError,
    InsufficientPointsError,
    NotFoundError,
    ValidationError,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)


def referral_code_for(uid: str) -> str:
    return f"REF{uid[:8].upper()}"


class UserCRUD(BaseCRUD):
    """CRUD operations for user documents."""

    @property
    def collection_name(self) -> str:
        return COLLECTION_USERS

    def _ref(self, uid: str):
        return self.get_collection().document(uid)

    # ── Profiles ────────────────────────────────────────────────

    def get_profile(self, uid: str) -> Dict[str, Any]:
        return self.require(uid, "User")

    def create_profile(
        self,
        uid: str,
        email: str = "",
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a fresh profile: level 1, bronze, no points, the welcome achievement.

        Raises:
            ConflictError: If the profile already exists.
        """
        if self.exists(uid):
            raise ConflictError("Profile already exists", details={"uid": uid})

        fields = {"uid": uid, "email": email, "photo_url": photo_url, "referral_code": referral_code_for(uid)}
        if display_name is not None:
            fields["display_name"] = display_name
        user = build_model(UserModel, **fields)
        self.create(user.to_dict(), doc_id=uid)
        logger.info(f"Profile created: {uid}")
        return self.get_profile(uid)

    def ensure_profile(self, uid: str, email: str = "", display_name: Optional[str] = None) -> Dict[str, Any]:
        """Return the profile, creating it on first sign-in."""
        existing = self.get_by_id(uid)
        if existing is not None:
            return existing
        return self.create_profile(uid, email=email, display_name=display_name)

    def update_profile(self, uid: str, display_name: Optional[str] = None) -> Dict[str, Any]:
        self.get_profile(uid)
        data: Dict[str, Any] = {}
        if display_name is not None:
            name = display_name.strip()
            if not name:
                raise ValidationError("Display name cannot be empty")
            data["display_name"] = name
        if data:
            self.update(uid, data)
        return self.get_profile(uid)

    def list_users(self, page: int = 1, page_size: int = 20) -> Dict[str, Any]:
        return self.list(page=page, page_size=page_size, order_by="created_at", direction=firestore.Query.DESCENDING)

    def delete_user(self, uid: str) -> None:
        """Delete a profile together with its daily mission history."""
        self.get_profile(uid)
        for doc in self._ref(uid).collection(SUBCOLLECTION_DAILY_MISSIONS).get():
            doc.reference.delete()
        self.delete(uid)
        logger.info(f"User deleted: {uid}")

    def set_role(self, uid: str, role: str) -> Dict[str, Any]:
        if role not in ROLES:
            raise ValidationError("Invalid role", details={"role": role, "allowed": list(ROLES)})
        self.get_profile(uid)
        self.update(uid, {"role": role})
        logger.info(f"Role changed for {uid}: {role}")
        return self.get_profile(uid)

    # ── Progression ─────────────────────────────────────────────

    def apply_reward(self, uid: str, xp: int = 0, points: int = 0, check_achievements: bool = True) -> Dict[str, Any]:
        """
        Add (or remove) XP and points, then re-derive level and rank.

        XP and points are changed with atomic increments and clamped at zero.
        When the level changes, level achievements are checked.

        Returns:
            Dict with the new xp, points, level, rank and whether the level went up.
        """
        ref = self._ref(uid)
        before = self.get_profile(uid)
        ref.update({
            "xp": firestore.Increment(xp),
            "points": firestore.Increment(points),
        })
        after = ref.get().to_dict()

        new_xp = max(0, after.get("xp", 0))
        new_points = max(0, after.get("points", 0))
        derived: Dict[str, Any] = {
            "level": calculate_level(new_xp),
            "rank": rank_from_points(new_points),
        }
        if after.get("xp", 0) < 0:
            derived["xp"] = 0
        if after.get("points", 0) < 0:
            derived["points"] = 0
        ref.update(derived)

        old_level = before.get("level", 1)
        result = {
            "xp": new_xp,
            "points": new_points,
            "level": derived["level"],
            "rank": derived["rank"],
            "level_up": derived["level"] > old_level,
        }
        if check_achievements and derived["level"] != old_level:
            self.check_achievements(uid)
        return result

    def record_activity(self, uid: str) -> Dict[str, Any]:
        """
        Update the login streak for today.

        Active yesterday extends the streak, active today leaves it alone,
        anything older restarts it at 1.
        """
        profile = self.get_profile(uid)
        today = today_iso()
        last = profile.get("last_active_date")
        if last == today:
            return profile

        streak = (profile.get("streak_days") or 0) + 1 if last == yesterday_iso(today) else 1
        self.update(uid, {"streak_days": streak, "last_active_date": today})
        self.check_achievements(uid)
        return self.get_profile(uid)

    def leaderboard(self, limit: int = 10) -> List[Dict[str, Any]]:
        docs = (
            self.get_collection()
            .order_by("points", direction=firestore.Query.DESCENDING)
            .limit(limit)
            .get()
        )
        board = []
        for position, doc in enumerate(docs, start=1):
            data = doc.to_dict()
            board.append({
                "position": position,
                "uid": doc.id,
                "display_name": data.get("display_name"),
                "photo_url": data.get("photo_url"),
                "current_frame_id": data.get("current_frame_id"),
                "points": data.get("points", 0),
                "level": data.get("level", 1),
                "rank": data.get("rank", "bronze"),
            })
        return board

    def ranking_position(self, uid: str) -> int:
        points = self.get_profile(uid).get("points", 0)
        return self.count([("points", ">", points)]) + 1

    # ── Achievements ────────────────────────────────────────────

    def unlock_achievement(self, uid: str, achievement_id: str) -> int:
        """
        Unlock an achievement and grant its XP.

        Returns:
            XP awarded, or 0 when it was already unlocked.
        """
        if achievement_catalogue.get_achievement(achievement_id) is None:
            raise NotFoundError("Achievement not found", details={"id": achievement_id})
        profile = self.get_profile(uid)
        if achievement_id in (profile.get("achievements") or []):
            return 0

        xp = achievement_catalogue.achievement_xp(achievement_id)
        self._ref(uid).update({"achievements": firestore.ArrayUnion([achievement_id])})
        self.apply_reward(uid, xp=xp, check_achievements=False)
        logger.info(f"Achievement {achievement_id} unlocked for {uid} (+{xp} XP)")
        return xp

    def check_achievements(self, uid: str, context: Optional[Dict[str, Any]] = None) -> List[str]:
        """Unlock everything the user now qualifies for. Returns the new ids."""
        unlocked: List[str] = []
        while True:
            profile = self.get_profile(uid)
            pending = [a for a in achievement_catalogue.check_achievements(profile, context) if a not in unlocked]
            if not pending:
                return unlocked
            for achievement_id in pending:
                self.unlock_achievement(uid, achievement_id)
                unlocked.append(achievement_id)
            # Action context only applies to the first pass; later passes pick up level changes.
            context = None

    # ── Cosmetics ───────────────────────────────────────────────

    def _cosmetic(self, kind: str, item_id: str) -> Dict[str, Any]:
        if kind not in cosmetics.CATALOGUES:
            raise ValidationError("Unknown cosmetic kind", details={"kind": kind})
        item = cosmetics.get_item(kind, item_id)
        if item is None:
            raise NotFoundError(f"{kind.capitalize()} not found", details={"id": item_id})
        return item

    def unlock_cosmetic(self, uid: str, kind: str, item_id: str) -> Dict[str, Any]:
        """
        Spend XP on an avatar or frame and equip it.

        Free items and items already owned are equipped without charge.

        Raises:
            ValidationError: If the user's level is below the item's requirement.
            InsufficientPointsError: If the user lacks the XP.
        """
        item = self._cosmetic(kind, item_id)
        profile = self.get_profile(uid)
        owned = profile.get(cosmetics.UNLOCK_FIELDS[kind]) or []

        if not cosmetics.is_free(item) and item_id not in owned:
            required_level = item.get("required_level") or 1
            if profile.get("level", 1) < required_level:
                raise ValidationError(
                    f"Level {required_level} required",
                    details={"required_level": required_level, "level": profile.get("level", 1)},
                )
            if profile.get("xp", 0) < item["xp_cost"]:
                raise InsufficientPointsError(
                    "Not enough XP",
                    details={"xp_cost": item["xp_cost"], "xp": profile.get("xp", 0)},
                )
            self._ref(uid).update({cosmetics.UNLOCK_FIELDS[kind]: firestore.ArrayUnion([item_id])})
            self.apply_reward(uid, xp=-item["xp_cost"], check_achievements=False)
            logger.info(f"{kind} {item_id} unlocked for {uid} (-{item['xp_cost']} XP)")

        return self.equip_cosmetic(uid, kind, item_id)

    def equip_cosmetic(self, uid: str, kind: str, item_id: str) -> Dict[str, Any]:
        item = self._cosmetic(kind, item_id)
        profile = self.get_profile(uid)
        if not cosmetics.is_free(item) and item_id not in (profile.get(cosmetics.UNLOCK_FIELDS[kind]) or []):
            raise AuthorizationError(f"{kind.capitalize()} not unlocked", details={"id": item_id})

        data: Dict[str, Any] = {cosmetics.EQUIP_FIELDS[kind]: item_id}
        if kind == "avatar":
            data["photo_url"] = item["url"]
        self.update(uid, data)
        return self.get_profile(uid)
