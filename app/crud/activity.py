"""
Activity tracking: the side effects of community actions.
Bumps per-user activity counters, unlocks achievements and advances daily missions.
"""

from typing import Any, Dict, Optional

from google.cloud import firestore

from app.crud.base import BaseCRUD
from app.crud.missions import MissionCRUD
from app.crud.user import UserCRUD
from app.models.collections import (
    COLLECTION_POSTS,
    COLLECTION_PURCHASES,
    COLLECTION_REFERRALS,
    COLLECTION_USERS,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

# action -> profile counter incremented before achievements are checked
ACTION_COUNTERS = {
    "like": "likes_given",
    "comment": "comments",
    "message": "messages_sent",
}

# action -> daily mission it advances
ACTION_MISSIONS = {
    "post": "share-progress",
    "like": "engage-community",
    "comment": "engage-community",
}


class ActivityTracker(BaseCRUD):
    """Runs achievement and mission bookkeeping after a user action."""

    def __init__(self, db):
        super().__init__(db)
        self.users = UserCRUD(db)
        self.missions = MissionCRUD(db)

    @property
    def collection_name(self) -> str:
        return COLLECTION_USERS

    def build_context(self, uid: str, action: Optional[str] = None) -> Dict[str, Any]:
        """Counters the achievement rules look at."""
        profile = self.users.get_profile(uid)
        activity = profile.get("activity") or {}

        posts = self.where(self.get_collection(COLLECTION_POSTS), "author_id", "==", uid).get()
        purchases = self.where(self.get_collection(COLLECTION_PURCHASES), "user_id", "==", uid).get()
        referrals = self.where(self.get_collection(COLLECTION_REFERRALS), "referrer_id", "==", uid).get()

        return {
            "action": action,
            "post_count": len(posts),
            "received_likes": sum(len((doc.to_dict() or {}).get("likes") or []) for doc in posts),
            "purchase_count": len(purchases),
            "referral_count": len(referrals),
            "like_count": activity.get("likes_given", 0),
            "comment_count": activity.get("comments", 0),
            "message_count": activity.get("messages_sent", 0),
            # Nobody ranks before scoring any points.
            "ranking_position": self.users.ranking_position(uid) if profile.get("points", 0) > 0 else None,
        }

    def record(self, uid: str, action: str) -> Dict[str, Any]:
        """
        Apply the side effects of ``action`` for ``uid``.

        Failures are logged and never propagate, so the action itself stands.

        Returns:
            Dict with newly unlocked ``achievements`` and the ``mission`` result.
        """
        result: Dict[str, Any] = {"achievements": [], "mission": None}
        try:
            counter = ACTION_COUNTERS.get(action)
            if counter:
                self.users.get_collection().document(uid).update(
                    {f"activity.{counter}": firestore.Increment(1)}
                )
            result["achievements"] = self.users.check_achievements(uid, self.build_context(uid, action))
            mission_id = ACTION_MISSIONS.get(action)
            if mission_id:
                result["mission"] = self.missions.complete_mission(uid, mission_id)
        except Exception as e:
            logger.error(f"Activity bookkeeping for {action} by {uid} failed: {e}", exc_info=True)
        return result
