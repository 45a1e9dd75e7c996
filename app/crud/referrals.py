"""
Referral CRUD Operations
Invite codes and the reward paid to the member who brought someone in.
"""

from typing import Any, Dict, Optional

from google.cloud import firestore

from app.crud.activity import ActivityTracker
from app.crud.base import BaseCRUD, snapshot_to_dict
from app.crud.user import UserCRUD, referral_code_for
from app.models.collections import COLLECTION_REFERRALS
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

REFERRAL_XP = 150


class ReferralCRUD(BaseCRUD):
    """CRUD operations for referral records."""

    def __init__(self, db):
        super().__init__(db)
        self.users = UserCRUD(db)
        self.activity = ActivityTracker(db)

    @property
    def collection_name(self) -> str:
        return COLLECTION_REFERRALS

    def find_referrer(self, code: str) -> Optional[Dict[str, Any]]:
        """Profile owning a referral code, or None."""
        code = (code or "").strip().upper()
        if not code:
            return None
        docs = self.where(self.users.get_collection(), "referral_code", "==", code).limit(1).get()
        return snapshot_to_dict(docs[0]) if docs else None

    def process_referral(self, code: str, new_uid: str) -> Dict[str, Any]:
        """
        Credit the owner of ``code`` for bringing in ``new_uid``.

        Raises:
            NotFoundError: Unknown code.
            ValidationError: Users cannot refer themselves.
            ConflictError: The new user was already referred.
        """
        referrer = self.find_referrer(code)
        if referrer is None:
            raise NotFoundError("Referral code not found", details={"code": code})
        referrer_id = referrer["id"]
        if referrer_id == new_uid:
            raise ValidationError("You cannot use your own referral code")

        new_user = self.users.get_profile(new_uid)
        if new_user.get("referred_by"):
            raise ConflictError("Referral already applied", details={"referred_by": new_user["referred_by"]})

        referral_id = f"{referrer_id}_{new_uid}"
        self.get_collection().document(referral_id).set({
            "referrer_id": referrer_id,
            "referred_id": new_uid,
            "referred_email": new_user.get("email", ""),
            "xp_awarded": REFERRAL_XP,
            "created_at": firestore.SERVER_TIMESTAMP,
        })
        self.users.get_collection().document(new_uid).update({"referred_by": referrer_id})
        self.users.get_collection().document(referrer_id).update({"referral_count": firestore.Increment(1)})
        self.users.apply_reward(referrer_id, xp=REFERRAL_XP)
        self.activity.record(referrer_id, "referral")

        logger.info(f"Referral {referral_id} processed (+{REFERRAL_XP} XP)")
        return self.require(referral_id, "Referral")

    def stats(self, uid: str) -> Dict[str, Any]:
        profile = self.users.get_profile(uid)
        docs = self.where(self.get_collection(), "referrer_id", "==", uid).get()
        return {
            "referral_code": profile.get("referral_code") or referral_code_for(uid),
            "referral_count": len(docs),
            "xp_earned": len(docs) * REFERRAL_XP,
            "referred_by": profile.get("referred_by"),
            "referrals": [snapshot_to_dict(doc) for doc in docs],
        }
