"""
Presence CRUD Operations
Online status kept fresh by client heartbeats.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from google.cloud import firestore

from app.crud.base import BaseCRUD, snapshot_to_dict
from app.models.collections import COLLECTION_PRESENCE

DEFAULT_WINDOW_SECONDS = 60


def is_online(presence: Optional[Dict[str, Any]], window_seconds: int = DEFAULT_WINDOW_SECONDS, now: Optional[datetime] = None) -> bool:
    """Marked online and seen within the window."""
    if not presence or not presence.get("online"):
        return False
    last_seen = presence.get("last_seen")
    if not isinstance(last_seen, datetime):
        return False
    if last_seen.tzinfo is None:
        last_seen = last_seen.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return now - last_seen <= timedelta(seconds=window_seconds)


class PresenceCRUD(BaseCRUD):
    """CRUD operations for ``presence/{uid}`` documents."""

    def __init__(self, db, window_seconds: int = DEFAULT_WINDOW_SECONDS):
        super().__init__(db)
        self.window_seconds = window_seconds

    @property
    def collection_name(self) -> str:
        return COLLECTION_PRESENCE

    def heartbeat(self, profile: Dict[str, Any]) -> None:
        self.get_collection().document(profile["uid"]).set({
            "online": True,
            "last_seen": firestore.SERVER_TIMESTAMP,
            "display_name": profile.get("display_name", ""),
            "photo_url": profile.get("photo_url"),
        }, merge=True)

    def go_offline(self, uid: str) -> None:
        self.get_collection().document(uid).set({
            "online": False,
            "last_seen": firestore.SERVER_TIMESTAMP,
        }, merge=True)

    def get_status(self, uid: str) -> Dict[str, Any]:
        presence = self.get_by_id(uid)
        return {
            "uid": uid,
            "online": is_online(presence, self.window_seconds),
            "last_seen": presence.get("last_seen") if presence else None,
        }

    def online_users(self) -> List[Dict[str, Any]]:
        docs = self.where(self.get_collection(), "online", "==", True).get()
        now = datetime.now(timezone.utc)
        return [
            snapshot_to_dict(doc)
            for doc in docs
            if is_online(doc.to_dict(), self.window_seconds, now)
        ]
