"""
Notification CRUD Operations
In-app notifications: likes, comments, messages, moderation results, new products.
"""

from typing import Any, Dict, List, Optional

from google.cloud import firestore

from app.crud.base import BATCH_LIMIT, BaseCRUD, build_model, snapshot_to_dict
from app.models.collections import COLLECTION_NOTIFICATIONS, COLLECTION_USERS
from app.models.community import NotificationModel
from app.utils.exceptions import AuthorizationError
from app.utils.logger import get_logger

logger = get_logger(__name__)


class NotificationCRUD(BaseCRUD):
    """CRUD operations for notification documents."""

    @property
    def collection_name(self) -> str:
        return COLLECTION_NOTIFICATIONS

    def notify(self, user_id: str, type: str, **fields) -> str:
        """Create a notification for one user. Returns its id."""
        notification = build_model(NotificationModel, user_id=user_id, type=type, **fields)
        return self.create(notification.to_dict())

    def notify_safely(self, user_id: str, type: str, **fields) -> Optional[str]:
        """Like ``notify`` but never raises; for side effects of another write."""
        try:
            return self.notify(user_id, type, **fields)
        except Exception as e:
            logger.error(f"Failed to create {type} notification for {user_id}: {e}")
            return None

    def notify_all_users(self, type: str, exclude: Optional[str] = None, **fields) -> int:
        """Fan a notification out to every user. Returns how many were written."""
        template = build_model(NotificationModel, user_id="", type=type, **fields).to_dict()
        template["created_at"] = firestore.SERVER_TIMESTAMP

        written = 0
        batch = self.db.batch()
        pending = 0
        for user_doc in self.get_collection(COLLECTION_USERS).get():
            if user_doc.id == exclude:
                continue
            batch.set(self.get_collection().document(), {**template, "user_id": user_doc.id})
            pending += 1
            if pending == BATCH_LIMIT:
                batch.commit()
                written += pending
                batch = self.db.batch()
                pending = 0
        if pending:
            batch.commit()
            written += pending
        logger.info(f"{type} notification sent to {written} users")
        return written

    def _user_query(self, uid: str):
        return self.where(self.get_collection(), "user_id", "==", uid)

    def feed_query(self, uid: str, limit: int = 50):
        return (
            self._user_query(uid)
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )

    def list_for_user(self, uid: str, limit: int = 50) -> List[Dict[str, Any]]:
        docs = self.feed_query(uid, limit).get()
        return [snapshot_to_dict(doc) for doc in docs]

    def unread_count(self, uid: str) -> int:
        return len(self.where(self._user_query(uid), "read", "==", False).get())

    def _owned(self, uid: str, notification_id: str) -> Dict[str, Any]:
        notification = self.require(notification_id, "Notification")
        if notification.get("user_id") != uid:
            raise AuthorizationError("Not your notification")
        return notification

    def mark_read(self, uid: str, notification_id: str) -> None:
        self._owned(uid, notification_id)
        self.get_collection().document(notification_id).update({"read": True})

    def mark_all_read(self, uid: str) -> int:
        docs = self.where(self._user_query(uid), "read", "==", False).get()
        return self.write_in_batches([doc.reference for doc in docs], {"read": True})

    def delete_notification(self, uid: str, notification_id: str) -> None:
        self._owned(uid, notification_id)
        self.delete(notification_id)

    def clear_all(self, uid: str) -> int:
        return self.write_in_batches([doc.reference for doc in self._user_query(uid).get()])
