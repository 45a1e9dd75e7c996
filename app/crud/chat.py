"""
Chat CRUD Operations
Direct conversations between two members and the global chat room.
"""

from typing import Any, Dict, List, Optional

from google.cloud import firestore

from app.crud.activity import ActivityTracker
from app.crud.base import BaseCRUD, build_model, snapshot_to_dict
from app.crud.notifications import NotificationCRUD
from app.crud.user import UserCRUD
from app.models.chat import DirectMessageModel, GlobalMessageModel
from app.models.collections import (
    COLLECTION_CONVERSATIONS,
    COLLECTION_GLOBAL_CHAT,
    SUBCOLLECTION_MESSAGES,
)
from app.utils.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

PREVIEW_LENGTH = 100
MESSAGE_LIMIT = 100
CONVERSATION_LIMIT = 50
GLOBAL_LIMIT = 100


def conversation_id_for(uid_a: str, uid_b: str) -> str:
    """Deterministic id shared by both participants."""
    return "_".join(sorted([uid_a, uid_b]))


class ChatCRUD(BaseCRUD):
    """CRUD operations for conversations and their messages."""

    def __init__(self, db):
        super().__init__(db)
        self.users = UserCRUD(db)
        self.notifications = NotificationCRUD(db)
        self.activity = ActivityTracker(db)

    @property
    def collection_name(self) -> str:
        return COLLECTION_CONVERSATIONS

    def _messages(self, conversation_id: str):
        return self.get_collection().document(conversation_id).collection(SUBCOLLECTION_MESSAGES)

    def _participant(self, conversation_id: str, uid: str) -> Dict[str, Any]:
        conversation = self.require(conversation_id, "Conversation")
        if uid not in conversation.get("participants", []):
            raise AuthorizationError("Not a participant of this conversation")
        return conversation

    def get_or_create_conversation(self, uid: str, other_uid: str) -> Dict[str, Any]:
        """
        Return the conversation between two users, creating it on first contact.

        Raises:
            ValidationError: When a user tries to talk to themselves.
            NotFoundError: When either profile does not exist.
        """
        if uid == other_uid:
            raise ValidationError("Cannot start a conversation with yourself")

        conversation_id = conversation_id_for(uid, other_uid)
        existing = self.get_by_id(conversation_id)
        if existing is not None:
            return existing

        me = self.users.get_profile(uid)
        other = self.users.get_profile(other_uid)
        self.get_collection().document(conversation_id).set({
            "participants": [uid, other_uid],
            "participant_names": {uid: me.get("display_name", ""), other_uid: other.get("display_name", "")},
            "participant_avatars": {uid: me.get("photo_url"), other_uid: other.get("photo_url")},
            "last_message": "",
            "last_message_at": firestore.SERVER_TIMESTAMP,
            "last_message_sender_id": None,
            "unread_count": {uid: 0, other_uid: 0},
            "created_at": firestore.SERVER_TIMESTAMP,
        })
        logger.info(f"Conversation {conversation_id} created")
        return self.require(conversation_id, "Conversation")

    def send_message(self, conversation_id: str, profile: Dict[str, Any], content: str) -> Dict[str, Any]:
        """
        Send a direct message.

        Updates the conversation preview, bumps the recipient's unread counter
        and notifies them. A failed notification does not fail the send.
        """
        uid = profile["uid"]
        conversation = self._participant(conversation_id, uid)
        message = build_model(
            DirectMessageModel,
            conversation_id=conversation_id,
            sender_id=uid,
            sender_name=profile.get("display_name", ""),
            sender_avatar=profile.get("photo_url"),
            content=content,
        )
        data = message.to_dict()
        data["created_at"] = firestore.SERVER_TIMESTAMP
        _, message_ref = self._messages(conversation_id).add(data)

        recipient = next(p for p in conversation["participants"] if p != uid)
        self.get_collection().document(conversation_id).update({
            "last_message": data["content"][:PREVIEW_LENGTH],
            "last_message_at": firestore.SERVER_TIMESTAMP,
            "last_message_sender_id": uid,
            f"unread_count.{recipient}": firestore.Increment(1),
        })

        self.notifications.notify_safely(
            recipient,
            "message",
            from_user_id=uid,
            from_user_name=profile.get("display_name"),
            from_user_avatar=profile.get("photo_url"),
            post_content=data["content"][:PREVIEW_LENGTH],
        )
        self.activity.record(uid, "message")
        return snapshot_to_dict(message_ref.get())

    def messages_query(self, conversation_id: str, uid: str, limit: int = MESSAGE_LIMIT):
        self._participant(conversation_id, uid)
        return self._messages(conversation_id).order_by("created_at").limit(limit)

    def list_messages(self, conversation_id: str, uid: str, limit: int = MESSAGE_LIMIT) -> List[Dict[str, Any]]:
        docs = self.messages_query(conversation_id, uid, limit).get()
        return [snapshot_to_dict(doc) for doc in docs]

    def conversations_query(self, uid: str, limit: int = CONVERSATION_LIMIT):
        """The user's conversations, most recently active first."""
        return (
            self.where(self.get_collection(), "participants", "array_contains", uid)
            .order_by("last_message_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )

    def list_conversations(self, uid: str, limit: int = CONVERSATION_LIMIT) -> List[Dict[str, Any]]:
        return [snapshot_to_dict(doc) for doc in self.conversations_query(uid, limit).get()]

    def mark_read(self, conversation_id: str, uid: str) -> int:
        """Mark the other party's messages as read and reset the user's unread counter."""
        self._participant(conversation_id, uid)
        unread = self.where(self._messages(conversation_id), "read", "==", False).get()
        incoming = [doc.reference for doc in unread if (doc.to_dict() or {}).get("sender_id") != uid]

        self.write_in_batches(incoming, {"read": True})
        self.get_collection().document(conversation_id).update({f"unread_count.{uid}": 0})
        return len(incoming)

    def admin_list(self, limit: int = 200) -> List[Dict[str, Any]]:
        docs = (
            self.get_collection()
            .order_by("last_message_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
            .get()
        )
        return [snapshot_to_dict(doc) for doc in docs]


class GlobalChatCRUD(BaseCRUD):
    """The room every member can post into."""

    @property
    def collection_name(self) -> str:
        return COLLECTION_GLOBAL_CHAT

    def send(
        self,
        profile: Dict[str, Any],
        content: str = "",
        audio_url: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        message = build_model(
            GlobalMessageModel,
            sender_id=profile["uid"],
            sender_name=profile.get("display_name", ""),
            sender_avatar=profile.get("photo_url"),
            sender_rank=profile.get("rank", "bronze"),
            sender_level=profile.get("level", 1),
            content=content or "",
            audio_url=audio_url,
            image_url=image_url,
        )
        message_id = self.create(message.to_dict())
        return self.require(message_id, "Message")

    def recent_query(self, limit: int = GLOBAL_LIMIT):
        """Newest first; callers reverse for display."""
        return (
            self.get_collection()
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )

    def recent(self, limit: int = GLOBAL_LIMIT) -> List[Dict[str, Any]]:
        """The latest messages, oldest first."""
        docs = self.recent_query(limit).get()
        return [snapshot_to_dict(doc) for doc in reversed(list(docs))]

    def delete_message(self, message_id: str) -> None:
        if not self.exists(message_id):
            raise NotFoundError("Message not found", details={"id": message_id})
        self.delete(message_id)
        logger.info(f"Global chat message {message_id} deleted")
