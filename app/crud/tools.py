"""
Tool CRUD Operations
Member-shared resources (prompts, code, tools, tutorials) with an approval workflow.
"""

from typing import Any, Dict, List, Optional

from google.cloud import firestore

from app.crud.base import BaseCRUD, build_model, snapshot_to_dict
from app.crud.notifications import NotificationCRUD
from app.crud.user import UserCRUD
from app.models.collections import COLLECTION_TOOLS
from app.models.community import MODERATION_STATUSES, TOOL_CATEGORIES, ToolModel
from app.utils.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

LIKE_REWARD = {"xp": 5, "points": 1}
SAVE_REWARD = {"xp": 10, "points": 2}
APPROVAL_REWARD = {"xp": 50, "points": 10}

EDITABLE_FIELDS = ("title", "description", "content", "category", "tags")


class ToolCRUD(BaseCRUD):
    """CRUD operations for shared tools."""

    def __init__(self, db):
        super().__init__(db)
        self.users = UserCRUD(db)
        self.notifications = NotificationCRUD(db)

    @property
    def collection_name(self) -> str:
        return COLLECTION_TOOLS

    def create_tool(self, profile: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        """Submit a tool for review. No reward until it is approved."""
        tool = build_model(
            ToolModel,
            user_id=profile["uid"],
            user_name=profile.get("display_name", ""),
            user_avatar=profile.get("photo_url"),
            user_level=profile.get("level", 1),
            user_rank=profile.get("rank", "bronze"),
            **{k: v for k, v in data.items() if k in EDITABLE_FIELDS},
        )
        tool_id = self.create(tool.to_dict())
        logger.info(f"Tool {tool_id} submitted by {profile['uid']}")
        return self.require(tool_id, "Tool")

    def list_approved(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        if category is not None and category not in TOOL_CATEGORIES:
            raise ValidationError("Invalid category", details={"category": category})
        query = self.where(self.get_collection(), "status", "==", "approved")
        if category:
            query = self.where(query, "category", "==", category)
        docs = query.order_by("created_at", direction=firestore.Query.DESCENDING).get()
        return [snapshot_to_dict(doc) for doc in docs]

    def list_by_status(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        query = self.get_collection()
        if status is not None:
            if status not in MODERATION_STATUSES:
                raise ValidationError("Invalid status", details={"status": status})
            query = self.where(query, "status", "==", status)
        docs = query.order_by("created_at", direction=firestore.Query.DESCENDING).get()
        return [snapshot_to_dict(doc) for doc in docs]

    def list_by_user(self, uid: str) -> List[Dict[str, Any]]:
        docs = (
            self.where(self.get_collection(), "user_id", "==", uid)
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .get()
        )
        return [snapshot_to_dict(doc) for doc in docs]

    def list_saved(self, uid: str) -> List[Dict[str, Any]]:
        docs = self.where(self.get_collection(), "saves", "array_contains", uid).get()
        return [snapshot_to_dict(doc) for doc in docs]

    def get_tool(self, tool_id: str, viewer_uid: Optional[str] = None, is_moderator: bool = False) -> Dict[str, Any]:
        tool = self.require(tool_id, "Tool")
        if tool.get("status") != "approved" and not is_moderator and tool.get("user_id") != viewer_uid:
            raise NotFoundError("Tool not found", details={"id": tool_id})
        return tool

    def _toggle(self, tool_id: str, uid: str, field: str, reward: Dict[str, int]) -> Dict[str, Any]:
        tool = self.get_tool(tool_id, viewer_uid=uid)
        ref = self.get_collection().document(tool_id)
        added = uid not in (tool.get(field) or [])
        ref.update({field: firestore.ArrayUnion([uid]) if added else firestore.ArrayRemove([uid])})

        if added and tool.get("user_id") != uid:
            self.users.apply_reward(tool["user_id"], xp=reward["xp"], points=reward["points"])

        values = ref.get().to_dict().get(field) or []
        return {"active": added, "count": len(values)}

    def toggle_like(self, tool_id: str, uid: str) -> Dict[str, Any]:
        """Like or unlike. A like from someone else rewards the owner."""
        result = self._toggle(tool_id, uid, "likes", LIKE_REWARD)
        return {"liked": result["active"], "likes_count": result["count"]}

    def toggle_save(self, tool_id: str, uid: str) -> Dict[str, Any]:
        """Save or unsave. A save from someone else rewards the owner."""
        result = self._toggle(tool_id, uid, "saves", SAVE_REWARD)
        return {"saved": result["active"], "saves_count": result["count"]}

    def record_view(self, tool_id: str) -> None:
        self.require(tool_id, "Tool")
        self.get_collection().document(tool_id).update({"views": firestore.Increment(1)})

    def delete_tool(self, tool_id: str, uid: str, is_moderator: bool = False) -> None:
        tool = self.require(tool_id, "Tool")
        if tool.get("user_id") != uid and not is_moderator:
            raise AuthorizationError("Only the owner can delete this tool")
        self.delete(tool_id)
        logger.info(f"Tool {tool_id} deleted by {uid}")

    # ── Moderation ──────────────────────────────────────────────

    def approve(self, tool_id: str, moderator_uid: str) -> Dict[str, Any]:
        """Publish a tool and reward its owner. Re-approving pays nothing."""
        tool = self.require(tool_id, "Tool")
        if tool.get("status") == "approved":
            return tool

        self.update(tool_id, {
            "status": "approved",
            "moderated_by": moderator_uid,
            "moderated_at": firestore.SERVER_TIMESTAMP,
            "rejection_reason": None,
        })
        self.users.apply_reward(tool["user_id"], xp=APPROVAL_REWARD["xp"], points=APPROVAL_REWARD["points"])
        self.notifications.notify_safely(
            tool["user_id"],
            "tool_approved",
            title="Recurso Aprovado! 🎉",
            message=(
                f'Seu recurso "{tool.get("title", "")}" foi aprovado! '
                f'Você ganhou +{APPROVAL_REWARD["xp"]} XP e +{APPROVAL_REWARD["points"]} pontos.'
            ),
            from_user_id=moderator_uid,
        )
        logger.info(f"Tool {tool_id} approved by {moderator_uid}")
        return self.require(tool_id, "Tool")

    def reject(self, tool_id: str, moderator_uid: str, reason: str) -> Dict[str, Any]:
        tool = self.require(tool_id, "Tool")
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")

        self.update(tool_id, {
            "status": "rejected",
            "moderated_by": moderator_uid,
            "moderated_at": firestore.SERVER_TIMESTAMP,
            "rejection_reason": reason,
        })
        self.notifications.notify_safely(
            tool["user_id"],
            "tool_rejected",
            title="Recurso não aprovado",
            message=f'Seu recurso "{tool.get("title", "")}" não foi aprovado. Motivo: {reason}',
            from_user_id=moderator_uid,
        )
        logger.info(f"Tool {tool_id} rejected by {moderator_uid}")
        return self.require(tool_id, "Tool")

    def admin_edit(self, tool_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        current = self.require(tool_id, "Tool")
        merged = {k: v for k, v in current.items() if k in ToolModel.model_fields}
        merged.update({k: v for k, v in data.items() if k in EDITABLE_FIELDS and v is not None})
        tool = build_model(ToolModel, **merged)
        self.update(tool_id, {k: getattr(tool, k) for k in EDITABLE_FIELDS})
        return self.require(tool_id, "Tool")
