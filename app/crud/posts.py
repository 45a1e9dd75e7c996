"""
Post CRUD Operations
Community feed: posts, likes, comments and moderation.
"""

from typing import Any, Dict, List, Optional

from google.cloud import firestore

from app.crud.activity import ActivityTracker
from app.crud.base import BaseCRUD, build_model, snapshot_to_dict
from app.crud.notifications import NotificationCRUD
from app.models.collections import COLLECTION_POSTS, SUBCOLLECTION_COMMENTS
from app.models.community import AuthorSnapshot, CommentModel, MODERATION_STATUSES, PostModel
from app.services.storage import ImageStorage
from app.utils.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

MODERATION_NAME = "Moderação"


def is_visible(post: Dict[str, Any]) -> bool:
    """Approved posts and legacy posts without a status are public."""
    return post.get("status") in (None, "approved")


class PostCRUD(BaseCRUD):
    """CRUD operations for posts and their comments."""

    def __init__(self, db, storage: Optional[ImageStorage] = None):
        super().__init__(db)
        self.storage = storage
        self.notifications = NotificationCRUD(db)
        self.activity = ActivityTracker(db)

    @property
    def collection_name(self) -> str:
        return COLLECTION_POSTS

    def _comments(self, post_id: str):
        return self.get_collection().document(post_id).collection(SUBCOLLECTION_COMMENTS)

    # ── Posts ───────────────────────────────────────────────────

    def create_post(
        self,
        profile: Dict[str, Any],
        content: str,
        image: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Create a post awaiting moderation.

        Args:
            profile: Author's profile document
            content: Post text
            image: Optional ``{"url", "path"}`` of an uploaded image
        """
        author = AuthorSnapshot.from_profile(profile).model_dump()
        post = build_model(
            PostModel,
            **author,
            content=content,
            image_url=image["url"] if image else None,
            image_path=image["path"] if image else None,
        )
        post_id = self.create(post.to_dict())
        logger.info(f"Post {post_id} created by {profile['uid']}")
        self.activity.record(profile["uid"], "post")
        return self.require(post_id, "Post")

    def feed(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Newest public posts."""
        query = self.get_collection().order_by("created_at", direction=firestore.Query.DESCENDING)
        posts = []
        for doc in query.stream():
            data = snapshot_to_dict(doc)
            if is_visible(data):
                posts.append(data)
                if len(posts) >= limit:
                    break
        return posts

    def get_post(self, post_id: str, viewer_uid: Optional[str] = None, is_moderator: bool = False) -> Dict[str, Any]:
        """A single post; hidden posts are only shown to their author and moderators."""
        post = self.require(post_id, "Post")
        if not is_visible(post) and not is_moderator and post.get("author_id") != viewer_uid:
            raise NotFoundError("Post not found", details={"id": post_id})
        return post

    def list_by_author(self, author_id: str, include_hidden: bool = False) -> List[Dict[str, Any]]:
        docs = (
            self.where(self.get_collection(), "author_id", "==", author_id)
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .get()
        )
        posts = [snapshot_to_dict(doc) for doc in docs]
        return posts if include_hidden else [p for p in posts if is_visible(p)]

    def toggle_like(self, post_id: str, profile: Dict[str, Any]) -> Dict[str, Any]:
        """
        Like or unlike a post.

        Returns:
            Dict with ``liked`` (state after the toggle) and ``likes_count``.
        """
        post = self.get_post(post_id, viewer_uid=profile["uid"])
        uid = profile["uid"]
        ref = self.get_collection().document(post_id)

        liked = uid not in (post.get("likes") or [])
        ref.update({"likes": firestore.ArrayUnion([uid]) if liked else firestore.ArrayRemove([uid])})

        if liked and post.get("author_id") != uid:
            self.notifications.notify_safely(
                post["author_id"],
                "like",
                from_user_id=uid,
                from_user_name=profile.get("display_name"),
                from_user_avatar=profile.get("photo_url"),
                post_id=post_id,
                post_content=post.get("content", "")[:100],
            )

        if liked:
            self.activity.record(uid, "like")

        likes = ref.get().to_dict().get("likes") or []
        return {"liked": liked, "likes_count": len(likes)}

    def _delete_image(self, post: Dict[str, Any]) -> None:
        path = post.get("image_path")
        if not path or self.storage is None:
            return
        try:
            self.storage.delete(path)
        except Exception as e:
            logger.error(f"Could not delete image {path}: {e}")

    def delete_post(self, post_id: str, uid: str, is_moderator: bool = False) -> None:
        """Delete a post with its image and comments. Only the author or a moderator may."""
        post = self.require(post_id, "Post")
        if post.get("author_id") != uid and not is_moderator:
            raise AuthorizationError("Only the author can delete this post")

        self.write_in_batches([comment.reference for comment in self._comments(post_id).get()])
        self.delete(post_id)
        self._delete_image(post)
        logger.info(f"Post {post_id} deleted by {uid}")

    def received_likes(self, author_id: str) -> int:
        docs = self.where(self.get_collection(), "author_id", "==", author_id).get()
        return sum(len((doc.to_dict() or {}).get("likes") or []) for doc in docs)

    # ── Comments ────────────────────────────────────────────────

    def add_comment(self, post_id: str, profile: Dict[str, Any], content: str) -> Dict[str, Any]:
        post = self.get_post(post_id, viewer_uid=profile["uid"])
        author = AuthorSnapshot.from_profile(profile).model_dump()
        author.pop("author_level")
        comment = build_model(CommentModel, **author, post_id=post_id, content=content)

        data = comment.to_dict()
        data["created_at"] = firestore.SERVER_TIMESTAMP
        _, comment_ref = self._comments(post_id).add(data)
        self.get_collection().document(post_id).update({"comments_count": firestore.Increment(1)})

        if post.get("author_id") != profile["uid"]:
            self.notifications.notify_safely(
                post["author_id"],
                "comment",
                from_user_id=profile["uid"],
                from_user_name=profile.get("display_name"),
                from_user_avatar=profile.get("photo_url"),
                post_id=post_id,
                comment_content=data["content"][:100],
            )
        self.activity.record(profile["uid"], "comment")
        return snapshot_to_dict(comment_ref.get())

    def list_comments(self, post_id: str) -> List[Dict[str, Any]]:
        self.require(post_id, "Post")
        docs = self._comments(post_id).order_by("created_at").get()
        return [snapshot_to_dict(doc) for doc in docs]

    def delete_comment(self, post_id: str, comment_id: str, uid: str, is_moderator: bool = False) -> None:
        self.require(post_id, "Post")
        ref = self._comments(post_id).document(comment_id)
        comment = ref.get()
        if not comment.exists:
            raise NotFoundError("Comment not found", details={"id": comment_id})
        if comment.to_dict().get("author_id") != uid and not is_moderator:
            raise AuthorizationError("Only the author can delete this comment")

        ref.delete()
        post_ref = self.get_collection().document(post_id)
        if (post_ref.get().to_dict() or {}).get("comments_count", 0) > 0:
            post_ref.update({"comments_count": firestore.Increment(-1)})

    # ── Moderation ──────────────────────────────────────────────

    def list_for_moderation(self, status: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
        """Posts for the moderation queue. ``approved`` includes legacy posts without a status."""
        if status is not None and status not in MODERATION_STATUSES:
            raise ValidationError("Invalid status", details={"status": status})
        docs = (
            self.get_collection()
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
            .get()
        )
        posts = [snapshot_to_dict(doc) for doc in docs]
        if status is None:
            return posts
        return [p for p in posts if (p.get("status") or "approved") == status]

    def approve(self, post_id: str, moderator_uid: str) -> Dict[str, Any]:
        post = self.require(post_id, "Post")
        self.update(post_id, {"status": "approved", "moderated_by": moderator_uid, "rejection_reason": None})
        self.notifications.notify_safely(
            post["author_id"],
            "post_approved",
            from_user_id=moderator_uid,
            from_user_name=MODERATION_NAME,
            title="Post aprovado",
            message="Seu post foi aprovado e já está visível na comunidade!",
            post_id=post_id,
        )
        logger.info(f"Post {post_id} approved by {moderator_uid}")
        return self.require(post_id, "Post")

    def reject(self, post_id: str, moderator_uid: str, reason: str = "") -> Dict[str, Any]:
        post = self.require(post_id, "Post")
        reason = reason.strip() or "Conteúdo não aprovado"
        self.update(post_id, {"status": "rejected", "moderated_by": moderator_uid, "rejection_reason": reason})
        self.notifications.notify_safely(
            post["author_id"],
            "post_rejected",
            from_user_id=moderator_uid,
            from_user_name=MODERATION_NAME,
            title="Post não aprovado",
            message=f"Seu post não foi aprovado. Motivo: {reason}",
            post_id=post_id,
        )
        logger.info(f"Post {post_id} rejected by {moderator_uid}")
        return self.require(post_id, "Post")

    def admin_edit(self, post_id: str, content: str) -> Dict[str, Any]:
        self.require(post_id, "Post")
        content = content.strip()
        if not content:
            raise ValidationError("Content cannot be empty")
        self.update(post_id, {"content": content})
        return self.require(post_id, "Post")
