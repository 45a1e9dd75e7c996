"""
Tutorial CRUD Operations
Topics made of YouTube lessons, per-user views and completion, topic reviews.
"""

import re
from typing import Any, Dict, List, Optional

from google.cloud import firestore

from app.crud.base import BaseCRUD, build_model, snapshot_to_dict
from app.crud.user import UserCRUD
from app.models.collections import (
    COLLECTION_TUTORIAL_LESSONS,
    COLLECTION_TUTORIAL_REVIEWS,
    COLLECTION_TUTORIAL_TOPICS,
    COLLECTION_TUTORIAL_VIEWS,
)
from app.models.tutorial import LessonModel, TopicModel, TutorialReviewModel, TutorialViewModel
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

_YOUTUBE_URL = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/)([^&\n?#]+)")
_YOUTUBE_ID = re.compile(r"^[a-zA-Z0-9_-]{11}$")

THUMBNAIL_QUALITIES = ("default", "mqdefault", "hqdefault", "maxresdefault")
TOPIC_FIELDS = ("title", "description", "thumbnail_url", "is_published")


def extract_youtube_id(url: str) -> Optional[str]:
    """Video id from a watch, short, embed or /v/ URL, or a bare 11-char id."""
    url = (url or "").strip()
    match = _YOUTUBE_URL.search(url)
    if match and _YOUTUBE_ID.match(match.group(1)):
        return match.group(1)
    if _YOUTUBE_ID.match(url):
        return url
    return None


def youtube_thumbnail(video_id: str, quality: str = "hqdefault") -> str:
    if quality not in THUMBNAIL_QUALITIES:
        quality = "hqdefault"
    return f"https://img.youtube.com/vi/{video_id}/{quality}.jpg"


def youtube_embed_url(video_id: str) -> str:
    return f"https://www.youtube.com/embed/{video_id}"


def _require_youtube_id(url: str) -> str:
    video_id = extract_youtube_id(url)
    if video_id is None:
        raise ValidationError("Invalid YouTube URL", details={"youtube_url": url})
    return video_id


class TutorialCRUD(BaseCRUD):
    """CRUD operations for tutorial topics, lessons, views and reviews."""

    def __init__(self, db):
        super().__init__(db)
        self.users = UserCRUD(db)

    @property
    def collection_name(self) -> str:
        return COLLECTION_TUTORIAL_TOPICS

    def _lessons(self):
        return self.get_collection(COLLECTION_TUTORIAL_LESSONS)

    def _views(self):
        return self.get_collection(COLLECTION_TUTORIAL_VIEWS)

    def _reviews(self):
        return self.get_collection(COLLECTION_TUTORIAL_REVIEWS)

    # ── Topics ──────────────────────────────────────────────────

    def create_topic(self, data: Dict[str, Any], created_by: str) -> Dict[str, Any]:
        """Create a topic at the end of the current ordering."""
        fields = {k: v for k, v in data.items() if k in TOPIC_FIELDS}
        topic = build_model(TopicModel, **fields, order=self.count(), created_by=created_by, lessons_count=0)
        topic_id = self.create(topic.to_dict())
        logger.info(f"Tutorial topic {topic_id} created")
        return self.require(topic_id, "Topic")

    def update_topic(self, topic_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        current = self.require(topic_id, "Topic")
        merged = {k: v for k, v in current.items() if k in TopicModel.model_fields}
        merged.update({k: v for k, v in data.items() if v is not None})
        topic = build_model(TopicModel, **merged)
        self.update(topic_id, topic.to_dict())
        return self.require(topic_id, "Topic")

    def delete_topic(self, topic_id: str) -> int:
        """Delete a topic and its lessons. Returns how many lessons went with it."""
        self.require(topic_id, "Topic")
        lessons = self.where(self._lessons(), "topic_id", "==", topic_id).get()
        self.write_in_batches([lesson.reference for lesson in lessons])
        self.delete(topic_id)
        logger.info(f"Tutorial topic {topic_id} deleted with {len(lessons)} lessons")
        return len(lessons)

    def list_topics(self, published_only: bool = True) -> List[Dict[str, Any]]:
        query = self.get_collection()
        if published_only:
            query = self.where(query, "is_published", "==", True)
        return [snapshot_to_dict(doc) for doc in query.order_by("order").get()]

    def get_topic_with_lessons(self, topic_id: str, published_only: bool = True) -> Dict[str, Any]:
        topic = self.require(topic_id, "Topic")
        if published_only and not topic.get("is_published"):
            raise NotFoundError("Topic not found", details={"id": topic_id})
        topic["lessons"] = self.list_lessons(topic_id)
        return topic

    # ── Lessons ─────────────────────────────────────────────────

    def create_lesson(self, topic_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        topic = self.require(topic_id, "Topic")
        video_id = _require_youtube_id(data.get("youtube_url", ""))
        fields = {k: v for k, v in data.items() if k in LessonModel.model_fields}
        fields.update(topic_id=topic_id, youtube_id=video_id, order=topic.get("lessons_count", 0))
        lesson = build_model(LessonModel, **fields)

        lesson_id = self.create_in(self._lessons(), lesson.to_dict())
        self.get_collection().document(topic_id).update({"lessons_count": firestore.Increment(1)})
        return self.get_lesson(lesson_id)

    def create_in(self, collection, data: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        data["created_at"] = firestore.SERVER_TIMESTAMP
        ref = collection.document(doc_id) if doc_id else collection.document()
        ref.set(data)
        return ref.id

    def get_lesson(self, lesson_id: str) -> Dict[str, Any]:
        doc = self._lessons().document(lesson_id).get()
        if not doc.exists:
            raise NotFoundError("Lesson not found", details={"id": lesson_id})
        lesson = snapshot_to_dict(doc)
        lesson["thumbnail_url"] = youtube_thumbnail(lesson["youtube_id"])
        lesson["embed_url"] = youtube_embed_url(lesson["youtube_id"])
        return lesson

    def update_lesson(self, lesson_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Update a lesson; a new URL is re-parsed into a video id."""
        current = self.get_lesson(lesson_id)
        merged = {k: v for k, v in current.items() if k in LessonModel.model_fields}
        merged.update({k: v for k, v in data.items() if k in LessonModel.model_fields and v is not None})
        if data.get("youtube_url"):
            merged["youtube_id"] = _require_youtube_id(data["youtube_url"])
        lesson = build_model(LessonModel, **merged)
        self._lessons().document(lesson_id).update({**lesson.to_dict(), "updated_at": firestore.SERVER_TIMESTAMP})
        return self.get_lesson(lesson_id)

    def delete_lesson(self, lesson_id: str) -> None:
        lesson = self.get_lesson(lesson_id)
        self._lessons().document(lesson_id).delete()
        topic_ref = self.get_collection().document(lesson["topic_id"])
        topic = topic_ref.get()
        if topic.exists and (topic.to_dict().get("lessons_count") or 0) > 0:
            topic_ref.update({"lessons_count": firestore.Increment(-1)})

    def list_lessons(self, topic_id: str) -> List[Dict[str, Any]]:
        docs = self.where(self._lessons(), "topic_id", "==", topic_id).order_by("order").get()
        lessons = []
        for doc in docs:
            lesson = snapshot_to_dict(doc)
            lesson["thumbnail_url"] = youtube_thumbnail(lesson["youtube_id"])
            lesson["embed_url"] = youtube_embed_url(lesson["youtube_id"])
            lessons.append(lesson)
        return lessons

    # ── Views and completion ────────────────────────────────────

    def record_view(self, profile: Dict[str, Any], lesson_id: str) -> Dict[str, Any]:
        """
        Record that a user opened a lesson. Repeat views are not counted.

        Returns:
            Dict with ``recorded`` (False for a repeat view) and the ``view``.
        """
        lesson = self.get_lesson(lesson_id)
        topic = self.require(lesson["topic_id"], "Topic")
        view_id = f"{profile['uid']}_{lesson_id}"
        ref = self._views().document(view_id)
        existing = ref.get()
        if existing.exists:
            return {"recorded": False, "view": snapshot_to_dict(existing)}

        view = build_model(
            TutorialViewModel,
            lesson_id=lesson_id,
            lesson_title=lesson.get("title", ""),
            topic_id=topic["id"],
            topic_title=topic.get("title", ""),
            user_id=profile["uid"],
            user_name=profile.get("display_name", ""),
            user_email=profile.get("email", ""),
            user_avatar=profile.get("photo_url"),
        ).to_dict()
        view["viewed_at"] = firestore.SERVER_TIMESTAMP
        ref.set(view)
        return {"recorded": True, "view": snapshot_to_dict(ref.get())}

    def complete_lesson(self, profile: Dict[str, Any], lesson_id: str) -> Dict[str, Any]:
        """Mark a lesson complete once; the first completion bumps ``completed_modules``."""
        self.record_view(profile, lesson_id)
        ref = self._views().document(f"{profile['uid']}_{lesson_id}")
        if ref.get().to_dict().get("completed"):
            return {"completed": False}

        ref.update({"completed": True, "completed_at": firestore.SERVER_TIMESTAMP})
        self.users.get_collection().document(profile["uid"]).update(
            {"completed_modules": firestore.Increment(1)}
        )
        return {"completed": True}

    def user_views(self, uid: str) -> List[Dict[str, Any]]:
        docs = self.where(self._views(), "user_id", "==", uid).get()
        return [snapshot_to_dict(doc) for doc in docs]

    def lesson_stats(self) -> List[Dict[str, Any]]:
        """Per-lesson view and completion counts, most viewed first."""
        stats: Dict[str, Dict[str, Any]] = {}
        for doc in self._views().get():
            view = doc.to_dict()
            entry = stats.setdefault(view["lesson_id"], {
                "lesson_id": view["lesson_id"],
                "lesson_title": view.get("lesson_title", ""),
                "topic_id": view.get("topic_id"),
                "topic_title": view.get("topic_title", ""),
                "views": 0,
                "completions": 0,
                "viewers": [],
            })
            entry["views"] += 1
            entry["completions"] += 1 if view.get("completed") else 0
            entry["viewers"].append({
                "user_id": view.get("user_id"),
                "user_name": view.get("user_name", ""),
                "user_avatar": view.get("user_avatar"),
                "completed": view.get("completed", False),
            })
        return sorted(stats.values(), key=lambda s: s["views"], reverse=True)

    def overall_stats(self) -> Dict[str, int]:
        views = [doc.to_dict() for doc in self._views().get()]
        return {
            "total_views": len(views),
            "unique_viewers": len({v.get("user_id") for v in views}),
            "completions": sum(1 for v in views if v.get("completed")),
        }

    # ── Reviews ─────────────────────────────────────────────────

    def add_review(self, profile: Dict[str, Any], topic_id: str, rating: int, comment: Optional[str] = None) -> Dict[str, Any]:
        self.require(topic_id, "Topic")
        review_id = f"{profile['uid']}_{topic_id}"
        ref = self._reviews().document(review_id)
        if ref.get().exists:
            raise ConflictError("You already reviewed this topic", details={"id": review_id})

        review = build_model(
            TutorialReviewModel,
            user_id=profile["uid"],
            user_name=profile.get("display_name", ""),
            user_avatar=profile.get("photo_url"),
            topic_id=topic_id,
            rating=rating,
            comment=comment.strip() if comment else None,
        ).to_dict()
        review["created_at"] = firestore.SERVER_TIMESTAMP
        ref.set(review)
        return snapshot_to_dict(ref.get())

    def list_reviews(self, topic_id: str, approved_only: bool = True) -> List[Dict[str, Any]]:
        query = self.where(self._reviews(), "topic_id", "==", topic_id)
        if approved_only:
            query = self.where(query, "is_approved", "==", True)
        docs = query.order_by("created_at", direction=firestore.Query.DESCENDING).get()
        return [snapshot_to_dict(doc) for doc in docs]

    def set_review_approval(self, review_id: str, approved: bool) -> Dict[str, Any]:
        ref = self._reviews().document(review_id)
        if not ref.get().exists:
            raise NotFoundError("Review not found", details={"id": review_id})
        ref.update({"is_approved": approved})
        return snapshot_to_dict(ref.get())

    def average_rating(self, topic_id: str) -> Dict[str, Any]:
        reviews = self.list_reviews(topic_id)
        if not reviews:
            return {"average": 0.0, "count": 0}
        average = sum(r.get("rating", 0) for r in reviews) / len(reviews)
        return {"average": round(average, 1), "count": len(reviews)}
