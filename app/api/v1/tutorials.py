"""Tutorial endpoints: topics, YouTube lessons, progress and reviews."""

from fastapi import APIRouter, Depends, Query, status

from app.crud.tutorials import TutorialCRUD
from app.dependencies import get_current_profile, get_db_client, require_admin
from app.schemas import (
    ApiResponse,
    LessonRequest,
    LessonUpdateRequest,
    ReviewApprovalRequest,
    TopicRequest,
    TopicUpdateRequest,
    TutorialReviewRequest,
)

router = APIRouter()


# ── Members ─────────────────────────────────────────────────────

@router.get("/topics", response_model=ApiResponse)
async def list_topics(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Published topics in display order."""
    return ApiResponse.ok(TutorialCRUD(db_client).list_topics(published_only=True))


@router.get("/topics/{topic_id}", response_model=ApiResponse)
async def get_topic(
    topic_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """A published topic with its lessons and rating."""
    tutorials = TutorialCRUD(db_client)
    topic = tutorials.get_topic_with_lessons(topic_id)
    topic["rating"] = tutorials.average_rating(topic_id)
    return ApiResponse.ok(topic)


@router.post("/lessons/{lesson_id}/view", response_model=ApiResponse)
async def view_lesson(
    lesson_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(TutorialCRUD(db_client).record_view(profile, lesson_id))


@router.post("/lessons/{lesson_id}/complete", response_model=ApiResponse)
async def complete_lesson(
    lesson_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(TutorialCRUD(db_client).complete_lesson(profile, lesson_id))


@router.get("/me/views", response_model=ApiResponse)
async def my_views(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(TutorialCRUD(db_client).user_views(profile["uid"]))


@router.get("/topics/{topic_id}/reviews", response_model=ApiResponse)
async def list_reviews(
    topic_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    tutorials = TutorialCRUD(db_client)
    return ApiResponse.ok({
        "reviews": tutorials.list_reviews(topic_id),
        "rating": tutorials.average_rating(topic_id),
    })


@router.post("/topics/{topic_id}/reviews", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def add_review(
    topic_id: str,
    request: TutorialReviewRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    review = TutorialCRUD(db_client).add_review(profile, topic_id, request.rating, request.comment)
    return ApiResponse.ok(review, message="Review added")


# ── Admin ───────────────────────────────────────────────────────

@router.get("/admin/topics", response_model=ApiResponse)
async def admin_list_topics(
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Every topic, published or not."""
    return ApiResponse.ok(TutorialCRUD(db_client).list_topics(published_only=False))


@router.post("/admin/topics", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_topic(
    request: TopicRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    topic = TutorialCRUD(db_client).create_topic(request.model_dump(), created_by=admin["uid"])
    return ApiResponse.ok(topic, message="Topic created")


@router.get("/admin/topics/{topic_id}", response_model=ApiResponse)
async def admin_get_topic(
    topic_id: str,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(TutorialCRUD(db_client).get_topic_with_lessons(topic_id, published_only=False))


@router.put("/admin/topics/{topic_id}", response_model=ApiResponse)
async def update_topic(
    topic_id: str,
    request: TopicUpdateRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    topic = TutorialCRUD(db_client).update_topic(topic_id, request.model_dump(exclude_unset=True))
    return ApiResponse.ok(topic, message="Topic updated")


@router.delete("/admin/topics/{topic_id}", response_model=ApiResponse)
async def delete_topic(
    topic_id: str,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Delete a topic together with its lessons."""
    removed = TutorialCRUD(db_client).delete_topic(topic_id)
    return ApiResponse.ok({"id": topic_id, "lessons_deleted": removed}, message="Topic deleted")


@router.post("/admin/topics/{topic_id}/lessons", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_lesson(
    topic_id: str,
    request: LessonRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    lesson = TutorialCRUD(db_client).create_lesson(topic_id, request.model_dump())
    return ApiResponse.ok(lesson, message="Lesson created")


@router.put("/admin/lessons/{lesson_id}", response_model=ApiResponse)
async def update_lesson(
    lesson_id: str,
    request: LessonUpdateRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    lesson = TutorialCRUD(db_client).update_lesson(lesson_id, request.model_dump(exclude_unset=True))
    return ApiResponse.ok(lesson, message="Lesson updated")


@router.delete("/admin/lessons/{lesson_id}", response_model=ApiResponse)
async def delete_lesson(
    lesson_id: str,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    TutorialCRUD(db_client).delete_lesson(lesson_id)
    return ApiResponse.ok({"id": lesson_id}, message="Lesson deleted")


@router.get("/admin/stats", response_model=ApiResponse)
async def tutorial_stats(
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Per-lesson and overall view statistics."""
    tutorials = TutorialCRUD(db_client)
    return ApiResponse.ok({"lessons": tutorials.lesson_stats(), "overall": tutorials.overall_stats()})


@router.get("/admin/topics/{topic_id}/reviews", response_model=ApiResponse)
async def admin_list_reviews(
    topic_id: str,
    approved_only: bool = Query(False),
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(TutorialCRUD(db_client).list_reviews(topic_id, approved_only=approved_only))


@router.put("/admin/reviews/{review_id}", response_model=ApiResponse)
async def set_review_approval(
    review_id: str,
    request: ReviewApprovalRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(TutorialCRUD(db_client).set_review_approval(review_id, request.approved))
