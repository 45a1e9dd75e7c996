"""Community feed endpoints: posts, likes and comments."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from app.crud.posts import PostCRUD
from app.dependencies import get_current_profile, get_db_client, get_storage
from app.schemas import ApiResponse, CommentRequest
from app.services.storage import ImageStorage
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()

MODERATOR_ROLES = ("moderator", "admin")


def _is_moderator(profile: dict) -> bool:
    return profile.get("role") in MODERATOR_ROLES


@router.get("", response_model=ApiResponse)
async def get_feed(
    limit: int = Query(20, ge=1, le=100),
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Newest approved posts."""
    return ApiResponse.ok(PostCRUD(db_client).feed(limit))


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    content: str = Form(...),
    image: Optional[UploadFile] = File(None),
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
    storage: ImageStorage = Depends(get_storage),
) -> ApiResponse:
    """
    Publish a post. It stays pending until a moderator approves it.

    Args:
        content: Post text (form field)
        image: Optional picture (JPEG, PNG, GIF or WEBP, up to 5 MB)

    Returns:
        ApiResponse with the created post
    """
    posts = PostCRUD(db_client, storage)
    uploaded = None
    if image is not None and image.filename:
        # One byte past the cap is enough for the size check to reject it
        data = await image.read(storage.max_bytes + 1)
        uploaded = storage.upload_image("posts", profile["uid"], data, image.content_type)
    try:
        post = posts.create_post(profile, content, image=uploaded)
    except Exception:
        if uploaded:
            storage.delete(uploaded["path"])
        raise
    return ApiResponse.ok(post, message="Post submitted for review")


@router.get("/{post_id}", response_model=ApiResponse)
async def get_post(
    post_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    post = PostCRUD(db_client).get_post(post_id, viewer_uid=profile["uid"], is_moderator=_is_moderator(profile))
    return ApiResponse.ok(post)


@router.delete("/{post_id}", response_model=ApiResponse)
async def delete_post(
    post_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
    storage: ImageStorage = Depends(get_storage),
) -> ApiResponse:
    """Delete your own post (moderators may delete any)."""
    PostCRUD(db_client, storage).delete_post(post_id, profile["uid"], is_moderator=_is_moderator(profile))
    return ApiResponse.ok({"id": post_id}, message="Post deleted")


@router.post("/{post_id}/like", response_model=ApiResponse)
async def toggle_like(
    post_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(PostCRUD(db_client).toggle_like(post_id, profile))


@router.get("/{post_id}/comments", response_model=ApiResponse)
async def list_comments(
    post_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(PostCRUD(db_client).list_comments(post_id))


@router.post("/{post_id}/comments", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    request: CommentRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    comment = PostCRUD(db_client).add_comment(post_id, profile, request.content)
    return ApiResponse.ok(comment, message="Comment added")


@router.delete("/{post_id}/comments/{comment_id}", response_model=ApiResponse)
async def delete_comment(
    post_id: str,
    comment_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    PostCRUD(db_client).delete_comment(post_id, comment_id, profile["uid"], is_moderator=_is_moderator(profile))
    return ApiResponse.ok({"id": comment_id}, message="Comment deleted")
