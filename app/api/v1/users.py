"""User profile, progression, achievements and cosmetics endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from app.crud.posts import PostCRUD
from app.crud.user import UserCRUD
from app.dependencies import get_current_profile, get_db_client
from app.schemas import ApiResponse, CosmeticRequest, UpdateProfileRequest
from app.services import achievements, cosmetics
from app.services.progression import level_title, streak_bonus, xp_to_next_level
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()

PUBLIC_FIELDS = (
    "uid",
    "display_name",
    "photo_url",
    "level",
    "rank",
    "points",
    "xp",
    "achievements",
    "streak_days",
    "current_avatar_id",
    "current_frame_id",
    "created_at",
)


def _with_progression(profile: Dict[str, Any]) -> Dict[str, Any]:
    xp = profile.get("xp", 0)
    return {
        **profile,
        "progression": {
            "next_level": xp_to_next_level(xp),
            "title": level_title(profile.get("level", 1)),
            "streak_bonus": streak_bonus(profile.get("streak_days", 0)),
        },
    }


@router.get("/me", response_model=ApiResponse)
async def get_my_profile(profile: dict = Depends(get_current_profile)) -> ApiResponse:
    """
    Get the current user's profile with level progress.

    Args:
        profile: Current user's profile document

    Returns:
        ApiResponse with the profile and a ``progression`` block
    """
    return ApiResponse.ok(_with_progression(profile), message="User profile retrieved successfully")


@router.patch("/me", response_model=ApiResponse)
async def update_my_profile(
    request: UpdateProfileRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    updated = UserCRUD(db_client).update_profile(profile["uid"], display_name=request.display_name)
    return ApiResponse.ok(_with_progression(updated), message="Profile updated successfully")


@router.get("/leaderboard", response_model=ApiResponse)
async def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Top members by points."""
    return ApiResponse.ok(UserCRUD(db_client).leaderboard(limit))


@router.get("/me/ranking", response_model=ApiResponse)
async def my_ranking(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    position = UserCRUD(db_client).ranking_position(profile["uid"])
    return ApiResponse.ok({"position": position, "points": profile.get("points", 0)})


@router.get("/achievements", response_model=ApiResponse)
async def list_achievements(profile: dict = Depends(get_current_profile)) -> ApiResponse:
    """Achievement catalogue with the caller's unlocked flags."""
    owned = set(profile.get("achievements") or [])
    catalogue = [
        {**a, "xp": achievements.achievement_xp(a["id"]), "unlocked": a["id"] in owned}
        for a in achievements.ACHIEVEMENTS
    ]
    return ApiResponse.ok({"achievements": catalogue, "unlocked_count": len(owned)})


@router.get("/cosmetics", response_model=ApiResponse)
async def list_cosmetics(profile: dict = Depends(get_current_profile)) -> ApiResponse:
    """Avatar and frame catalogues with ownership and equipped state."""
    data = {}
    for kind, items in cosmetics.CATALOGUES.items():
        owned = set(profile.get(cosmetics.UNLOCK_FIELDS[kind]) or [])
        equipped = profile.get(cosmetics.EQUIP_FIELDS[kind])
        data[kind] = [
            {**item, "unlocked": cosmetics.is_free(item) or item["id"] in owned, "equipped": item["id"] == equipped}
            for item in items
        ]
    return ApiResponse.ok(data)


@router.post("/cosmetics/unlock", response_model=ApiResponse)
async def unlock_cosmetic(
    request: CosmeticRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Spend XP on an avatar or frame and equip it."""
    updated = UserCRUD(db_client).unlock_cosmetic(profile["uid"], request.kind, request.item_id)
    return ApiResponse.ok(_with_progression(updated), message=f"{request.kind.capitalize()} unlocked")


@router.post("/cosmetics/equip", response_model=ApiResponse)
async def equip_cosmetic(
    request: CosmeticRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    updated = UserCRUD(db_client).equip_cosmetic(profile["uid"], request.kind, request.item_id)
    return ApiResponse.ok(updated, message=f"{request.kind.capitalize()} equipped")


@router.get("/{uid}", response_model=ApiResponse)
async def get_public_profile(
    uid: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Another member's public profile."""
    other = UserCRUD(db_client).get_profile(uid)
    return ApiResponse.ok({k: other.get(k) for k in PUBLIC_FIELDS})


@router.get("/{uid}/posts", response_model=ApiResponse)
async def get_user_posts(
    uid: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """A member's posts. Members see their own pending and rejected posts too."""
    posts = PostCRUD(db_client).list_by_author(uid, include_hidden=uid == profile["uid"])
    return ApiResponse.ok(posts)
