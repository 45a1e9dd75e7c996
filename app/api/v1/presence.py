"""Presence endpoints: heartbeats and online status."""

from fastapi import APIRouter, Depends

from app.config import Settings, get_settings
from app.crud.presence import PresenceCRUD
from app.dependencies import get_current_profile, get_db_client
from app.schemas import ApiResponse

router = APIRouter()


def _presence(db_client, settings: Settings) -> PresenceCRUD:
    return PresenceCRUD(db_client, window_seconds=settings.presence_window_seconds)


@router.post("/heartbeat", response_model=ApiResponse)
async def heartbeat(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> ApiResponse:
    """Mark the caller online. Clients call this periodically."""
    presence = _presence(db_client, settings)
    presence.heartbeat(profile)
    return ApiResponse.ok(presence.get_status(profile["uid"]))


@router.post("/offline", response_model=ApiResponse)
async def go_offline(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> ApiResponse:
    presence = _presence(db_client, settings)
    presence.go_offline(profile["uid"])
    return ApiResponse.ok(presence.get_status(profile["uid"]))


@router.get("/online", response_model=ApiResponse)
async def online_users(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> ApiResponse:
    return ApiResponse.ok(_presence(db_client, settings).online_users())


@router.get("/{uid}", response_model=ApiResponse)
async def user_status(
    uid: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> ApiResponse:
    return ApiResponse.ok(_presence(db_client, settings).get_status(uid))
