"""Daily mission endpoints."""

from fastapi import APIRouter, Depends

from app.crud.missions import ALL_MISSIONS_BONUS, MISSION_REWARDS, MissionCRUD
from app.dependencies import get_current_profile, get_db_client
from app.schemas import ApiResponse, MissionProgressRequest
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/today", response_model=ApiResponse)
async def get_today(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """
    Today's missions, created on the first call of the day.

    The first call also completes the login mission and pays its reward.

    Args:
        profile: Current user's profile
        db_client: Database client

    Returns:
        ApiResponse with ``missions_doc``, ``login_reward_granted`` and the reward table
    """
    missions = MissionCRUD(db_client)
    result = missions.initialize_today(profile["uid"])
    if not result["login_reward_granted"] and missions.verify_login_reward(profile["uid"]):
        result["login_reward_granted"] = True
        result["missions_doc"] = missions.get_today(profile["uid"])
    result["rewards"] = {mission_id: missions.reward_for(mission_id) for mission_id in result["missions_doc"]["missions"]}
    result["all_missions_bonus"] = ALL_MISSIONS_BONUS
    return ApiResponse.ok(result)


@router.get("/definitions", response_model=ApiResponse)
async def list_definitions(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Active mission definitions plus the built-in daily missions."""
    return ApiResponse.ok({
        "definitions": MissionCRUD(db_client).list_definitions(active_only=True),
        "built_in": MISSION_REWARDS,
    })


@router.post("/{mission_id}/complete", response_model=ApiResponse)
async def complete_mission(
    mission_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Advance a mission by one step, e.g. ``visit-store`` when the store is opened."""
    result = MissionCRUD(db_client).complete_mission(profile["uid"], mission_id)
    return ApiResponse.ok(result, message="Mission completed" if result["completed"] else "Progress saved")


@router.put("/{mission_id}/progress", response_model=ApiResponse)
async def update_progress(
    mission_id: str,
    request: MissionProgressRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    mission = MissionCRUD(db_client).update_progress(profile["uid"], mission_id, request.progress)
    return ApiResponse.ok(mission)


@router.post("/{mission_id}/claim", response_model=ApiResponse)
async def claim_reward(
    mission_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    result = MissionCRUD(db_client).claim_reward(profile["uid"], mission_id)
    return ApiResponse.ok(result, message="Reward claimed")
