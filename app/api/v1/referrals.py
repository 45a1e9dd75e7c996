"""Referral endpoints."""

from fastapi import APIRouter, Depends

from app.crud.referrals import ReferralCRUD
from app.dependencies import get_current_profile, get_db_client
from app.schemas import ApiResponse, ReferralRequest

router = APIRouter()


@router.get("/me", response_model=ApiResponse)
async def my_referrals(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """The caller's referral code and the members they brought in."""
    return ApiResponse.ok(ReferralCRUD(db_client).stats(profile["uid"]))


@router.post("/apply", response_model=ApiResponse)
async def apply_referral(
    request: ReferralRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """
    Credit a referrer after signing up.

    Raises:
        NotFoundError: Unknown code
        ValidationError: The code is the caller's own
        ConflictError: The caller was already referred
    """
    referral = ReferralCRUD(db_client).process_referral(request.code, profile["uid"])
    return ApiResponse.ok(referral, message="Referral applied")
