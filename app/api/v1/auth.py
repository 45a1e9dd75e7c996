"""Authentication endpoints for signup, login and first sign-in."""

from typing import Optional

from fastapi import APIRouter, Depends, status

from app.crud.auth import LocalAccountCRUD
from app.crud.referrals import ReferralCRUD
from app.crud.user import UserCRUD
from app.dependencies import _check_local_mode, get_current_user, get_db_client
from app.schemas import ApiResponse, BootstrapProfileRequest, LoginRequest, SignUpRequest
from app.utils.exceptions import LaCasaException, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


def _apply_referral(db_client, code: Optional[str], uid: str) -> bool:
    """Apply a signup referral code. A bad code never blocks the signup."""
    if not code:
        return False
    try:
        ReferralCRUD(db_client).process_referral(code, uid)
        return True
    except LaCasaException as e:
        logger.warning(f"Referral code {code} not applied for {uid}: {e.message}")
        return False


@router.post("/signup", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignUpRequest,
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """
    Create a local account and its profile.

    Args:
        request: SignUpRequest with email, password, optional display name and referral code
        db_client: Database client (Firestore or LocalStore)

    Returns:
        ApiResponse with the token and the new profile

    Raises:
        ValidationError: In Firebase mode, where accounts are created by Firebase Auth
        ConflictError: If the email is already registered
    """
    if not _check_local_mode():
        raise ValidationError("Sign up with Firebase Authentication, then call /auth/bootstrap")

    account = LocalAccountCRUD(db_client).register(request.email, request.password)
    users = UserCRUD(db_client)
    users.create_profile(account["uid"], email=account["email"], display_name=request.display_name)
    referral_applied = _apply_referral(db_client, request.referral_code, account["uid"])

    logger.info(f"New user signed up: {account['uid']}")
    return ApiResponse.ok(
        {
            "token": account["token"],
            "token_type": "bearer",
            "profile": users.get_profile(account["uid"]),
            "referral_applied": referral_applied,
        },
        message="Signup successful",
    )


@router.post("/login", response_model=ApiResponse)
async def login(
    request: LoginRequest,
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """
    Authenticate a local account with email and password.

    Raises:
        ValidationError: In Firebase mode
        AuthenticationError: If the credentials are wrong
    """
    if not _check_local_mode():
        raise ValidationError("Sign in with Firebase Authentication")

    account = LocalAccountCRUD(db_client).login(request.email, request.password)
    profile = UserCRUD(db_client).ensure_profile(account["uid"], email=account["email"])
    return ApiResponse.ok(
        {"token": account["token"], "token_type": "bearer", "profile": profile},
        message="Login successful",
    )


@router.post("/bootstrap", response_model=ApiResponse)
async def bootstrap_profile(
    request: BootstrapProfileRequest,
    current_user: dict = Depends(get_current_user),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Create the caller's profile on first sign-in; returns the existing one afterwards."""
    users = UserCRUD(db_client)
    existed = users.exists(current_user["uid"])
    profile = users.ensure_profile(
        current_user["uid"], email=current_user.get("email", ""), display_name=request.display_name
    )
    referral_applied = False
    if not existed:
        referral_applied = _apply_referral(db_client, request.referral_code, current_user["uid"])
        profile = users.get_profile(current_user["uid"])
    return ApiResponse.ok(
        {"profile": profile, "created": not existed, "referral_applied": referral_applied},
        message="Profile ready",
    )


@router.get("/me", response_model=ApiResponse)
async def who_am_i(current_user: dict = Depends(get_current_user)) -> ApiResponse:
    """Identity behind the bearer token."""
    return ApiResponse.ok(current_user)
