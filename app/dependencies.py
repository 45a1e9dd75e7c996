"""
Shared application dependencies.
Supports both Firebase mode and local development mode.
"""

import os
import time
from typing import Dict, Optional

from fastapi import Depends, Header, HTTPException, status

from app.config import Settings, get_settings
from app.core.security import decode_token
from app.crud.user import UserCRUD
from app.services.storage import FirebaseImageStorage, ImageStorage, LocalFileStorage
from app.utils.exceptions import AuthenticationError, AuthorizationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Global Instances
_db_client = None
_storage = None
_is_local_mode = None


def _check_local_mode() -> bool:
    """Determine if we should use local mode (no Firebase)."""
    global _is_local_mode
    if _is_local_mode is not None:
        return _is_local_mode

    settings = get_settings()
    cred_path = settings.firebase_credentials_path

    if not cred_path or not os.path.exists(cred_path):
        logger.info("Firebase credentials not found - running in LOCAL DEV mode")
        _is_local_mode = True
    else:
        _is_local_mode = False

    return _is_local_mode


def get_firebase():
    settings = get_settings()
    from app.services.firebase.firebase_service import get_firebase_service
    return get_firebase_service(settings.firebase_credentials_path, settings.storage_bucket or None)


def get_db_client(settings: Settings = Depends(get_settings)):
    """Get database client - Firestore in prod, LocalStore in dev."""
    global _db_client
    if _db_client is not None:
        return _db_client

    if _check_local_mode():
        from app.services.local_store import get_local_store
        _db_client = get_local_store(settings.data_dir)
        logger.info(f"Using LocalStore database (data dir: {settings.data_dir or 'memory'})")
    else:
        _db_client = get_firebase().firestore_client()
        logger.info("Using Firestore database")

    return _db_client


def get_storage(settings: Settings = Depends(get_settings)) -> ImageStorage:
    """Get image storage - Firebase bucket in prod, upload dir in dev."""
    global _storage
    if _storage is not None:
        return _storage

    if _check_local_mode():
        _storage = LocalFileStorage(settings.upload_dir, settings.max_image_bytes)
        logger.info(f"Using local image storage at {settings.upload_dir}")
    else:
        _storage = FirebaseImageStorage(get_firebase().bucket(), settings.max_image_bytes)
        logger.info("Using Firebase Storage bucket")

    return _storage


def authenticate_token(token: str) -> Dict[str, str]:
    """Resolve a bearer token to ``{"uid", "email"}``."""
    if _check_local_mode():
        try:
            payload = decode_token(token)
        except ValueError as e:
            raise AuthenticationError("Invalid or expired token") from e
        return {"uid": payload["sub"], "email": payload.get("email", "")}

    decoded = get_firebase().verify_token(token)
    return {"uid": decoded["uid"], "email": decoded.get("email", "")}


async def get_current_user(
    authorization: Optional[str] = Header(None),
) -> Dict[str, str]:
    """Get current user from auth token."""
    if not authorization:
        raise AuthenticationError("Authorization header missing")

    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")

    return authenticate_token(authorization[len("Bearer "):])


def get_current_profile(
    user: Dict[str, str] = Depends(get_current_user),
    db_client=Depends(get_db_client),
) -> dict:
    """The caller's profile document. Roles are always read from here, never from the token."""
    return UserCRUD(db_client).get_profile(user["uid"])


def require_moderator(profile: dict = Depends(get_current_profile)) -> dict:
    if profile.get("role") not in ("moderator", "admin"):
        raise AuthorizationError("Moderator access required")
    return profile


def require_admin(profile: dict = Depends(get_current_profile)) -> dict:
    if profile.get("role") != "admin":
        raise AuthorizationError("Admin access required")
    return profile


class RateLimiter:
    def __init__(self, max_requests: int = 100, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.requests: Dict[str, list] = {}

    def is_allowed(self, key: str) -> bool:
        now = time.time()
        cutoff = now - self.window_seconds
        if key not in self.requests:
            self.requests[key] = []
        self.requests[key] = [t for t in self.requests[key] if t > cutoff]
        if len(self.requests[key]) < self.max_requests:
            self.requests[key].append(now)
            return True
        return False


# Per-user cap on chat sends
_message_limiter = RateLimiter(max_requests=30, window_seconds=60)


def check_message_rate(user: Dict[str, str] = Depends(get_current_user)) -> Dict[str, str]:
    uid = user.get("uid", "anonymous")
    if not _message_limiter.is_allowed(uid):
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded")
    return user
