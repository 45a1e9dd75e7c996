"""Main v1 API router that aggregates all sub-routers."""

from fastapi import APIRouter

from .auth import router as auth_router
from .users import router as users_router
from .missions import router as missions_router
from .store import router as store_router
from .posts import router as posts_router
from .chat import router as chat_router
from .notifications import router as notifications_router
from .tools import router as tools_router
from .tutorials import router as tutorials_router
from .support import router as support_router
from .referrals import router as referrals_router
from .presence import router as presence_router
from .admin import router as admin_router
from .realtime import router as realtime_router

# Main v1 router
router = APIRouter(prefix="/api/v1")

# Include all sub-routers with appropriate prefixes
router.include_router(auth_router, prefix="/auth", tags=["Auth"])
router.include_router(users_router, prefix="/users", tags=["Users"])
router.include_router(missions_router, prefix="/missions", tags=["Missions"])
router.include_router(store_router, prefix="/store", tags=["Store"])
router.include_router(posts_router, prefix="/posts", tags=["Posts"])
router.include_router(chat_router, prefix="/chat", tags=["Chat"])
router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])
router.include_router(tools_router, prefix="/tools", tags=["Tools"])
router.include_router(tutorials_router, prefix="/tutorials", tags=["Tutorials"])
router.include_router(support_router, prefix="/support", tags=["Support"])
router.include_router(referrals_router, prefix="/referrals", tags=["Referrals"])
router.include_router(presence_router, prefix="/presence", tags=["Presence"])
router.include_router(admin_router, prefix="/admin", tags=["Admin"])
router.include_router(realtime_router, prefix="/realtime", tags=["Realtime"])

__all__ = ["router"]
