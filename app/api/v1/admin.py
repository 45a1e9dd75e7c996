"""Admin endpoints: statistics, users, missions, products, access delivery and moderation."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from app.config import Settings, get_settings
from app.crud.admin import AdminStatsCRUD
from app.crud.auth import LocalAccountCRUD
from app.crud.chat import ChatCRUD, GlobalChatCRUD
from app.crud.missions import MissionCRUD
from app.crud.posts import PostCRUD
from app.crud.products import ProductCRUD
from app.crud.tools import ToolCRUD
from app.crud.user import UserCRUD
from app.dependencies import _check_local_mode, get_db_client, get_firebase, get_storage, require_admin, require_moderator
from app.schemas import (
    AdminSetupRequest,
    ApiResponse,
    DeliverAccessRequest,
    EditContentRequest,
    MissionDefinitionRequest,
    MissionDefinitionUpdateRequest,
    ModerationRequest,
    PaginatedResponse,
    PointsAdjustmentRequest,
    ProductRequest,
    ProductUpdateRequest,
    RoleRequest,
    ToolUpdateRequest,
)
from app.services.storage import ImageStorage
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ── Bootstrap ───────────────────────────────────────────────────

@router.post("/setup", response_model=ApiResponse)
async def setup_admin(
    request: AdminSetupRequest,
    x_admin_key: str = Header(..., alias="X-Admin-Key"),
    db_client=Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> ApiResponse:
    """
    Promote a user to admin.

    Requires X-Admin-Key header matching ADMIN_API_KEY env var.
    Used once to create the first admin of a deployment.
    """
    if not settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API key not configured",
        )

    if x_admin_key != settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin key",
        )

    profile = UserCRUD(db_client).set_role(request.user_id, "admin")
    if not _check_local_mode():
        get_firebase().set_role_claim(request.user_id, "admin")
    logger.info(f"Admin bootstrap: {request.user_id} promoted via admin key")
    return ApiResponse.ok(profile, message="User promoted to admin")


# ── Statistics and users ────────────────────────────────────────

@router.get("/stats", response_model=ApiResponse)
async def get_stats(
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(AdminStatsCRUD(db_client).stats())


@router.get("/users", response_model=ApiResponse)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    page_data = UserCRUD(db_client).list_users(page=page, page_size=page_size)
    return ApiResponse.ok(PaginatedResponse(**page_data))


@router.post("/users/{uid}/points", response_model=ApiResponse)
async def adjust_points(
    uid: str,
    request: PointsAdjustmentRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Grant or remove points and XP. Balances never drop below zero."""
    result = UserCRUD(db_client).apply_reward(uid, xp=request.xp, points=request.points)
    logger.info(f"Admin {admin['uid']} adjusted {uid}: {request.points:+d} pts, {request.xp:+d} XP")
    return ApiResponse.ok(result, message="Balance updated")


@router.put("/users/{uid}/role", response_model=ApiResponse)
async def set_role(
    uid: str,
    request: RoleRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    profile = UserCRUD(db_client).set_role(uid, request.role)
    if not _check_local_mode():
        get_firebase().set_role_claim(uid, request.role)
    return ApiResponse.ok(profile, message="Role updated")


@router.delete("/users/{uid}", response_model=ApiResponse)
async def delete_user(
    uid: str,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Delete a member's profile and sign-in account."""
    if uid == admin["uid"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot delete themselves")
    UserCRUD(db_client).delete_user(uid)
    if _check_local_mode():
        LocalAccountCRUD(db_client).delete_account(uid)
    else:
        get_firebase().delete_user(uid)
    return ApiResponse.ok({"uid": uid}, message="User deleted")


# ── Missions ────────────────────────────────────────────────────

@router.get("/missions", response_model=ApiResponse)
async def list_missions(
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(MissionCRUD(db_client).list_definitions())


@router.post("/missions", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_mission(
    request: MissionDefinitionRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(MissionCRUD(db_client).create_definition(request.model_dump()), message="Mission created")


@router.put("/missions/{mission_id}", response_model=ApiResponse)
async def update_mission(
    mission_id: str,
    request: MissionDefinitionUpdateRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    mission = MissionCRUD(db_client).update_definition(mission_id, request.model_dump(exclude_unset=True))
    return ApiResponse.ok(mission, message="Mission updated")


@router.delete("/missions/{mission_id}", response_model=ApiResponse)
async def delete_mission(
    mission_id: str,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    MissionCRUD(db_client).delete_definition(mission_id)
    return ApiResponse.ok({"id": mission_id}, message="Mission deleted")


# ── Store ───────────────────────────────────────────────────────

@router.get("/products", response_model=ApiResponse)
async def list_all_products(
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ProductCRUD(db_client).list_products(include_unavailable=True))


@router.post("/products", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductRequest,
    notify: bool = Query(True, description="Notify every member about the new product"),
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    product = ProductCRUD(db_client).create_product(request.model_dump(), notify=notify)
    return ApiResponse.ok(product, message="Product created")


@router.put("/products/{product_id}", response_model=ApiResponse)
async def update_product(
    product_id: str,
    request: ProductUpdateRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    product = ProductCRUD(db_client).update_product(product_id, request.model_dump(exclude_unset=True))
    return ApiResponse.ok(product, message="Product updated")


@router.delete("/products/{product_id}", response_model=ApiResponse)
async def delete_product(
    product_id: str,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    ProductCRUD(db_client).delete_product(product_id)
    return ApiResponse.ok({"id": product_id}, message="Product deleted")


@router.get("/purchases", response_model=ApiResponse)
async def list_purchases(
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ProductCRUD(db_client).list_purchases())


@router.get("/access-requests", response_model=ApiResponse)
async def list_access_requests(
    pending_only: bool = Query(True),
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ProductCRUD(db_client).list_access_requests(pending_only=pending_only))


@router.post("/purchases/{purchase_id}/deliver", response_model=ApiResponse)
async def deliver_access(
    purchase_id: str,
    request: DeliverAccessRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Send the link, credentials or instructions for a purchase."""
    purchase = ProductCRUD(db_client).deliver_access(purchase_id, request.model_dump())
    return ApiResponse.ok(purchase, message="Access delivered")


# ── Moderation ──────────────────────────────────────────────────

@router.get("/posts", response_model=ApiResponse)
async def list_posts(
    status_filter: Optional[str] = Query(None, alias="status"),
    moderator: dict = Depends(require_moderator),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(PostCRUD(db_client).list_for_moderation(status_filter))


@router.post("/posts/{post_id}/moderate", response_model=ApiResponse)
async def moderate_post(
    post_id: str,
    request: ModerationRequest,
    moderator: dict = Depends(require_moderator),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    posts = PostCRUD(db_client)
    if request.approve:
        post = posts.approve(post_id, moderator["uid"])
    else:
        post = posts.reject(post_id, moderator["uid"], request.reason or "")
    return ApiResponse.ok(post, message=f"Post {post['status']}")


@router.put("/posts/{post_id}", response_model=ApiResponse)
async def edit_post(
    post_id: str,
    request: EditContentRequest,
    moderator: dict = Depends(require_moderator),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(PostCRUD(db_client).admin_edit(post_id, request.content), message="Post updated")


@router.delete("/posts/{post_id}", response_model=ApiResponse)
async def delete_post(
    post_id: str,
    moderator: dict = Depends(require_moderator),
    db_client=Depends(get_db_client),
    storage: ImageStorage = Depends(get_storage),
) -> ApiResponse:
    PostCRUD(db_client, storage).delete_post(post_id, moderator["uid"], is_moderator=True)
    return ApiResponse.ok({"id": post_id}, message="Post deleted")


@router.get("/tools", response_model=ApiResponse)
async def list_tools(
    status_filter: Optional[str] = Query(None, alias="status"),
    moderator: dict = Depends(require_moderator),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ToolCRUD(db_client).list_by_status(status_filter))


@router.post("/tools/{tool_id}/moderate", response_model=ApiResponse)
async def moderate_tool(
    tool_id: str,
    request: ModerationRequest,
    moderator: dict = Depends(require_moderator),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Approve (rewarding the owner) or reject with a reason."""
    tools = ToolCRUD(db_client)
    if request.approve:
        tool = tools.approve(tool_id, moderator["uid"])
    else:
        tool = tools.reject(tool_id, moderator["uid"], request.reason or "")
    return ApiResponse.ok(tool, message=f"Tool {tool['status']}")


@router.put("/tools/{tool_id}", response_model=ApiResponse)
async def edit_tool(
    tool_id: str,
    request: ToolUpdateRequest,
    moderator: dict = Depends(require_moderator),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    tool = ToolCRUD(db_client).admin_edit(tool_id, request.model_dump(exclude_unset=True))
    return ApiResponse.ok(tool, message="Tool updated")


@router.delete("/tools/{tool_id}", response_model=ApiResponse)
async def delete_tool(
    tool_id: str,
    moderator: dict = Depends(require_moderator),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    ToolCRUD(db_client).delete_tool(tool_id, moderator["uid"], is_moderator=True)
    return ApiResponse.ok({"id": tool_id}, message="Tool deleted")


@router.get("/conversations", response_model=ApiResponse)
async def list_conversations(
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ChatCRUD(db_client).admin_list())


@router.delete("/global-chat/{message_id}", response_model=ApiResponse)
async def delete_global_message(
    message_id: str,
    moderator: dict = Depends(require_moderator),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    GlobalChatCRUD(db_client).delete_message(message_id)
    return ApiResponse.ok({"id": message_id}, message="Message deleted")
