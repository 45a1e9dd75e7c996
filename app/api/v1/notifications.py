"""Notification endpoints."""

from fastapi import APIRouter, Depends, Query

from app.crud.notifications import NotificationCRUD
from app.dependencies import get_current_profile, get_db_client
from app.schemas import ApiResponse

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """The caller's notifications, newest first."""
    notifications = NotificationCRUD(db_client)
    return ApiResponse.ok({
        "notifications": notifications.list_for_user(profile["uid"], limit),
        "unread_count": notifications.unread_count(profile["uid"]),
    })


@router.get("/unread-count", response_model=ApiResponse)
async def unread_count(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok({"unread_count": NotificationCRUD(db_client).unread_count(profile["uid"])})


@router.post("/read-all", response_model=ApiResponse)
async def mark_all_read(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok({"marked": NotificationCRUD(db_client).mark_all_read(profile["uid"])})


@router.post("/{notification_id}/read", response_model=ApiResponse)
async def mark_read(
    notification_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    NotificationCRUD(db_client).mark_read(profile["uid"], notification_id)
    return ApiResponse.ok({"id": notification_id})


@router.delete("/{notification_id}", response_model=ApiResponse)
async def delete_notification(
    notification_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    NotificationCRUD(db_client).delete_notification(profile["uid"], notification_id)
    return ApiResponse.ok({"id": notification_id}, message="Notification deleted")


@router.delete("", response_model=ApiResponse)
async def clear_notifications(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok({"deleted": NotificationCRUD(db_client).clear_all(profile["uid"])})
