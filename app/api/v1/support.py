"""Support desk endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.crud.support import SupportCRUD
from app.dependencies import get_current_profile, get_db_client, require_admin
from app.models.support import TICKET_CATEGORIES, TICKET_PRIORITIES, TICKET_STATUSES
from app.schemas import ApiResponse, TicketMessageRequest, TicketRequest, TicketStatusRequest

router = APIRouter()


@router.get("/options", response_model=ApiResponse)
async def ticket_options() -> ApiResponse:
    """Ticket categories, priorities and statuses with their labels."""
    return ApiResponse.ok({
        "categories": TICKET_CATEGORIES,
        "priorities": TICKET_PRIORITIES,
        "statuses": TICKET_STATUSES,
    })


@router.post("/tickets", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    request: TicketRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    ticket = SupportCRUD(db_client).create_ticket(
        profile, request.subject, request.message, category=request.category, priority=request.priority
    )
    return ApiResponse.ok(ticket, message="Ticket opened")


@router.get("/tickets", response_model=ApiResponse)
async def my_tickets(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(SupportCRUD(db_client).list_for_user(profile["uid"]))


@router.get("/tickets/{ticket_id}", response_model=ApiResponse)
async def get_ticket(
    ticket_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    ticket = SupportCRUD(db_client).get_ticket(ticket_id, profile["uid"], is_admin=profile.get("role") == "admin")
    return ApiResponse.ok(ticket)


@router.post("/tickets/{ticket_id}/messages", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def add_ticket_message(
    ticket_id: str,
    request: TicketMessageRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Reply on a ticket. Admin replies notify the ticket owner."""
    message = SupportCRUD(db_client).add_message(
        ticket_id, profile, request.message, is_admin=profile.get("role") == "admin"
    )
    return ApiResponse.ok(message, message="Message added")


@router.get("/admin/tickets", response_model=ApiResponse)
async def admin_list_tickets(
    status_filter: Optional[str] = Query(None, alias="status"),
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(SupportCRUD(db_client).list_all(status_filter))


@router.put("/admin/tickets/{ticket_id}/status", response_model=ApiResponse)
async def set_ticket_status(
    ticket_id: str,
    request: TicketStatusRequest,
    admin: dict = Depends(require_admin),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(SupportCRUD(db_client).set_status(ticket_id, request.status), message="Status updated")
