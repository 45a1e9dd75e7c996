"""Tool marketplace endpoints: shared prompts, code, tools and tutorials."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.crud.tools import ToolCRUD
from app.dependencies import get_current_profile, get_db_client
from app.schemas import ApiResponse, ToolRequest

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_tools(
    category: Optional[str] = Query(None, description="prompt, code, tool or tutorial"),
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Approved tools, newest first."""
    return ApiResponse.ok(ToolCRUD(db_client).list_approved(category))


@router.get("/mine", response_model=ApiResponse)
async def my_tools(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """The caller's submissions in every status."""
    return ApiResponse.ok(ToolCRUD(db_client).list_by_user(profile["uid"]))


@router.get("/saved", response_model=ApiResponse)
async def saved_tools(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ToolCRUD(db_client).list_saved(profile["uid"]))


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_tool(
    request: ToolRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    tool = ToolCRUD(db_client).create_tool(profile, request.model_dump())
    return ApiResponse.ok(tool, message="Tool submitted for review")


@router.get("/{tool_id}", response_model=ApiResponse)
async def get_tool(
    tool_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """A tool. Opening an approved tool counts as a view."""
    tools = ToolCRUD(db_client)
    tool = tools.get_tool(tool_id, viewer_uid=profile["uid"], is_moderator=profile.get("role") in ("moderator", "admin"))
    if tool.get("status") == "approved":
        tools.record_view(tool_id)
        tool["views"] = tool.get("views", 0) + 1
    return ApiResponse.ok(tool)


@router.post("/{tool_id}/like", response_model=ApiResponse)
async def toggle_like(
    tool_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ToolCRUD(db_client).toggle_like(tool_id, profile["uid"]))


@router.post("/{tool_id}/save", response_model=ApiResponse)
async def toggle_save(
    tool_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ToolCRUD(db_client).toggle_save(tool_id, profile["uid"]))


@router.delete("/{tool_id}", response_model=ApiResponse)
async def delete_tool(
    tool_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    ToolCRUD(db_client).delete_tool(tool_id, profile["uid"], is_moderator=profile.get("role") in ("moderator", "admin"))
    return ApiResponse.ok({"id": tool_id}, message="Tool deleted")
