"""Shared tools: submission, moderation rewards, likes and saves."""

import pytest

from app.crud.notifications import NotificationCRUD
from app.crud.tools import ToolCRUD
from app.crud.user import UserCRUD
from app.utils.exceptions import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def tools(store):
    return ToolCRUD(store)


def _submit(tools, profile, **overrides):
    data = {"title": " Prompt de revisão ", "content": "Revise este código", "category": "prompt", "tags": [" IA ", ""]}
    data.update(overrides)
    return tools.create_tool(profile, data)


def test_submitted_tools_wait_for_review(tools, make_user):
    alice = make_user("alice")
    tool = _submit(tools, alice)
    assert tool["status"] == "pending"
    assert tool["title"] == "Prompt de revisão"
    assert tool["tags"] == ["ia"]
    assert tools.list_approved() == []
    assert [t["id"] for t in tools.list_by_status("pending")] == [tool["id"]]

    with pytest.raises(NotFoundError):
        tools.get_tool(tool["id"], viewer_uid="bob")
    assert tools.get_tool(tool["id"], viewer_uid="alice")["id"] == tool["id"]
    assert tools.get_tool(tool["id"], is_moderator=True)["id"] == tool["id"]


def test_invalid_category_is_rejected(tools, make_user):
    alice = make_user("alice")
    with pytest.raises(ValidationError):
        _submit(tools, alice, category="music")
    with pytest.raises(ValidationError):
        tools.list_approved(category="music")


def test_approval_rewards_owner_once(tools, make_user, store):
    alice = make_user("alice")
    tool = _submit(tools, alice)

    approved = tools.approve(tool["id"], "mod")
    assert approved["status"] == "approved"
    assert approved["moderated_by"] == "mod"
    tools.approve(tool["id"], "mod")

    profile = UserCRUD(store).get_profile("alice")
    assert profile["xp"] == 50
    assert profile["points"] == 10

    notifications = NotificationCRUD(store).list_for_user("alice")
    assert [n["type"] for n in notifications] == ["tool_approved"]
    assert [t["id"] for t in tools.list_approved()] == [tool["id"]]


def test_rejection_needs_a_reason(tools, make_user, store):
    alice = make_user("alice")
    tool = _submit(tools, alice)
    with pytest.raises(ValidationError):
        tools.reject(tool["id"], "mod", "   ")

    rejected = tools.reject(tool["id"], "mod", "Conteúdo duplicado")
    assert rejected["status"] == "rejected"
    assert rejected["rejection_reason"] == "Conteúdo duplicado"
    notification = NotificationCRUD(store).list_for_user("alice")[0]
    assert notification["type"] == "tool_rejected"
    assert "Conteúdo duplicado" in notification["message"]


def test_likes_and_saves_reward_the_owner(tools, make_user, store):
    alice = make_user("alice")
    make_user("bob")
    tool = tools.approve(_submit(tools, alice)["id"], "mod")
    users = UserCRUD(store)

    assert tools.toggle_like(tool["id"], "bob") == {"liked": True, "likes_count": 1}
    assert tools.toggle_save(tool["id"], "bob") == {"saved": True, "saves_count": 1}
    assert users.get_profile("alice")["points"] == 10 + 1 + 2

    assert tools.toggle_like(tool["id"], "bob") == {"liked": False, "likes_count": 0}
    assert tools.toggle_like(tool["id"], "alice") == {"liked": True, "likes_count": 1}
    assert users.get_profile("alice")["points"] == 13
    assert [t["id"] for t in tools.list_saved("bob")] == [tool["id"]]


def test_delete_requires_owner_or_moderator(tools, make_user):
    alice = make_user("alice")
    first = _submit(tools, alice)
    second = _submit(tools, alice)

    with pytest.raises(AuthorizationError):
        tools.delete_tool(first["id"], "bob")
    tools.delete_tool(first["id"], "alice")
    tools.delete_tool(second["id"], "mod", is_moderator=True)
    assert tools.list_by_user("alice") == []


def test_admin_edit_keeps_moderation_state(tools, make_user):
    alice = make_user("alice")
    tool = tools.approve(_submit(tools, alice)["id"], "mod")
    edited = tools.admin_edit(tool["id"], {"title": "Novo título", "category": "code", "status": "pending"})
    assert edited["title"] == "Novo título"
    assert edited["category"] == "code"
    assert edited["status"] == "approved"
