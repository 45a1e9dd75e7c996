"""Support tickets and their threads."""

import pytest

from app.crud.notifications import NotificationCRUD
from app.crud.support import SupportCRUD
from app.utils.exceptions import AuthorizationError, ValidationError


@pytest.fixture
def support(store):
    return SupportCRUD(store)


def test_ticket_opens_with_first_message(support, make_user):
    alice = make_user("alice")
    ticket = support.create_ticket(alice, "  Não consigo entrar ", "Erro ao logar", category="account", priority="high")
    assert ticket["status"] == "open"
    assert ticket["subject"] == "Não consigo entrar"

    full = support.get_ticket(ticket["id"], "alice")
    assert [m["message"] for m in full["messages"]] == ["Erro ao logar"]
    assert full["messages"][0]["sender_role"] == "user"
    assert [t["id"] for t in support.list_for_user("alice")] == [ticket["id"]]


def test_ticket_validation(support, make_user):
    alice = make_user("alice")
    with pytest.raises(ValidationError):
        support.create_ticket(alice, "Assunto", "msg", category="gossip")
    with pytest.raises(ValidationError):
        support.create_ticket(alice, "   ", "msg")


def test_only_owner_or_admin_can_read(support, make_user):
    alice = make_user("alice")
    make_user("bob")
    ticket = support.create_ticket(alice, "Ajuda", "Oi")
    with pytest.raises(AuthorizationError):
        support.get_ticket(ticket["id"], "bob")
    with pytest.raises(AuthorizationError):
        support.add_message(ticket["id"], {"uid": "bob"}, "intruso")
    assert support.get_ticket(ticket["id"], "root", is_admin=True)["id"] == ticket["id"]


def test_admin_reply_notifies_owner(support, make_user, store):
    alice = make_user("alice")
    admin = make_user("root", display_name="Suporte")
    ticket = support.create_ticket(alice, "Ajuda", "Oi")

    reply = support.add_message(ticket["id"], admin, "Como posso ajudar?", is_admin=True)
    assert reply["sender_role"] == "admin"
    assert support.get_ticket(ticket["id"], "alice")["last_reply_role"] == "admin"

    notification = NotificationCRUD(store).list_for_user("alice")[0]
    assert notification["type"] == "ticket_reply"
    assert notification["from_user_name"] == "Suporte"

    support.add_message(ticket["id"], alice, "Obrigado", is_admin=False)
    assert support.get_ticket(ticket["id"], "alice")["last_reply_role"] == "user"
    assert len(NotificationCRUD(store).list_for_user("alice")) == 1


def test_status_changes(support, make_user):
    alice = make_user("alice")
    ticket = support.create_ticket(alice, "Ajuda", "Oi")
    with pytest.raises(ValidationError):
        support.set_status(ticket["id"], "archived")

    assert support.set_status(ticket["id"], "resolved")["status"] == "resolved"
    assert [t["id"] for t in support.list_all(status="resolved")] == [ticket["id"]]
    assert support.list_all(status="open") == []

    support.set_status(ticket["id"], "closed")
    with pytest.raises(ValidationError):
        support.add_message(ticket["id"], alice, "ainda aí?")


def test_blank_first_message_leaves_no_ticket(support, make_user):
    alice = make_user("alice")
    with pytest.raises(ValidationError):
        support.create_ticket(alice, "Ajuda", "   ")
    assert support.list_for_user("alice") == []


def test_blank_reply_is_rejected(support, make_user):
    alice = make_user("alice")
    ticket = support.create_ticket(alice, "Ajuda", "Erro")
    with pytest.raises(ValidationError):
        support.add_message(ticket["id"], alice, "  ")
    assert len(support.get_ticket(ticket["id"], "alice")["messages"]) == 1
