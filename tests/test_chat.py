"""Direct conversations and the global room."""

import pytest

from app.crud.chat import ChatCRUD, GlobalChatCRUD, conversation_id_for
from app.crud.notifications import NotificationCRUD
from app.utils.exceptions import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def chat(store):
    return ChatCRUD(store)


@pytest.fixture
def members(make_user):
    return make_user("alice", display_name="Alice"), make_user("bob", display_name="Bob")


def test_conversation_id_is_order_independent():
    assert conversation_id_for("bob", "alice") == conversation_id_for("alice", "bob") == "alice_bob"


def test_get_or_create_conversation(chat, members):
    conversation = chat.get_or_create_conversation("alice", "bob")
    assert conversation["id"] == "alice_bob"
    assert conversation["participant_names"] == {"alice": "Alice", "bob": "Bob"}
    assert conversation["unread_count"] == {"alice": 0, "bob": 0}
    assert chat.get_or_create_conversation("bob", "alice")["id"] == "alice_bob"


def test_cannot_talk_to_yourself_or_ghosts(chat, members):
    with pytest.raises(ValidationError):
        chat.get_or_create_conversation("alice", "alice")
    with pytest.raises(NotFoundError):
        chat.get_or_create_conversation("alice", "ghost")


def test_send_message_updates_preview_and_unread(chat, members, store):
    alice, _ = members
    chat.get_or_create_conversation("alice", "bob")
    long_text = "x" * 150
    message = chat.send_message("alice_bob", alice, long_text)

    assert message["sender_id"] == "alice"
    assert message["read"] is False
    conversation = chat.require("alice_bob")
    assert conversation["last_message"] == "x" * 100
    assert conversation["last_message_sender_id"] == "alice"
    assert conversation["unread_count"]["bob"] == 1

    notification = NotificationCRUD(store).list_for_user("bob")[0]
    assert notification["type"] == "message"
    assert notification["from_user_id"] == "alice"


def test_outsiders_cannot_read_or_write(chat, members, make_user):
    carol = make_user("carol")
    chat.get_or_create_conversation("alice", "bob")
    with pytest.raises(AuthorizationError):
        chat.send_message("alice_bob", carol, "hi")
    with pytest.raises(AuthorizationError):
        chat.list_messages("alice_bob", "carol")


def test_mark_read_only_touches_incoming(chat, members):
    alice, bob = members
    chat.get_or_create_conversation("alice", "bob")
    chat.send_message("alice_bob", alice, "one")
    chat.send_message("alice_bob", alice, "two")
    chat.send_message("alice_bob", bob, "three")

    assert chat.mark_read("alice_bob", "bob") == 2
    assert chat.require("alice_bob")["unread_count"]["bob"] == 0
    messages = chat.list_messages("alice_bob", "bob")
    assert [m["content"] for m in messages] == ["one", "two", "three"]
    assert [m["read"] for m in messages] == [True, True, False]


def test_conversation_list(chat, members, make_user):
    make_user("carol")
    chat.get_or_create_conversation("alice", "bob")
    chat.get_or_create_conversation("alice", "carol")
    assert {c["id"] for c in chat.list_conversations("alice")} == {"alice_bob", "alice_carol"}
    assert [c["id"] for c in chat.list_conversations("bob")] == ["alice_bob"]


def test_global_chat(store, members):
    alice, bob = members
    room = GlobalChatCRUD(store)
    first = room.send(alice, "bom dia")
    room.send(bob, "", image_url="https://example.com/cat.png")

    recent = room.recent()
    assert [m["sender_id"] for m in recent] == ["alice", "bob"]
    assert recent[1]["image_url"] == "https://example.com/cat.png"

    room.delete_message(first["id"])
    assert [m["sender_id"] for m in room.recent()] == ["bob"]
    with pytest.raises(NotFoundError):
        room.delete_message(first["id"])


def test_mark_read_spans_several_batches(chat, members, store):
    chat.get_or_create_conversation("alice", "bob")
    messages = store.collection("conversations").document("alice_bob").collection("messages")
    for i in range(501):
        messages.document(f"m{i}").set({"sender_id": "alice", "content": str(i), "read": False})

    assert chat.mark_read("alice_bob", "bob") == 501
    assert all(doc.to_dict()["read"] for doc in messages.get())
    assert chat.require("alice_bob")["unread_count"]["bob"] == 0


def test_blank_direct_message_is_rejected(chat, members):
    alice, _ = members
    chat.get_or_create_conversation("alice", "bob")
    with pytest.raises(ValidationError):
        chat.send_message("alice_bob", alice, "   ")
    assert chat.list_messages("alice_bob", "bob") == []
    assert chat.require("alice_bob")["unread_count"]["bob"] == 0
