"""Notification feed bookkeeping."""

import pytest

from app.crud.notifications import NotificationCRUD
from app.utils.exceptions import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def notifications(store):
    return NotificationCRUD(store)


def test_unread_and_mark_read(notifications):
    first = notifications.notify("alice", "like", title="Curtida")
    notifications.notify("alice", "comment", title="Comentário")
    notifications.notify("bob", "like")
    assert notifications.unread_count("alice") == 2

    with pytest.raises(AuthorizationError):
        notifications.mark_read("bob", first)
    notifications.mark_read("alice", first)
    assert notifications.unread_count("alice") == 1

    assert notifications.mark_all_read("alice") == 1
    assert notifications.unread_count("alice") == 0
    assert notifications.unread_count("bob") == 1


def test_feed_is_newest_first(notifications):
    notifications.notify("alice", "like", title="primeira")
    notifications.notify("alice", "comment", title="segunda")
    assert [n["title"] for n in notifications.list_for_user("alice")] == ["segunda", "primeira"]
    assert len(notifications.list_for_user("alice", limit=1)) == 1


def test_unknown_type_is_rejected(notifications):
    with pytest.raises(ValidationError):
        notifications.notify("alice", "poke")


def test_delete_and_clear(notifications):
    first = notifications.notify("alice", "like")
    notifications.notify("alice", "like")
    notifications.notify("bob", "like")

    with pytest.raises(AuthorizationError):
        notifications.delete_notification("bob", first)
    notifications.delete_notification("alice", first)
    with pytest.raises(NotFoundError):
        notifications.delete_notification("alice", first)

    assert notifications.clear_all("alice") == 1
    assert notifications.list_for_user("alice") == []
    assert len(notifications.list_for_user("bob")) == 1


def test_bulk_operations_span_several_batches(notifications):
    for _ in range(501):
        notifications.notify("alice", "like")

    assert notifications.mark_all_read("alice") == 501
    assert notifications.unread_count("alice") == 0
    assert notifications.clear_all("alice") == 501
    assert notifications.list_for_user("alice") == []


def test_fan_out_skips_excluded_user(notifications, make_user):
    make_user("alice")
    make_user("bob")
    assert notifications.notify_all_users("new_product", exclude="alice", title="Novo") == 1
    assert notifications.list_for_user("alice") == []
