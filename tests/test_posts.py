"""Posts: moderation, likes, comments and the rewards they trigger."""

import pytest

from app.crud.notifications import NotificationCRUD
from app.crud.posts import PostCRUD
from app.crud.user import UserCRUD
from app.utils.exceptions import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def posts(store):
    return PostCRUD(store)


@pytest.fixture
def members(make_user):
    return make_user("alice", display_name="Alice"), make_user("bob", display_name="Bob")


def test_new_post_is_pending_and_hidden(posts, members):
    alice, bob = members
    post = posts.create_post(alice, "  Olá comunidade  ")
    assert post["status"] == "pending"
    assert post["content"] == "Olá comunidade"
    assert post["author_name"] == "Alice"

    assert posts.feed() == []
    assert posts.get_post(post["id"], viewer_uid="alice")["id"] == post["id"]
    with pytest.raises(NotFoundError):
        posts.get_post(post["id"], viewer_uid="bob")
    assert posts.get_post(post["id"], viewer_uid="bob", is_moderator=True)["id"] == post["id"]


def test_empty_post_is_rejected(posts, members):
    with pytest.raises(ValidationError):
        posts.create_post(members[0], "   ")


def test_first_post_rewards(posts, members, store):
    posts.create_post(members[0], "primeiro")
    profile = UserCRUD(store).get_profile("alice")
    assert "first-post" in profile["achievements"]
    # first-post 50 XP, daily login 50 XP and share-progress 50 XP
    assert profile["xp"] == 150
    assert profile["points"] == 50


def test_approval_publishes_and_notifies(posts, members, store):
    post = posts.create_post(members[0], "hello")
    approved = posts.approve(post["id"], "mod")
    assert approved["status"] == "approved"
    assert [p["id"] for p in posts.feed()] == [post["id"]]

    notifications = NotificationCRUD(store).list_for_user("alice")
    assert notifications[0]["type"] == "post_approved"
    assert notifications[0]["from_user_name"] == "Moderação"


def test_rejection_keeps_a_reason(posts, members, store):
    post = posts.create_post(members[0], "hello")
    rejected = posts.reject(post["id"], "mod")
    assert rejected["status"] == "rejected"
    assert rejected["rejection_reason"] == "Conteúdo não aprovado"
    assert posts.list_for_moderation("rejected")[0]["id"] == post["id"]
    assert posts.list_for_moderation("pending") == []
    with pytest.raises(ValidationError):
        posts.list_for_moderation("archived")


def test_legacy_posts_without_status_are_public(posts, store):
    store.collection("posts").document("old").set({"author_id": "x", "content": "legacy", "likes": []})
    assert posts.get_post("old", viewer_uid="someone")["content"] == "legacy"


def test_like_toggle_notifies_author(posts, members, store):
    alice, bob = members
    post = posts.approve(posts.create_post(alice, "hello")["id"], "mod")

    assert posts.toggle_like(post["id"], bob) == {"liked": True, "likes_count": 1}
    assert posts.toggle_like(post["id"], bob) == {"liked": False, "likes_count": 0}

    likes = [n for n in NotificationCRUD(store).list_for_user("alice") if n["type"] == "like"]
    assert len(likes) == 1
    assert likes[0]["from_user_id"] == "bob"
    assert "first-like" in UserCRUD(store).get_profile("bob")["achievements"]


def test_liking_own_post_does_not_notify(posts, members, store):
    alice, _ = members
    post = posts.approve(posts.create_post(alice, "hello")["id"], "mod")
    posts.toggle_like(post["id"], alice)
    assert [n for n in NotificationCRUD(store).list_for_user("alice") if n["type"] == "like"] == []


def test_comments_keep_the_counter(posts, members, store):
    alice, bob = members
    post = posts.approve(posts.create_post(alice, "hello")["id"], "mod")

    comment = posts.add_comment(post["id"], bob, " nice ")
    assert comment["content"] == "nice"
    assert posts.get_post(post["id"])["comments_count"] == 1
    assert [c["id"] for c in posts.list_comments(post["id"])] == [comment["id"]]

    with pytest.raises(AuthorizationError):
        posts.delete_comment(post["id"], comment["id"], "alice")
    posts.delete_comment(post["id"], comment["id"], "bob")
    assert posts.get_post(post["id"])["comments_count"] == 0
    assert posts.list_comments(post["id"]) == []

    assert "first-comment" in UserCRUD(store).get_profile("bob")["achievements"]
    assert any(n["type"] == "comment" for n in NotificationCRUD(store).list_for_user("alice"))


def test_delete_post_cascades(posts, members, store):
    alice, bob = members
    post = posts.approve(posts.create_post(alice, "hello")["id"], "mod")
    posts.add_comment(post["id"], bob, "first")

    with pytest.raises(AuthorizationError):
        posts.delete_post(post["id"], "bob")
    posts.delete_post(post["id"], "bob", is_moderator=True)

    assert not posts.exists(post["id"])
    assert store.collection("posts").document(post["id"]).collection("comments").get() == []


def test_delete_post_removes_image(members, store, tmp_path):
    from app.services.storage import LocalFileStorage

    storage = LocalFileStorage(str(tmp_path / "img"), 1024)
    posts = PostCRUD(store, storage)
    image = storage.upload_image("posts", "alice", b"\x89PNG....", "image/png")
    post = posts.create_post(members[0], "with picture", image=image)
    assert post["image_url"].startswith("/uploads/posts/alice/")

    posts.delete_post(post["id"], "alice")
    assert not (tmp_path / "img" / image["path"]).exists()


def test_admin_edit(posts, members):
    post = posts.create_post(members[0], "typo")
    assert posts.admin_edit(post["id"], "fixed")["content"] == "fixed"
    with pytest.raises(ValidationError):
        posts.admin_edit(post["id"], "  ")


def test_blank_comment_is_rejected(posts, members):
    alice, bob = members
    post = posts.approve(posts.create_post(alice, "hello")["id"], "mod")
    with pytest.raises(ValidationError):
        posts.add_comment(post["id"], bob, "   ")
    assert posts.get_post(post["id"])["comments_count"] == 0
    assert posts.list_comments(post["id"]) == []


def test_delete_post_with_many_comments(members, store, tmp_path):
    from app.services.storage import LocalFileStorage

    storage = LocalFileStorage(str(tmp_path / "img"), 1024)
    posts = PostCRUD(store, storage)
    image = storage.upload_image("posts", "alice", b"\x89PNG....", "image/png")
    post = posts.create_post(members[0], "popular", image=image)
    comments = store.collection("posts").document(post["id"]).collection("comments")
    for i in range(501):
        comments.document(f"c{i}").set({"author_id": "bob", "content": str(i)})

    posts.delete_post(post["id"], "alice")

    assert comments.get() == []
    assert not posts.exists(post["id"])
    assert not (tmp_path / "img" / image["path"]).exists()


def test_audio_storage_accepts_voice_notes_only(tmp_path):
    from app.services.storage import LocalFileStorage

    storage = LocalFileStorage(str(tmp_path / "media"), 16)
    note = storage.upload_audio("alice", b"voice", "audio/webm;codecs=opus")
    assert note["path"].startswith("audio/alice/")
    assert note["path"].endswith(".webm")
    assert storage.upload_audio("alice", b"voice", "audio/mp4")["path"].endswith(".m4a")

    with pytest.raises(ValidationError):
        storage.upload_audio("alice", b"\x89PNG", "image/png")
    with pytest.raises(ValidationError):
        storage.upload_audio("alice", b"x" * 17, "audio/webm")
