"""End-to-end checks through the HTTP and WebSocket surface."""

import pytest
from starlette.websockets import WebSocketDisconnect

from app.config import get_settings
from app.crud.notifications import NotificationCRUD


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_signup_login_and_me(client, signup):
    ana = signup()
    me = client.get("/api/v1/users/me", headers=ana["headers"])
    assert me.status_code == 200
    profile = me.json()["data"]
    assert profile["display_name"] == "Ana"
    assert profile["level"] == 1
    assert profile["achievements"] == ["welcome"]

    login = client.post("/api/v1/auth/login", json={"email": "ANA@example.com", "password": "secret123"})
    assert login.status_code == 200
    assert login.json()["data"]["profile"]["uid"] == ana["uid"]


def test_auth_errors_use_the_envelope(client, signup):
    signup()
    duplicate = client.post(
        "/api/v1/auth/signup", json={"email": "ana@example.com", "password": "secret123"}
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "CONFLICT"

    wrong = client.post("/api/v1/auth/login", json={"email": "ana@example.com", "password": "nope123"})
    assert wrong.status_code == 401

    anonymous = client.get("/api/v1/users/me")
    assert anonymous.status_code == 401
    assert anonymous.json() == {
        "success": False,
        "error": {"code": "AUTHENTICATION_ERROR", "message": "Authorization header missing", "details": {}},
    }

    forged = client.get("/api/v1/users/me", headers={"Authorization": "Bearer forged"})
    assert forged.status_code == 401

    missing = client.get("/api/v1/nowhere")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "HTTP_ERROR"

    short = client.post("/api/v1/auth/signup", json={"email": "x@example.com", "password": "123"})
    assert short.status_code == 422
    assert short.json()["error"]["code"] == "VALIDATION_ERROR"


def test_admin_routes_check_the_stored_role(client, signup, promote):
    ana = signup()
    assert client.get("/api/v1/admin/stats", headers=ana["headers"]).status_code == 403

    promote(ana["uid"], "moderator")
    assert client.get("/api/v1/admin/posts", headers=ana["headers"]).status_code == 200
    assert client.get("/api/v1/admin/stats", headers=ana["headers"]).status_code == 403

    promote(ana["uid"])
    assert client.get("/api/v1/admin/stats", headers=ana["headers"]).status_code == 200


def test_admin_setup_requires_the_key(client, signup, monkeypatch):
    ana = signup()
    body = {"user_id": ana["uid"]}

    monkeypatch.setattr(get_settings(), "admin_api_key", "")
    assert client.post("/api/v1/admin/setup", json=body, headers={"X-Admin-Key": "x"}).status_code == 503

    monkeypatch.setattr(get_settings(), "admin_api_key", "let-me-in")
    assert client.post("/api/v1/admin/setup", json=body, headers={"X-Admin-Key": "x"}).status_code == 403

    response = client.post("/api/v1/admin/setup", json=body, headers={"X-Admin-Key": "let-me-in"})
    assert response.status_code == 200
    assert response.json()["data"]["role"] == "admin"


def test_post_goes_through_moderation(client, signup, promote):
    admin = signup()
    promote(admin["uid"])
    bob = signup(email="bob@example.com", display_name="Bob")

    created = client.post("/api/v1/posts", data={"content": "Meu primeiro projeto"}, headers=bob["headers"])
    assert created.status_code == 201
    post = created.json()["data"]
    assert post["status"] == "pending"
    assert client.get("/api/v1/posts", headers=bob["headers"]).json()["data"] == []

    moderated = client.post(
        f"/api/v1/admin/posts/{post['id']}/moderate", json={"approve": True}, headers=admin["headers"]
    )
    assert moderated.status_code == 200
    feed = client.get("/api/v1/posts", headers=bob["headers"]).json()["data"]
    assert [p["id"] for p in feed] == [post["id"]]


def test_purchase_over_http(client, signup, promote):
    admin = signup()
    promote(admin["uid"])
    bob = signup(email="bob@example.com", display_name="Bob")

    created = client.post(
        "/api/v1/admin/products?notify=false", json={"name": "Mentoria", "price": 100}, headers=admin["headers"]
    )
    assert created.status_code == 201
    product_id = created.json()["data"]["id"]

    broke = client.post(f"/api/v1/store/products/{product_id}/purchase", headers=bob["headers"])
    assert broke.status_code == 402
    assert broke.json()["error"]["code"] == "INSUFFICIENT_POINTS"

    client.post(f"/api/v1/admin/users/{bob['uid']}/points", json={"points": 120}, headers=admin["headers"])
    bought = client.post(f"/api/v1/store/products/{product_id}/purchase", headers=bob["headers"])
    assert bought.status_code == 201
    assert bought.json()["data"]["remaining_points"] == 20


def test_notifications_stream(client, signup, store):
    ana = signup()
    url = f"/api/v1/realtime/notifications?token={ana['token']}"
    with client.websocket_connect(url) as websocket:
        assert websocket.receive_json() == {"notifications": [], "unread_count": 0}
        NotificationCRUD(store).notify(ana["uid"], "like", title="Curtida")
        update = websocket.receive_json()
        assert update["unread_count"] == 1
        assert update["notifications"][0]["title"] == "Curtida"


def test_stream_rejects_bad_tokens(client):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/api/v1/realtime/notifications?token=forged") as websocket:
            websocket.receive_json()
    assert excinfo.value.code == 1008


def test_passwords_past_the_bcrypt_limit_are_rejected(client, signup):
    too_long = client.post(
        "/api/v1/auth/signup", json={"email": "x@example.com", "password": "p" * 80, "display_name": "X"}
    )
    assert too_long.status_code == 422
    assert too_long.json()["error"]["code"] == "VALIDATION_ERROR"

    # 40 characters but 80 bytes once encoded
    wide = client.post(
        "/api/v1/auth/signup", json={"email": "y@example.com", "password": "é" * 40, "display_name": "Y"}
    )
    assert wide.status_code == 422

    signup()
    login = client.post("/api/v1/auth/login", json={"email": "ana@example.com", "password": "p" * 80})
    assert login.status_code == 401


def test_hash_password_refuses_more_than_72_bytes():
    from app.core.security import hash_password, verify_password
    from app.utils.exceptions import ValidationError

    with pytest.raises(ValidationError):
        hash_password("é" * 40)
    hashed = hash_password("p" * 72)
    assert verify_password("p" * 72, hashed)
    assert not verify_password("p" * 73, hashed)


def test_oversized_uploads_are_rejected(client, signup, store):
    ana = signup()
    big = b"\x89PNG" + b"0" * (1024 * 1024)

    chat = client.post(
        "/api/v1/chat/uploads", files={"image": ("big.png", big, "image/png")}, headers=ana["headers"]
    )
    assert chat.status_code == 422
    assert chat.json()["error"]["message"] == "Image too large"

    post = client.post(
        "/api/v1/posts",
        data={"content": "foto"},
        files={"image": ("big.png", big, "image/png")},
        headers=ana["headers"],
    )
    assert post.status_code == 422
    assert store.collection("posts").get() == []


def test_chat_audio_upload(client, signup):
    ana = signup()
    uploaded = client.post(
        "/api/v1/chat/uploads/audio",
        files={"audio": ("note.webm", b"\x1aE\xdf\xa3voice", "audio/webm")},
        headers=ana["headers"],
    )
    assert uploaded.status_code == 201
    audio = uploaded.json()["data"]
    assert audio["path"].startswith(f"audio/{ana['uid']}/")
    assert audio["path"].endswith(".webm")

    sent = client.post("/api/v1/chat/global", json={"content": "", "audio_url": audio["url"]}, headers=ana["headers"])
    assert sent.status_code == 201
    assert sent.json()["data"]["audio_url"] == audio["url"]

    wrong_type = client.post(
        "/api/v1/chat/uploads/audio",
        files={"audio": ("pic.png", b"\x89PNG....", "image/png")},
        headers=ana["headers"],
    )
    assert wrong_type.status_code == 422
