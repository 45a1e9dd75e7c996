"""Back-office aggregates over users, products and purchases."""

from datetime import datetime, timedelta, timezone

from app.crud.admin import AdminStatsCRUD
from app.crud.base import today_iso


def _seed_users(store):
    base = datetime(2026, 3, 1, tzinfo=timezone.utc)
    yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).date().isoformat()
    rows = [
        ("u1", 1, "bronze", today_iso()),
        ("u2", 2, "bronze", today_iso()),
        ("u3", 2, "silver", yesterday),
        ("u4", 3, "silver", None),
        ("u5", 1, "bronze", None),
        ("u6", 4, "gold", None),
    ]
    for day, (uid, level, rank, last_active) in enumerate(rows):
        store.collection("users").document(uid).set(
            {
                "display_name": uid.upper(),
                "email": f"{uid}@example.com",
                "level": level,
                "rank": rank,
                "last_active_date": last_active,
                "created_at": base + timedelta(days=day),
            }
        )


def test_stats_aggregates_points_activity_and_levels(store):
    _seed_users(store)
    store.collection("products").document("curso").set({"name": "Curso", "price": 100})
    store.collection("purchases").add({"uid": "u1", "product_id": "curso", "price": 100})
    store.collection("purchases").add({"uid": "u2", "product_id": "curso", "price": 250})

    stats = AdminStatsCRUD(store).stats()

    assert stats["total_users"] == 6
    assert stats["total_products"] == 1
    assert stats["total_purchases"] == 2
    assert stats["total_points_spent"] == 350
    assert stats["active_today"] == 2
    # 13 / 6 = 2.1666...
    assert stats["average_level"] == 2.2
    assert stats["rank_distribution"] == {
        "bronze": 3,
        "silver": 2,
        "gold": 1,
        "platinum": 0,
        "diamond": 0,
    }


def test_stats_lists_five_most_recent_users_newest_first(store):
    _seed_users(store)

    recent = AdminStatsCRUD(store).stats()["recent_users"]

    assert [u["uid"] for u in recent] == ["u6", "u5", "u4", "u3", "u2"]
    assert recent[0]["display_name"] == "U6"
    assert recent[0]["level"] == 4
    assert recent[0]["rank"] == "gold"


def test_stats_on_empty_store(store):
    stats = AdminStatsCRUD(store).stats()

    assert stats["total_users"] == 0
    assert stats["average_level"] == 0
    assert stats["recent_users"] == []
    assert set(stats["rank_distribution"].values()) == {0}
