"""
Admin statistics.
Aggregates over users, products and purchases for the back office.
"""

from typing import Any, Dict

from app.crud.base import BaseCRUD, snapshot_to_dict, today_iso
from app.models.collections import COLLECTION_PRODUCTS, COLLECTION_PURCHASES, COLLECTION_USERS
from app.services.progression import RANK_ORDER

RECENT_USERS = 5


class AdminStatsCRUD(BaseCRUD):
    """Read-only aggregates for the admin dashboard."""

    @property
    def collection_name(self) -> str:
        return COLLECTION_USERS

    def stats(self) -> Dict[str, Any]:
        users = [snapshot_to_dict(doc) for doc in self.get_collection().get()]
        purchases = [doc.to_dict() for doc in self.get_collection(COLLECTION_PURCHASES).get()]
        products = self.get_collection(COLLECTION_PRODUCTS).get()

        today = today_iso()
        rank_distribution = {rank: 0 for rank in RANK_ORDER}
        for user in users:
            rank = user.get("rank", "bronze")
            rank_distribution[rank] = rank_distribution.get(rank, 0) + 1

        average_level = sum(u.get("level", 1) for u in users) / len(users) if users else 0
        recent = sorted(
            (u for u in users if u.get("created_at") is not None),
            key=lambda u: u["created_at"],
            reverse=True,
        )[:RECENT_USERS]

        return {
            "total_users": len(users),
            "total_products": len(products),
            "total_purchases": len(purchases),
            "total_points_spent": sum(p.get("price", 0) for p in purchases),
            "active_today": sum(1 for u in users if u.get("last_active_date") == today),
            "average_level": round(average_level, 1),
            "rank_distribution": rank_distribution,
            "recent_users": [
                {
                    "uid": u["id"],
                    "display_name": u.get("display_name"),
                    "email": u.get("email"),
                    "level": u.get("level", 1),
                    "rank": u.get("rank", "bronze"),
                    "created_at": u.get("created_at"),
                }
                for u in recent
            ],
        }
