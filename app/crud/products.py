"""
Store CRUD Operations
Products bought with points, purchases, access delivery and product reviews.
"""

from typing import Any, Dict, List, Optional

from google.cloud import firestore

from app.crud.activity import ActivityTracker
from app.crud.base import BaseCRUD, build_model, slugify, snapshot_to_dict
from app.crud.notifications import NotificationCRUD
from app.crud.user import UserCRUD
from app.models.collections import COLLECTION_PRODUCT_REVIEWS, COLLECTION_PRODUCTS, COLLECTION_PURCHASES
from app.models.store import ProductModel, ProductReviewModel, PurchaseModel
from app.services.progression import rank_at_least
from app.utils.exceptions import (
    AuthorizationError,
    ConflictError,
    InsufficientPointsError,
    NotFoundError,
    ValidationError,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

ACCESS_FIELDS = ("link", "credentials", "instructions")


class ProductCRUD(BaseCRUD):
    """CRUD operations for the product catalogue and purchases."""

    def __init__(self, db):
        super().__init__(db)
        self.users = UserCRUD(db)
        self.notifications = NotificationCRUD(db)
        self.activity = ActivityTracker(db)

    @property
    def collection_name(self) -> str:
        return COLLECTION_PRODUCTS

    # ── Catalogue ───────────────────────────────────────────────

    def list_products(self, category: Optional[str] = None, include_unavailable: bool = False) -> List[Dict[str, Any]]:
        """Products with featured ones first, then by name."""
        query = self.get_collection()
        if category:
            query = self.where(query, "category", "==", category)
        products = [snapshot_to_dict(doc) for doc in query.get()]
        if not include_unavailable:
            products = [p for p in products if p.get("available", True)]
        return sorted(products, key=lambda p: (not p.get("featured", False), p.get("name", "").lower()))

    def get_product(self, product_id: str) -> Dict[str, Any]:
        return self.require(product_id, "Product")

    def create_product(self, data: Dict[str, Any], notify: bool = True) -> Dict[str, Any]:
        """
        Add a product; its id is the slug of its name.

        Every member is notified of the new product unless ``notify`` is False.

        Raises:
            ConflictError: If a product with the same slug exists.
        """
        product = build_model(ProductModel, **data)
        product_id = slugify(product.name)
        if not product_id:
            raise ValidationError("Name must contain letters or digits")
        if self.exists(product_id):
            raise ConflictError("Product already exists", details={"id": product_id})

        self.create(product.to_dict(), doc_id=product_id)
        logger.info(f"Product created: {product_id}")

        if notify and product.available:
            try:
                self.notifications.notify_all_users(
                    "new_product",
                    title="Novo produto na loja!",
                    message=f"{product.name} chegou por {product.price} pontos.",
                    product_id=product_id,
                    product_price=product.price,
                )
            except Exception as e:
                logger.error(f"New product fan-out failed for {product_id}: {e}")
        return self.get_product(product_id)

    def update_product(self, product_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        current = self.get_product(product_id)
        merged = {k: v for k, v in current.items() if k in ProductModel.model_fields}
        merged.update(data)
        product = build_model(ProductModel, **merged)
        self.update(product_id, product.to_dict())
        return self.get_product(product_id)

    def delete_product(self, product_id: str) -> None:
        self.get_product(product_id)
        self.delete(product_id)
        logger.info(f"Product deleted: {product_id}")

    # ── Purchases ───────────────────────────────────────────────

    def purchase(self, uid: str, product_id: str) -> Dict[str, Any]:
        """
        Buy a product with points.

        Raises:
            ValidationError: Product unavailable or out of stock.
            AuthorizationError: User's rank is below the product's required rank.
            InsufficientPointsError: Not enough points.

        Returns:
            Dict with the ``purchase`` record and the user's ``remaining_points``.
        """
        product = self.get_product(product_id)
        profile = self.users.get_profile(uid)
        price = product.get("price", 0)

        if not product.get("available", True):
            raise ValidationError("Product is not available", details={"id": product_id})
        required_rank = product.get("required_rank")
        if required_rank and not rank_at_least(profile.get("rank", "bronze"), required_rank):
            raise AuthorizationError(
                "Rank too low for this product",
                details={"required_rank": required_rank, "rank": profile.get("rank", "bronze")},
            )
        stock = product.get("stock")
        if stock is not None and stock <= 0:
            raise ValidationError("Product is out of stock", details={"id": product_id})
        if profile.get("points", 0) < price:
            raise InsufficientPointsError(
                "Not enough points",
                details={"required": price, "available": profile.get("points", 0)},
            )

        reward = self.users.apply_reward(uid, points=-price, check_achievements=False)
        if stock is not None:
            self.get_collection().document(product_id).update({"stock": firestore.Increment(-1)})

        record = build_model(
            PurchaseModel,
            user_id=uid,
            user_name=profile.get("display_name", ""),
            user_email=profile.get("email", ""),
            product_id=product_id,
            product_name=product.get("name", ""),
            price=price,
        ).to_dict()
        record["purchased_at"] = firestore.SERVER_TIMESTAMP
        purchase_id = self.create_purchase(record)

        logger.info(f"{uid} bought {product_id} for {price} points")
        self.activity.record(uid, "purchase")
        return {
            "purchase": self.get_purchase(purchase_id),
            "remaining_points": reward["points"],
        }

    def create_purchase(self, record: Dict[str, Any]) -> str:
        record["created_at"] = firestore.SERVER_TIMESTAMP
        ref = self.get_collection(COLLECTION_PURCHASES).document()
        ref.set(record)
        return ref.id

    def get_purchase(self, purchase_id: str) -> Dict[str, Any]:
        doc = self.get_collection(COLLECTION_PURCHASES).document(purchase_id).get()
        if not doc.exists:
            raise NotFoundError("Purchase not found", details={"id": purchase_id})
        return snapshot_to_dict(doc)

    def list_purchases(self, uid: Optional[str] = None) -> List[Dict[str, Any]]:
        """A user's purchases, or every purchase when ``uid`` is None; newest first."""
        query = self.get_collection(COLLECTION_PURCHASES)
        if uid is not None:
            query = self.where(query, "user_id", "==", uid)
        docs = query.order_by("purchased_at", direction=firestore.Query.DESCENDING).get()
        return [snapshot_to_dict(doc) for doc in docs]

    def has_purchased(self, uid: str, product_id: str) -> bool:
        query = self.where(self.get_collection(COLLECTION_PURCHASES), "user_id", "==", uid)
        return bool(self.where(query, "product_id", "==", product_id).limit(1).get())

    # ── Access delivery ─────────────────────────────────────────

    def request_access(self, uid: str, purchase_id: str, message: str = "") -> Dict[str, Any]:
        purchase = self.get_purchase(purchase_id)
        if purchase.get("user_id") != uid:
            raise AuthorizationError("Not your purchase")
        if purchase.get("access_delivered"):
            raise ConflictError("Access already delivered", details={"id": purchase_id})

        self.get_collection(COLLECTION_PURCHASES).document(purchase_id).update({
            "access_requested": True,
            "access_requested_at": firestore.SERVER_TIMESTAMP,
            "access_request_message": message.strip(),
        })
        return self.get_purchase(purchase_id)

    def deliver_access(self, purchase_id: str, access_data: Dict[str, Optional[str]]) -> Dict[str, Any]:
        """
        Attach access details to a purchase.

        Raises:
            ValidationError: If none of link, credentials or instructions is given.
        """
        self.get_purchase(purchase_id)
        cleaned = {k: (access_data.get(k) or "").strip() for k in ACCESS_FIELDS}
        if not any(cleaned.values()):
            raise ValidationError("Provide a link, credentials or instructions")

        self.get_collection(COLLECTION_PURCHASES).document(purchase_id).update({
            "access_delivered": True,
            "access_delivered_at": firestore.SERVER_TIMESTAMP,
            "access_data": cleaned,
        })
        logger.info(f"Access delivered for purchase {purchase_id}")
        return self.get_purchase(purchase_id)

    def list_access_requests(self, pending_only: bool = True) -> List[Dict[str, Any]]:
        docs = self.where(self.get_collection(COLLECTION_PURCHASES), "access_requested", "==", True).get()
        requests = [snapshot_to_dict(doc) for doc in docs]
        if pending_only:
            requests = [r for r in requests if not r.get("access_delivered")]
        return requests

    # ── Reviews ─────────────────────────────────────────────────

    def add_review(self, profile: Dict[str, Any], product_id: str, rating: int, comment: str = "") -> Dict[str, Any]:
        """
        Review a purchased product. One review per user and product.

        Raises:
            AuthorizationError: The user never bought the product.
            ConflictError: The user already reviewed it.
        """
        uid = profile["uid"]
        self.get_product(product_id)
        if not self.has_purchased(uid, product_id):
            raise AuthorizationError("Only buyers can review this product")

        review_id = f"{uid}_{product_id}"
        ref = self.get_collection(COLLECTION_PRODUCT_REVIEWS).document(review_id)
        if ref.get().exists:
            raise ConflictError("You already reviewed this product", details={"id": review_id})

        review = build_model(
            ProductReviewModel,
            product_id=product_id,
            user_id=uid,
            user_name=profile.get("display_name", ""),
            user_avatar=profile.get("photo_url"),
            rating=rating,
            comment=(comment or "").strip(),
        ).to_dict()
        review["created_at"] = firestore.SERVER_TIMESTAMP
        ref.set(review)
        return snapshot_to_dict(ref.get())

    def list_reviews(self, product_id: str) -> List[Dict[str, Any]]:
        docs = (
            self.where(self.get_collection(COLLECTION_PRODUCT_REVIEWS), "product_id", "==", product_id)
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .get()
        )
        return [snapshot_to_dict(doc) for doc in docs]

    def rating_summary(self, product_id: str) -> Dict[str, Any]:
        reviews = self.list_reviews(product_id)
        if not reviews:
            return {"average": 0.0, "count": 0}
        average = sum(r.get("rating", 0) for r in reviews) / len(reviews)
        return {"average": round(average, 1), "count": len(reviews)}
