"""
Base CRUD Class
Base class for Firestore CRUD operations.
"""

import re
import unicodedata
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

import pydantic
from google.api_core.exceptions import NotFound
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter

from app.utils.exceptions import NotFoundError, ValidationError

M = TypeVar("M", bound=pydantic.BaseModel)

# Firestore caps a write batch at 500 operations.
BATCH_LIMIT = 500


def today_iso() -> str:
    """Current UTC day as YYYY-MM-DD, the key used for daily documents."""
    return datetime.now(timezone.utc).date().isoformat()


def yesterday_iso(day: Optional[str] = None) -> str:
    base = date.fromisoformat(day) if day else datetime.now(timezone.utc).date()
    return (base - timedelta(days=1)).isoformat()


def slugify(text: str) -> str:
    """Lower-case ASCII id built from a title, e.g. 'Visite a Loja!' -> 'visite-a-loja'."""
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode()
    return re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")


def snapshot_to_dict(doc) -> Dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


def build_model(model_cls: Type[M], **fields) -> M:
    """Instantiate a document model, turning pydantic errors into ValidationError."""
    try:
        return model_cls(**fields)
    except pydantic.ValidationError as e:
        errors = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
        message = errors[0]["msg"] if errors else "Validation failed"
        raise ValidationError(message, details={"errors": errors}) from e


class BaseCRUD(ABC):
    """
    Base CRUD class for Firestore operations.

    Works against the real Firestore client and the LocalStore alike.
    """

    def __init__(self, db):
        """
        Initialize CRUD with a Firestore-compatible client.

        Args:
            db: Firestore client or LocalStore instance
        """
        self.db = db

    @property
    @abstractmethod
    def collection_name(self) -> str:
        """Get collection name. Must be implemented by subclass."""
        pass

    def get_collection(self, name: Optional[str] = None) -> Any:
        """
        Get Firestore collection reference.

        Args:
            name: Collection to use instead of this CRUD's own

        Returns:
            Firestore collection reference
        """
        return self.db.collection(name or self.collection_name)

    @staticmethod
    def where(query, field: str, op: str, value: Any):
        return query.where(filter=FieldFilter(field, op, value))

    def create(self, data: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        """
        Create a new document.

        Args:
            data: Document data dictionary
            doc_id: Fixed id; generated when omitted

        Returns:
            Created document ID
        """
        data["created_at"] = firestore.SERVER_TIMESTAMP
        doc_ref = self.get_collection().document(doc_id) if doc_id else self.get_collection().document()
        doc_ref.set(data)
        return doc_ref.id

    def get_by_id(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Get document by ID.

        Returns:
            Document data or None if not found
        """
        doc = self.get_collection().document(doc_id).get()
        if doc.exists:
            return snapshot_to_dict(doc)
        return None

    def require(self, doc_id: str, label: str = "Resource") -> Dict[str, Any]:
        """Get document by ID or raise NotFoundError."""
        data = self.get_by_id(doc_id)
        if data is None:
            raise NotFoundError(f"{label} not found", details={"id": doc_id})
        return data

    def update(self, doc_id: str, data: Dict[str, Any]) -> None:
        """
        Update a document.

        Raises:
            NotFoundError: If the document does not exist
        """
        data["updated_at"] = firestore.SERVER_TIMESTAMP
        try:
            self.get_collection().document(doc_id).update(data)
        except NotFound as e:
            raise NotFoundError("Resource not found", details={"id": doc_id}) from e

    def delete(self, doc_id: str) -> None:
        self.get_collection().document(doc_id).delete()

    def write_in_batches(self, refs: List[Any], update: Optional[Dict[str, Any]] = None) -> int:
        """
        Update (or delete, when no update is given) documents, BATCH_LIMIT per commit.

        Returns:
            Number of documents written
        """
        for start in range(0, len(refs), BATCH_LIMIT):
            batch = self.db.batch()
            for ref in refs[start:start + BATCH_LIMIT]:
                if update is None:
                    batch.delete(ref)
                else:
                    batch.update(ref, update)
            batch.commit()
        return len(refs)

    def list(
        self,
        filters: Optional[List[tuple]] = None,
        page: int = 1,
        page_size: int = 10,
        order_by: Optional[str] = None,
        direction: str = firestore.Query.ASCENDING,
    ) -> Dict[str, Any]:
        """
        List documents with filtering and pagination.

        Args:
            filters: List of (field, operator, value) tuples for filtering
            page: Page number (1-indexed)
            page_size: Items per page
            order_by: Field to order results by
            direction: Sort direction (ASCENDING or DESCENDING)

        Returns:
            Dictionary with items, total count, pagination info
        """
        query = self.get_collection()

        if filters:
            for field, operator, value in filters:
                query = self.where(query, field, operator, value)

        total = len(query.get())

        if order_by:
            query = query.order_by(order_by, direction=direction)

        offset = (page - 1) * page_size
        docs = query.offset(offset).limit(page_size).get()

        return {
            "items": [snapshot_to_dict(doc) for doc in docs],
            "total": total,
            "page": page,
            "page_size": page_size,
            "has_more": (page * page_size) < total,
        }

    def count(self, filters: Optional[List[tuple]] = None) -> int:
        """
        Count documents matching filters.

        Args:
            filters: List of (field, operator, value) tuples for filtering

        Returns:
            Count of matching documents
        """
        query = self.get_collection()

        if filters:
            for field, operator, value in filters:
                query = self.where(query, field, operator, value)

        return len(query.get())

    def exists(self, doc_id: str) -> bool:
        return self.get_collection().document(doc_id).get().exists
