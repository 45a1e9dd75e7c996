"""
Local account CRUD Operations
Email/password accounts used in local development mode, where Firebase
Authentication is not available.
"""

import uuid
from typing import Any, Dict

from google.cloud import firestore

from app.core.security import create_access_token, hash_password, verify_password
from app.crud.base import BaseCRUD
from app.models.collections import COLLECTION_AUTH_ACCOUNTS
from app.utils.exceptions import AuthenticationError, ConflictError
from app.utils.logger import get_logger

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class LocalAccountCRUD(BaseCRUD):
    """Accounts at ``auth_accounts/{uid}`` holding a bcrypt password hash."""

    @property
    def collection_name(self) -> str:
        return COLLECTION_AUTH_ACCOUNTS

    def _by_email(self, email: str):
        docs = self.where(self.get_collection(), "email", "==", normalize_email(email)).limit(1).get()
        return docs[0] if docs else None

    def register(self, email: str, password: str) -> Dict[str, Any]:
        """
        Create an account.

        Returns:
            Dict with ``uid``, ``email`` and an access ``token``.

        Raises:
            ConflictError: If the email is already registered.
        """
        email = normalize_email(email)
        if self._by_email(email) is not None:
            raise ConflictError("Email already registered", details={"email": email})

        uid = uuid.uuid4().hex[:28]
        self.get_collection().document(uid).set({
            "email": email,
            "password_hash": hash_password(password),
            "created_at": firestore.SERVER_TIMESTAMP,
        })
        logger.info(f"Local account created: {uid}")
        return {"uid": uid, "email": email, "token": self.issue_token(uid, email)}

    def login(self, email: str, password: str) -> Dict[str, Any]:
        doc = self._by_email(email)
        if doc is None or not verify_password(password, doc.to_dict()["password_hash"]):
            raise AuthenticationError("Invalid email or password")
        return {"uid": doc.id, "email": doc.to_dict()["email"], "token": self.issue_token(doc.id, doc.to_dict()["email"])}

    @staticmethod
    def issue_token(uid: str, email: str) -> str:
        return create_access_token({"sub": uid, "email": email})

    def delete_account(self, uid: str) -> None:
        self.delete(uid)
