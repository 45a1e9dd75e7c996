"""Firebase Admin service: app initialisation, ID token checks, Firestore and Storage handles."""

from typing import Dict, Optional

import firebase_admin
from firebase_admin import auth, credentials, firestore, storage

from app.utils.exceptions import AuthenticationError
from app.utils.logger import get_logger

logger = get_logger(__name__)


class FirebaseService:
    """Wraps the Firebase Admin SDK for the parts of Firebase the backend talks to."""

    def __init__(self, credentials_path: str, storage_bucket: Optional[str] = None):
        self.credentials_path = credentials_path
        self.storage_bucket = storage_bucket
        self._initialized = False

    def initialize(self) -> None:
        """Initialize the default Firebase app if not already initialized."""
        if self._initialized:
            return

        try:
            if not firebase_admin._apps:
                cred = credentials.Certificate(self.credentials_path)
                options = {"storageBucket": self.storage_bucket} if self.storage_bucket else None
                firebase_admin.initialize_app(cred, options)
            self._initialized = True
            logger.info("Firebase initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Firebase: {str(e)}")
            raise

    def firestore_client(self):
        self.initialize()
        return firestore.client()

    def bucket(self):
        self.initialize()
        return storage.bucket()

    def verify_token(self, token: str) -> Dict:
        """Verify a Firebase ID token and return decoded claims.

        Raises:
            AuthenticationError: If the token is empty, expired or forged.
        """
        if not token:
            raise AuthenticationError("Token cannot be empty")
        self.initialize()

        try:
            decoded_token = auth.verify_id_token(token)
            logger.debug(f"Token verified for user: {decoded_token.get('uid')}")
            return decoded_token
        except Exception as e:
            logger.error(f"Token verification failed: {str(e)}")
            raise AuthenticationError(
                message="Invalid or expired token",
                details={"error": "VERIFICATION_FAILED"},
            ) from e

    def set_role_claim(self, uid: str, role: str) -> None:
        """Mirror the profile role into custom claims for client-side rules."""
        self.initialize()
        auth.set_custom_user_claims(uid, {"role": role})
        logger.info(f"Role claim set for user {uid}: {role}")

    def delete_user(self, uid: str) -> None:
        """Delete the Firebase Auth account. A missing account is not an error."""
        self.initialize()
        try:
            auth.delete_user(uid)
            logger.info(f"Auth account deleted: {uid}")
        except auth.UserNotFoundError:
            logger.warning(f"Auth account already gone: {uid}")


_firebase_service: Optional[FirebaseService] = None


def get_firebase_service(credentials_path: str, storage_bucket: Optional[str] = None) -> FirebaseService:
    """Get or create the singleton FirebaseService."""
    global _firebase_service
    if _firebase_service is None:
        _firebase_service = FirebaseService(credentials_path, storage_bucket)
    return _firebase_service
