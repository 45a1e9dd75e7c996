"""
Configuration module for the LaCasa backend.
Loads settings from .env file and environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

# Try to load .env file
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip().strip('"').strip("'")
                if key and key not in os.environ:
                    os.environ[key] = value


class Settings:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        self.app_name: str = os.getenv("APP_NAME", "LaCasa")
        self.api_version: str = os.getenv("API_VERSION", "v1")
        self.debug: bool = os.getenv("DEBUG", "true").lower() in ("true", "1", "yes")
        self.environment: str = os.getenv("ENVIRONMENT", "development")

        # Firebase
        self.firebase_credentials_path: str = os.getenv("FIREBASE_CREDENTIALS_PATH", "")
        self.storage_bucket: str = os.getenv("STORAGE_BUCKET", "")

        # CORS
        cors_raw = os.getenv("CORS_ORIGINS", "*")
        self.cors_origins: List[str] = [s.strip() for s in cors_raw.split(",")]

        # Local dev store. Empty DATA_DIR keeps everything in memory.
        data_dir = os.getenv("DATA_DIR", "./data")
        self.data_dir: Optional[str] = data_dir or None
        self.upload_dir: str = os.getenv("UPLOAD_DIR", "./uploads")

        # Uploads
        self.max_image_bytes: int = int(os.getenv("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))

        # Community
        self.presence_window_seconds: int = int(os.getenv("PRESENCE_WINDOW_SECONDS", "60"))
        self.chat_history_limit: int = int(os.getenv("CHAT_HISTORY_LIMIT", "100"))

        # Security
        self.secret_key: str = os.getenv("SECRET_KEY", "lacasa-dev-secret")
        self.algorithm: str = os.getenv("ALGORITHM", "HS256")
        self.access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
        self.admin_api_key: str = os.getenv("ADMIN_API_KEY", "")


_settings = None


def get_settings() -> Settings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
