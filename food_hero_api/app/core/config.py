"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with a local SQLite database and a local image
directory.  In a production deployment override them via environment
variables; each field names the variable it reads.
"""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = field(default_factory=lambda: os.getenv("PROJECT_NAME", "Food Hero API"))
    api_version: str = field(default_factory=lambda: os.getenv("API_VERSION", "1.0.0"))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", ""))
    server_log_level: str = field(default_factory=lambda: os.getenv("SERVER_LOG_LEVEL", ""))
    secret_key: str = field(default_factory=lambda: os.getenv("SECRET_KEY", "change_me"))
    access_token_expire_minutes: int = field(
        default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))
    )

    # Path to the SQLite database file.  Relative paths are resolved
    # against the project root by ``core.db``.
    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "food_hero.db"))
    # Seconds a connection waits on a locked database before failing.
    db_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("DB_TIMEOUT_SECONDS", "5")))

    # ``local`` stores uploads on disk, ``cloudinary`` sends them to
    # Cloudinary using the credentials below.
    image_backend: str = field(default_factory=lambda: os.getenv("IMAGE_BACKEND", "local"))
    image_dir: str = field(default_factory=lambda: os.getenv("IMAGE_DIR", "uploads"))
    image_base_url: str = field(default_factory=lambda: os.getenv("IMAGE_BASE_URL", "/uploads"))
    cloudinary_cloud_name: str = field(default_factory=lambda: os.getenv("CLOUDINARY_CLOUD_NAME", ""))
    cloudinary_api_key: str = field(default_factory=lambda: os.getenv("CLOUDINARY_API_KEY", ""))
    cloudinary_api_secret: str = field(default_factory=lambda: os.getenv("CLOUDINARY_API_SECRET", ""))
    cloudinary_folder: str = field(
        default_factory=lambda: os.getenv("CLOUDINARY_FOLDER", "phuket_food_hero_waste_images")
    )

    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))

    @classmethod
    def from_env(cls) -> "Settings":
        """Build a fresh ``Settings`` from the current environment."""
        return cls()


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Tests build their own
# instance and pass it to ``create_app``.
settings = Settings()
