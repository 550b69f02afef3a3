"""Application configuration via Pydantic Settings."""

from pathlib import Path
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Data locations
    DATA_DIR: Path = Path("data")
    STORE_CONFIG_FILE: Optional[Path] = None

    # Logging
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Browser
    BROWSER_HEADLESS: bool = True
    NAVIGATION_TIMEOUT_MS: int = 30000
    ANTIBOT_TIMEOUT_MS: int = 30000
    CONTENT_TIMEOUT_MS: int = 15000
    SETTLE_DELAY_MS: int = 2000
    DEFAULT_WAIT_MS: int = 4000

    # Image hosting (cloudinary://<api_key>:<api_secret>@<cloud_name>)
    CLOUDINARY_URL: str = ""
    IMAGE_TIMEOUT_SECONDS: float = 15.0

    @model_validator(mode="after")
    def drop_placeholder_cloudinary(self) -> "Settings":
        """Template placeholders such as ``cloudinary://your_key...`` mean "not configured"."""
        if "your_" in self.CLOUDINARY_URL:
            self.CLOUDINARY_URL = ""
        return self

    @property
    def products_dir(self) -> Path:
        return self.DATA_DIR / "products"

    @property
    def inventory_dir(self) -> Path:
        return self.DATA_DIR / "inventory"

    @property
    def index_path(self) -> Path:
        return self.DATA_DIR / "index.json"

    @property
    def queue_path(self) -> Path:
        return self.DATA_DIR / "queue.txt"

    @property
    def done_path(self) -> Path:
        return self.DATA_DIR / "queue-done.txt"


settings = Settings()
