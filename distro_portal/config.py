"""Configuration management from environment variables."""
import os
import re
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"


def normalize_environment(value: str | None) -> str:
    """Map APP_ENV aliases onto development, staging or production."""
    normalized = str(value or "").strip().lower()
    if normalized in ("prod", "production"):
        return "production"
    if normalized in ("stage", "staging"):
        return "staging"
    return "development"


def normalize_api_url(raw: str | None) -> str:
    """
    Normalize the backend base URL.
    Relative paths are kept as-is; absolute URLs get an /api suffix if missing.
    """
    url = (raw or "/api").strip().rstrip("/")
    if url.startswith("/"):
        return url
    if re.search(r"/api$", url, re.IGNORECASE):
        return url
    return f"{url}/api"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    APP_ENV: str = normalize_environment(os.getenv("APP_ENV") or os.getenv("NODE_ENV"))

    # Backend
    API_BASE_URL: str = normalize_api_url(os.getenv("API_BASE_URL") or os.getenv("VITE_API_URL"))
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "10"))

    # Credentials
    AUTH_TOKEN: str | None = os.getenv("AUTH_TOKEN")
    USERNAME: str | None = os.getenv("PORTAL_USERNAME")
    PASSWORD: str | None = os.getenv("PORTAL_PASSWORD")
    LOGIN_AS_ADMIN: bool = _env_bool("LOGIN_AS_ADMIN")

    # Lists
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))

    # Receipts
    RECEIPT_LOG: Path = Path(os.getenv("RECEIPT_LOG", str(DATA_DIR / "receipts.jsonl")))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def is_production_like(cls) -> bool:
        return cls.APP_ENV in ("staging", "production")

    @classmethod
    def validate(cls, require_credentials: bool = True) -> None:
        """Validate required configuration."""
        errors = []
        if not cls.API_BASE_URL.lower().startswith(("http://", "https://")):
            errors.append("API_BASE_URL must be an absolute http(s) URL")
        if require_credentials and not cls.AUTH_TOKEN:
            if not cls.USERNAME or not cls.PASSWORD:
                errors.append("Either AUTH_TOKEN or PORTAL_USERNAME/PORTAL_PASSWORD is required")
        if cls.DEFAULT_PAGE_SIZE <= 0:
            errors.append("DEFAULT_PAGE_SIZE must be positive")
        if cls.REQUEST_TIMEOUT <= 0:
            errors.append("REQUEST_TIMEOUT must be positive")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
