from pydantic_settings import BaseSettings
from typing import List, Optional
from pathlib import Path

# Find .env file - check app/ directory first, then project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent
APP_ENV = BASE_DIR / "app" / ".env"
ROOT_ENV = BASE_DIR / ".env"

# Use app/.env if it exists, otherwise try root .env
env_file = str(APP_ENV) if APP_ENV.exists() else (str(ROOT_ENV) if ROOT_ENV.exists() else ".env")


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./membership.db"

    # Admin API bearer token; admin routes refuse every request when unset
    ADMIN_TOKEN: Optional[str] = None

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:4321", "http://127.0.0.1:4321"]

    # Membership rules
    IMPORT_ERROR_LIMIT: int = 10
    HONORARY_PRESIDENT_IS_ACTIVE_MEMBER: bool = True
    DEFAULT_ENROLLMENT_TRACK: str = "Autre"

    # Application
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    AUDIT_LOG_DIR: Optional[str] = None

    class Config:
        env_file = env_file
        case_sensitive = True


settings = Settings()

# Derived paths
LOGS_DIR = Path(settings.AUDIT_LOG_DIR) if settings.AUDIT_LOG_DIR else BASE_DIR / "logs"
