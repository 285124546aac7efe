from pydantic_settings import BaseSettings
from typing import List, Any
import json


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_categories(v: Any) -> List[str]:
    """Parse attribute categories from string or list, keeping declaration order"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        categories: List[str] = []
        for item in v.split(','):
            item = item.strip()
            if item and item not in categories:
                categories.append(item)
        return categories
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "DepMatrix"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # Base URL used when building share links for a matrix
    PUBLIC_BASE_URL: str = "http://localhost:3000"

    # ==========================================
    # Persistence Service (external REST backend)
    # ==========================================
    PERSISTENCE_API_URL: str = "http://localhost:5000"
    PERSISTENCE_TIMEOUT: float = 30.0  # seconds
    PERSISTENCE_CONNECT_TIMEOUT: float = 10.0  # seconds

    # "remote" talks to PERSISTENCE_API_URL, "memory" keeps records in-process
    STORAGE_MODE: str = "remote"

    # ==========================================
    # Authentication (session tokens issued by this service)
    # ==========================================
    # The server refuses to start with the placeholder; offline CLI commands don't need it
    JWT_SECRET_KEY: str = "CHANGE_ME"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours

    # ==========================================
    # Matrix defaults
    # ==========================================
    MATRIX_CATEGORIES_STR: str = "Technical/Ops,Safety,Economy,other"
    DEFAULT_CATEGORY: str = "Technical/Ops"

    @property
    def MATRIX_CATEGORIES(self) -> List[str]:
        """Parse attribute categories from comma-separated string"""
        return parse_categories(self.MATRIX_CATEGORIES_STR)

    # ==========================================
    # History
    # ==========================================
    HISTORY_PAGE_SIZE: int = 20
    HISTORY_MAX_PAGE_SIZE: int = 100

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Create settings instance
settings = Settings()
