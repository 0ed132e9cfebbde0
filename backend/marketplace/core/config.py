"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment / .env"""

    # API Settings
    API_TITLE: str = "Marketplace API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Backend for the marketplace: suppliers, OTP verification and catalog"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = ""
    DB_POOL_MIN: int = 1
    DB_POOL_MAX: int = 10
    DB_CONNECT_TIMEOUT: int = 10  # seconds
    DB_STATEMENT_TIMEOUT_MS: int = 15000
    DB_CONNECT_RETRIES: int = 3
    DB_TRANSACTION_RETRIES: int = 3

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://yourdomain.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # JWT
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "MarketplaceApp"
    JWT_EXPIRATION_HOURS: int = 72

    # One-time passcodes
    OTP_TTL_MINUTES: int = 10
    OTP_MAX_ISSUES_PER_WINDOW: int = 3
    OTP_ISSUE_WINDOW_SECONDS: int = 600

    # WhatsApp (Wappi) messaging
    WAPPI_BASE_URL: str = "https://wappi.pro/api/sync"
    WAPPI_PROFILE_ID: str = ""
    WAPPI_API_KEY: str = ""
    WAPPI_TIMEOUT: float = 15.0
    WAPPI_RATE_PER_SECOND: float = 1.0
    WAPPI_BURST: int = 3

    # Object storage (Supabase Storage)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    STORAGE_BUCKET: str = "marketplace"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Catalog
    NEW_PRODUCT_STATUS_ID: int = 2
    DEFAULT_USER_ROLES: str = "supplier"

    def get_default_roles(self) -> List[str]:
        """Parse DEFAULT_USER_ROLES (comma-separated) into list"""
        return [role.strip() for role in self.DEFAULT_USER_ROLES.split(",") if role.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
