from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from functools import lru_cache


# Secrets that must never reach production
WEAK_SECRET_KEYS = {
    "secret",
    "changeme",
    "change-me",
    "password",
    "development",
    "development-secret-key-change-in-production",
    "your-secret-key",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/logoz_quotes"

    @field_validator('DATABASE_URL', mode='before')
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert postgresql:// to postgresql+asyncpg:// for async support."""
        if v and v.startswith('postgresql://'):
            return v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    # Auth
    SECRET_KEY: str = "development-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120

    # CORS
    FRONTEND_URL: str = "http://localhost:3000"

    # Customer-facing links (quote and artwork approval pages)
    PUBLIC_BASE_URL: str = "http://localhost:3000"

    # Branding used in outgoing emails
    SITE_NAME: str = "Logoz Custom"
    CONTACT_EMAIL: str | None = None
    CONTACT_PHONE: str | None = None

    # Email (Brevo)
    BREVO_API_KEY: str | None = None
    EMAIL_FROM_ADDRESS: str = "quotes@logozcustom.com"
    EMAIL_FROM_NAME: str = "Logoz Custom"

    # Error tracking
    SENTRY_DSN: str | None = None
    VERSION: str = "1.0.0"

    # Rate limits (requests per window, keyed by client IP)
    LOGIN_RATE_LIMIT: int = 5
    LOGIN_RATE_WINDOW_SECONDS: int = 900
    PUBLIC_RATE_LIMIT: int = 30
    PUBLIC_RATE_WINDOW_SECONDS: int = 60

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

    @model_validator(mode="after")
    def validate_production_secrets(self) -> "Settings":
        """Refuse to boot production with a guessable signing key."""
        if self.ENVIRONMENT == "production":
            if self.SECRET_KEY.lower() in WEAK_SECRET_KEYS:
                raise ValueError("SECRET_KEY uses a known weak value")
            if len(self.SECRET_KEY) < 32:
                raise ValueError("SECRET_KEY must be at least 32 characters in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def DOCS_ENABLED(self) -> bool:
        """API docs are only served outside production."""
        return not self.is_production

    @property
    def sqlalchemy_echo(self) -> bool:
        # SECURITY: never echo SQL (and bound parameters) in production
        return self.DEBUG and not self.is_production


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
