"""
Application configuration using environment variables.
"""
import secrets
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Blogline API"
    debug: bool = False
    environment: str = "development"

    # Identity tokens issued by the external auth provider
    auth_jwt_secret: str = secrets.token_urlsafe(32)
    auth_jwt_public_key: Optional[str] = None
    auth_jwt_algorithm: str = "HS256"
    auth_issuer: Optional[str] = None
    auth_audience: Optional[str] = None

    # Database
    database_url: str = "sqlite:///./blogline.db"

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    # Rate limiting
    mutation_rate_limit: str = "30/minute"

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Categories are shared taxonomy; no owner column
    category_mutation_requires_role: Literal["any-authenticated", "admin-only"] = "any-authenticated"
    admin_user_ids: List[str] = []

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "BLOGLINE_"
        case_sensitive = False

    @property
    def verification_key(self) -> str:
        """Key used to verify identity tokens for the configured algorithm."""
        if self.auth_jwt_algorithm.startswith("HS"):
            return self.auth_jwt_secret
        if not self.auth_jwt_public_key:
            raise ValueError(
                f"BLOGLINE_AUTH_JWT_PUBLIC_KEY is required for {self.auth_jwt_algorithm}"
            )
        return self.auth_jwt_public_key


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Validate token settings on startup
settings = get_settings()
if settings.environment == "production":
    if "auth_jwt_secret" not in settings.model_fields_set and settings.auth_jwt_algorithm.startswith("HS"):
        raise ValueError(
            "BLOGLINE_AUTH_JWT_SECRET must be set in production to the provider's signing secret."
        )
    settings.verification_key  # raises when an asymmetric key is missing
