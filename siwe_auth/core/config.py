from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    database_url: str
    store_timeout_seconds: float = 5.0

    # Session tokens
    jwt_secret: str
    jwt_alg: str = "HS256"
    session_max_age_days: int = 90
    session_cookie_name: str = "session-token"
    cookie_secure: bool = True

    # Redis (nonce store)
    redis_url: str = "redis://localhost:6379/0"

    # SIWE
    app_domain: str
    app_origin: str
    siwe_nonce_ttl_seconds: int = 300
    nonce_cookie_name: str = "siwe-nonce"

    # Handles
    handle_length: int = 6

    # Route guard
    protected_paths: List[str] = ["/profile", "/settings", "/dashboard"]
    landing_path: str = "/"

    # Avatars
    blob_root: str = "media"
    blob_public_base_url: str = "/media"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator("jwt_secret", "app_domain", "app_origin")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("handle_length")
    @classmethod
    def handle_length_in_range(cls, value: int) -> int:
        if value < 4 or value > 40:
            raise ValueError("handle_length must be between 4 and 40")
        return value
