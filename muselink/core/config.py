"""
Application configuration.
All settings are loaded from environment variables (or a local .env file).
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    IMPORTANT: Credentials have no defaults - they MUST be set in .env file.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    # CORS: comma-separated origins. Empty = default list in main.py.
    cors_origins: str = ""

    # ===========================================
    # DATABASE (PostgreSQL, SQLite for local runs)
    # ===========================================
    database_url: str  # Required, no default
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_recycle: int = 1800  # recycle connections every 30 min (avoid stale)
    db_connect_timeout: int = 5
    # How long an unlock may wait for a contended row lock before giving up.
    db_lock_timeout_ms: int = 5000
    sqlite_busy_timeout_seconds: float = 30.0

    # ===========================================
    # AUTH (JWT issued by the identity service)
    # ===========================================
    jwt_secret_key: str  # Required, no default
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 60 * 24

    # ===========================================
    # PAYMENTS (credit top-ups)
    # ===========================================
    # Shared secret sent by the payment processor hook in X-Webhook-Secret.
    payments_webhook_secret: str | None = None

    # ===========================================
    # REQUESTS & UNLOCKS
    # ===========================================
    default_request_quota: int = 3
    max_request_quota: int = 20
    # True: a request closes automatically once unlocks reach its quota.
    # False: quota is still enforced, the client closes the request by hand.
    close_request_on_quota: bool = True

    # ===========================================
    # LOGGING
    # ===========================================
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """Ensure JWT secret is reasonably secure."""
        if len(v) < 16:
            raise ValueError("jwt_secret_key must be at least 16 characters")
        return v

    @field_validator("default_request_quota", "max_request_quota")
    @classmethod
    def validate_quota(cls, v: int) -> int:
        if v < 1:
            raise ValueError("request quota must be a positive integer")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
