"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 5

    # Header carrying the session token (Authorization: Bearer is also accepted)
    AUTH_HEADER: str = "x-auth-token"

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173"

    # Frontend (deep links in outbound email)
    FRONTEND_URL: str = "http://localhost:5173"

    # Ticket ids are dated in the portal's local timezone
    PORTAL_TIMEZONE: str = "Asia/Kolkata"
    TICKET_ID_MAX_ATTEMPTS: int = 5

    # Attachments
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5_000_000
    MAX_ATTACHMENTS_PER_REQUEST: int = 2

    # Status-change email (best-effort, via Resend)
    STATUS_EMAILS_ENABLED: bool = False
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "GRM Portal <no-reply@grm.local>"

    # Rate Limiting (requests per minute, 0 disables)
    RATE_LIMIT_API: int = 60
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    LOG_LEVEL: str = "INFO"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def status_emails_configured(self) -> bool:
        return self.STATUS_EMAILS_ENABLED and bool(self.RESEND_API_KEY)


settings = Settings()
