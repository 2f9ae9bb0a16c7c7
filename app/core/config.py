from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]
DEFAULT_SECRET_KEY = "change-this-secret-key-in-production"
MIN_SECRET_LENGTH = 32


def _split_csv(value: Any) -> list[str]:
    """Accept a comma-separated string or a list-like and drop blank items."""
    if value is None or value == "":
        return []

    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        parts = [str(part) for part in value]
    else:
        return []

    return [part.strip() for part in parts if part.strip()]


class Settings(BaseSettings):
    """Application settings, read from the environment and ``.env``."""

    # Application
    APP_NAME: str = "Blipzo"
    ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    ALLOWED_HOSTS: list[str] = Field(default_factory=lambda: DEFAULT_ALLOWED_HOSTS.copy())

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./blipzo.db"

    # Tokens and cookies
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    REFRESH_SECRET_KEY: str = ""
    ACCESS_TOKEN_EXPIRY_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRY_DAYS: int = 7
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "lax"

    # Password reset links
    PASSWORD_RESET_EXPIRY_MINUTES: int = 60
    CLIENT_URL: str = "http://localhost:3000"
    MOBILE_APP_URI_SCHEME: str = "blipzoapp"

    # Categories
    DEFAULT_CATEGORY_LIMIT: int = 10
    DEFAULT_INCOME_CATEGORY: str = "Sales"
    DEFAULT_EXPENSE_CATEGORY: str = "Stock"

    # Register, login and password reset attempts per client IP
    AUTH_RATE_LIMIT_MAX: int = 5
    AUTH_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    # Resend API; an empty key disables email delivery
    RESEND_API_KEY: str = ""
    RESEND_FROM_EMAIL: str = "noreply@example.com"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("ALLOWED_HOSTS", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, value: Any) -> list[str] | Any:
        """Support comma-separated ALLOWED_HOSTS from environment."""
        return _split_csv(value)

    @field_validator("COOKIE_SAMESITE", mode="after")
    @classmethod
    def normalize_samesite(cls, value: str) -> str:
        return "none" if value.strip().lower() == "none" else "lax"

    @field_validator("DEFAULT_INCOME_CATEGORY", "DEFAULT_EXPENSE_CATEGORY", mode="after")
    @classmethod
    def strip_category_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("default category names cannot be blank")
        return value.strip()

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def refresh_secret(self) -> str:
        return self.REFRESH_SECRET_KEY or self.SECRET_KEY

    def production_problems(self) -> list[str]:
        """Return the insecure defaults that must not reach production."""
        problems: list[str] = []

        secret = self.SECRET_KEY
        if not secret or secret == DEFAULT_SECRET_KEY or len(secret) < MIN_SECRET_LENGTH:
            problems.append("SECRET_KEY must be set to a strong value in production.")

        if self.REFRESH_SECRET_KEY and self.REFRESH_SECRET_KEY == self.SECRET_KEY:
            problems.append("REFRESH_SECRET_KEY must differ from SECRET_KEY.")

        if not self.ALLOWED_HOSTS or self.ALLOWED_HOSTS == DEFAULT_ALLOWED_HOSTS:
            problems.append("ALLOWED_HOSTS must be configured explicitly in production.")

        if self.DATABASE_URL.startswith("sqlite"):
            problems.append("Use PostgreSQL in production; sqlite is only for local/dev.")

        return problems


def _validate_security() -> None:
    """Fail fast when running production with insecure defaults."""
    if not settings.is_production:
        return

    problems = settings.production_problems()
    if problems:
        raise ValueError(" ".join(problems))


settings = Settings()


_validate_security()
