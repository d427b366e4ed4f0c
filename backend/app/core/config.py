"""Application configuration."""

from typing import Literal
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(default="LenteXhibit API", description="Application display name")
    environment: Literal["development", "production", "test"] = Field(
        default="development",
        description="Deployment environment (controls cookie defaults and error detail)"
    )

    # Server
    host: str = Field(default="127.0.0.1", description="Bind address for the development server")
    port: int = Field(default=8000, description="Port for the development server")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./lentexhibit.db",
        description="Database connection URL"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:5500,http://127.0.0.1:5500,http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # Security / sessions
    secret_key: str = Field(
        default="change-this-to-a-random-secret-key-in-production",
        description="Secret key used to sign session cookies"
    )
    session_cookie_name: str = Field(default="lentexhibit.sid", description="Session cookie name")
    session_max_age_days: int = Field(default=7, description="Rolling session lifetime in days")
    session_touch_after_seconds: int = Field(
        default=24 * 3600,
        description="Minimum interval between rolling refreshes of a session"
    )
    session_cookie_secure: bool | None = Field(
        default=None,
        description="Force the Secure cookie flag (derived from environment when unset)"
    )
    session_cookie_samesite: Literal["lax", "strict", "none"] | None = Field(
        default=None,
        description="Force the SameSite cookie attribute (derived from environment when unset)"
    )

    # Membership
    auto_approve_members: bool = Field(
        default=True,
        description="Approve member accounts at signup instead of waiting for an admin"
    )
    member_email_domain: str = Field(
        default="up.edu.ph",
        description="Email domain required for member signup (empty disables the check)"
    )

    # Listing
    default_list_limit: int = Field(default=50, description="Default page size for list endpoints")
    max_list_limit: int = Field(default=200, description="Largest page size a client may request")
    rankings_default_limit: int = Field(default=10, description="Default number of ranked works")

    # Uploads and static files
    upload_dir: str = Field(default="uploads", description="Directory for uploaded work files")
    max_upload_size_mb: int = Field(default=100, description="Maximum upload size in megabytes")
    static_dir: str = Field(default="frontend", description="Directory holding the static frontend")

    # Development Settings
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_secure(self) -> bool:
        """Secure flag for the session cookie."""
        if self.session_cookie_secure is not None:
            return self.session_cookie_secure
        return self.is_production

    @property
    def cookie_samesite(self) -> str:
        """SameSite attribute for the session cookie."""
        if self.session_cookie_samesite is not None:
            return self.session_cookie_samesite
        return "none" if self.is_production else "lax"

    @property
    def session_max_age_seconds(self) -> int:
        return self.session_max_age_days * 24 * 3600

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator(
        "port",
        "session_max_age_days",
        "session_touch_after_seconds",
        "default_list_limit",
        "max_list_limit",
        "rankings_default_limit",
        "max_upload_size_mb",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate integer is positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @field_validator("member_email_domain")
    @classmethod
    def normalize_email_domain(cls, v: str) -> str:
        """Strip a leading '@' and lowercase the domain."""
        return v.strip().lstrip("@").lower()

    @model_validator(mode="after")
    def validate_consistency(self) -> "Settings":
        """Validate that related settings agree with each other."""
        if self.default_list_limit > self.max_list_limit:
            raise ValueError("default_list_limit must be less than or equal to max_list_limit")
        if self.cookie_samesite == "none" and not self.cookie_secure:
            raise ValueError("SameSite=none session cookies must be secure")
        return self


# Global settings instance
settings = Settings()
