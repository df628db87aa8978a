"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


class Settings(BaseSettings):
    """
    Application settings with validation.

    Every field can be overridden through an environment variable of the
    same name (case-insensitive) or a ``.env`` file.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./nodetree.db",
        description="Database connection URL"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(default=5, description="Number of persistent database connections")
    db_max_overflow: int = Field(default=10, description="Extra connections allowed during bursts")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds before a connection is recycled")

    # Authentication
    # AUTH_ENABLED=false: every request runs as an anonymous admin (dev mode).
    jwt_secret_key: str = Field(
        default="dev-insecure-key-change-me",
        description="Token signing secret (override in production)"
    )
    jwt_algorithm: str = Field(default="HS256")
    token_ttl_hours: int = Field(default=24, description="Lifetime of issued tokens")
    auth_enabled: bool = Field(
        default=False,
        description="Enable token authentication (False for development)"
    )

    # Navigator session
    session_cookie_name: str = Field(
        default="nodetree_session",
        description="Cookie carrying the navigator session id"
    )
    session_header_name: str = Field(
        default="x-session-id",
        description="Header that may carry the session id instead of the cookie"
    )

    # Tree navigation
    tree_table: str = Field(
        default="nodes",
        description="Table name the navigator session bag is scoped to"
    )
    navigation_param: str = Field(
        default="nn",
        description="Query parameter selecting the current node"
    )
    allow_new_record_grants: bool = Field(
        default=True,
        description="Temporarily allow editing nodes created in the same session outside the user's mounts"
    )
    breadcrumb_root_label: str = Field(default="All nodes")
    tree_icon: str = Field(default="nodes.svg")
    folder_icon: str = Field(default="folderC.svg")
    content_icon: str = Field(default="articles.svg")

    # Locale used to render language names in node labels
    language_locale: str = Field(default="en")

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """Parse the comma-separated origins. Wildcards are rejected."""
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )

        return origins

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('navigation_param')
    @classmethod
    def validate_navigation_param(cls, v: str) -> str:
        v = v.strip()
        if not v.isidentifier():
            raise ValueError("navigation_param must be a plain identifier")
        return v

    def validate_production_config(self) -> None:
        """Fail startup in production when security-critical settings use defaults.

        Raises:
            ConfigurationError: If production config is insecure.
        """
        errors: list[str] = []

        if self.jwt_secret_key == "dev-insecure-key-change-me":
            errors.append(
                "JWT_SECRET_KEY is using the default insecure value. "
                "Generate a secure key: openssl rand -hex 32"
            )

        if not self.auth_enabled:
            errors.append("AUTH_ENABLED is false. Authentication must be enabled in production.")

        if errors and self.environment == Environment.PRODUCTION:
            raise ConfigurationError(
                "Production configuration is insecure:\n  - " + "\n  - ".join(errors)
            )

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
