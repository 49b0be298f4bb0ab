"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List


DEFAULT_JWT_SECRET = "default-secret-key"


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


class Settings(BaseSettings):
    """
    Application settings read from environment variables and ``.env``.

    Everything the token service needs (secret, algorithm, lifetime, leeway)
    lives here so it can be loaded once at startup and injected.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # Key-value store backing accounts and messages.
    database_url: str = Field(
        default="sqlite:///./groupchat.db",
        description="SQLAlchemy database URL"
    )

    # Authentication
    # JWT_SECRET_KEY: HMAC signing secret. The default is public; override it.
    jwt_secret_key: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="JWT signing secret (override in production)"
    )
    jwt_algorithm: str = Field(default="HS256", description="HMAC algorithm for issued tokens")
    jwt_ttl_seconds: int = Field(default=3600, gt=0, description="Lifetime of tokens issued at login")
    jwt_leeway_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Clock-skew tolerance applied to exp/nbf"
    )

    password_hash_rounds: int = Field(
        default=100_000,
        ge=1000,
        description="PBKDF2-SHA256 iterations for stored passwords"
    )

    # DELETE /delete wipes accounts or messages without authentication.
    purge_enabled: bool = Field(
        default=True,
        description="Serve the bulk purge endpoint"
    )

    rate_limit_per_minute: int = Field(
        default=60,
        description="Maximum requests per client per minute (0 disables)"
    )

    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """Parse the comma-separated origins, refusing a wildcard."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )
        return origins

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ("json", "text"):
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v_lower

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret_key == DEFAULT_JWT_SECRET

    def insecure_settings(self) -> List[str]:
        """Describe every setting that is unsafe outside development."""
        problems: list[str] = []

        if self.uses_default_secret:
            problems.append(
                "JWT_SECRET_KEY is using the default value. Anyone can forge tokens. "
                "Generate a secure key: openssl rand -hex 32"
            )

        if self.purge_enabled:
            problems.append(
                "PURGE_ENABLED is true. DELETE /delete wipes data without authentication."
            )

        localhost_origins = [
            o for o in self.get_cors_origins() if "localhost" in o or "127.0.0.1" in o
        ]
        if localhost_origins:
            problems.append(
                f"CORS allows localhost origins: {localhost_origins}. "
                "Remove localhost origins for production."
            )

        return problems

    def validate_production_config(self) -> List[str]:
        """Fail in production if security-critical settings are insecure.

        Returns the list of problems so development startup can log them.

        Raises:
            ConfigurationError: If the environment is production and any
                problem was found.
        """
        problems = self.insecure_settings()
        if problems and self.environment == Environment.PRODUCTION:
            raise ConfigurationError(
                "Production configuration is insecure:\n  - " + "\n  - ".join(problems)
            )
        return problems


# Global settings instance
settings = Settings()
