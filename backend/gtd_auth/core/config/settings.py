"""
Settings module for the authentication service using Pydantic v2.

Nested models group related settings; the top-level ``Settings`` reads them
from the environment (``SECURITY__SESSION_TTL_MINUTES=60`` and so on).
"""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Union

from pydantic import (
    BaseModel,
    Field,
    field_validator,
    model_validator,
    constr,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from gtd_auth.core.enums import Environment, LogLevel

# ---- Constrained types ----

MongoDBUrl = constr(pattern=r"^mongodb(\+srv)?://.*", strip_whitespace=True)

# ---- Settings groups ----

class AppSettings(BaseModel):
    """Service identity and HTTP mounting."""
    PROJECT_NAME: str = Field(
        default="GTD Auth",
        description="Service name shown in the OpenAPI docs",
        min_length=1,
        max_length=100,
    )
    VERSION: str = Field(
        default="1.0.0",
        description="Service version, also reported by /health",
        pattern=r"^\d+\.\d+\.\d+$",
    )
    API_PREFIX: str = Field(
        default="/api",
        description="Prefix for every API route",
        pattern=r"^/[a-zA-Z0-9_/-]+$",
    )
    DEBUG_MODE: bool = Field(default=False, description="Verbose errors for local development")
    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment; production implies secure cookies",
    )


class SecuritySettings(BaseModel):
    """Session, lockout, reset token and password policy settings."""
    SESSION_TTL_MINUTES: int = Field(
        default=240,
        description="Session lifetime in minutes",
        gt=0,
        le=44640,
    )
    RESET_TOKEN_TTL_MINUTES: int = Field(
        default=30,
        description="Password reset token lifetime in minutes",
        gt=0,
        le=10080,
    )
    LOCKOUT_THRESHOLD: int = Field(
        default=5,
        description="Consecutive failed logins that trigger a lockout",
        gt=0,
        le=20,
    )
    LOCKOUT_MINUTES: int = Field(
        default=15,
        description="Lockout duration in minutes",
        gt=0,
        le=1440,
    )
    BCRYPT_ROUNDS: int = Field(
        default=12,
        description="bcrypt work factor (log2 of iterations)",
        ge=4,
        le=31,
    )
    MIN_PASSWORD_LENGTH: int = Field(
        default=12,
        description="Minimum password length",
        gt=0,
        le=128,
    )
    MAX_PASSWORD_LENGTH: int = Field(
        default=128,
        description="Maximum password length",
        gt=8,
        le=256,
    )
    MIN_PASSWORD_CLASSES: int = Field(
        default=3,
        description="Required character classes out of lower/upper/digit/symbol",
        ge=1,
        le=4,
    )
    PASSWORD_DENYLIST: List[str] = Field(
        default=["password", "123456", "qwerty"],
        description="Passwords rejected regardless of complexity",
    )
    SESSION_COOKIE_NAME: str = Field(default="session_id", min_length=1)
    SESSION_HEADER_NAME: str = Field(default="x-session-id", min_length=1)
    COOKIE_SECURE: Optional[bool] = Field(
        default=None,
        description="Send the session cookie over HTTPS only; derived from ENVIRONMENT when unset",
    )

    @model_validator(mode="after")
    def check_password_lengths(self) -> "SecuritySettings":
        """Validate min password length <= max password length."""
        if self.MIN_PASSWORD_LENGTH > self.MAX_PASSWORD_LENGTH:
            raise ValueError("MIN_PASSWORD_LENGTH cannot be greater than MAX_PASSWORD_LENGTH")
        return self


class DatabaseSettings(BaseModel):
    """MongoDB connection and the in-memory store switch."""
    MONGODB_URL: MongoDBUrl = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI",
    )
    MONGODB_DB_NAME: str = Field(
        default="gtd_auth",
        description="Database holding the users, sessions and reset token collections",
        min_length=1,
        max_length=63,
        pattern=r"^[a-zA-Z0-9_-]+$",
    )
    MONGODB_MAX_CONNECTIONS: int = Field(
        default=10,
        description="Motor connection pool ceiling",
        gt=0,
        le=100,
    )
    MONGODB_MIN_CONNECTIONS: int = Field(
        default=1,
        description="Motor connection pool floor",
        gt=0,
    )
    MONGODB_TIMEOUT_MS: int = Field(
        default=5000,
        description="Server selection and connect timeout in milliseconds",
        gt=0,
        le=30000,
    )
    USE_IN_MEMORY_STORES: bool = Field(
        default=False,
        description="Run against in-process stores instead of MongoDB",
    )

    @model_validator(mode="after")
    def check_connections(self) -> "DatabaseSettings":
        """The pool floor cannot exceed the ceiling."""
        if self.MONGODB_MIN_CONNECTIONS > self.MONGODB_MAX_CONNECTIONS:
            raise ValueError(
                "MONGODB_MIN_CONNECTIONS cannot be greater than MONGODB_MAX_CONNECTIONS"
            )
        return self


class CorsSettings(BaseModel):
    """CORS configuration."""
    BACKEND_CORS_ORIGINS: List[str] = Field(
        default=[], description="Origins allowed to call the API with credentials"
    )

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS origins from a comma separated string or a JSON list."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                try:
                    parsed = json.loads(v)
                except json.JSONDecodeError:
                    raise ValueError("Invalid JSON format for BACKEND_CORS_ORIGINS")
                if not isinstance(parsed, list):
                    raise ValueError("Parsed CORS origins must be a list")
                return [str(item).strip() for item in parsed]
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, list):
            return [str(item).strip() for item in v]
        raise ValueError("Invalid CORS origins format")


class LoggingSettings(BaseModel):
    """Log level, format and outputs."""
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO, description="Minimum level written by every output")
    LOG_FORMAT: str = Field(default="json", description="Log format (json/text/compact)")
    LOG_FILE_PATH: Path = Field(default=Path("logs/gtd_auth.log"), description="Log file path")
    MAX_LOG_SIZE: int = Field(
        default=10485760,  # 10MB
        description="Rotate the log file at this many bytes",
        gt=0,
    )
    MAX_LOG_BACKUPS: int = Field(
        default=5,
        description="Rotated files kept on disk",
        gt=0,
    )
    CONSOLE_LOGGING: bool = Field(default=True, description="Enable console logging")
    FILE_LOGGING: bool = Field(default=False, description="Enable rotating file logging")
    USE_COLORS: bool = Field(default=True, description="Use colors in text log format")

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: Union[str, LogLevel]) -> LogLevel:
        """Accept level names in any case."""
        if isinstance(v, str):
            try:
                return LogLevel(v.upper())
            except ValueError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[level.value for level in LogLevel]}")
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Normalize and check the formatter name."""
        v = v.lower()
        if v not in {"json", "text", "compact"}:
            raise ValueError(f"Invalid log format: {v}. Must be one of json, text, compact")
        return v


class CronSettings(BaseModel):
    """Expiry sweep scheduling."""
    SWEEP_ENABLED: bool = Field(
        default=True, description="Purge expired sessions and reset tokens periodically"
    )
    SWEEP_INTERVAL_MINUTES: int = Field(
        default=15, description="Minutes between expiry sweeps", gt=0, le=1440
    )


# ---- Root settings ----

class Settings(BaseSettings):
    """All settings groups, read from the environment and the env file."""
    app: AppSettings = Field(default_factory=AppSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cron: CronSettings = Field(default_factory=CronSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_nested_delimiter="__",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def cookie_secure(self) -> bool:
        """Whether the session cookie carries the Secure flag."""
        if self.security.COOKIE_SECURE is not None:
            return self.security.COOKIE_SECURE
        return self.app.ENVIRONMENT == Environment.PRODUCTION

    @classmethod
    def reload(cls) -> None:
        """Drop the cached instance so the next access rereads the environment."""
        get_settings.cache_clear()


# ---- Cached instance ----

@lru_cache()
def get_settings() -> Settings:
    """Settings built once per process from the environment and ``ENV_FILE``."""
    env_file = os.environ.get("ENV_FILE", ".env")
    return Settings(_env_file=env_file)
