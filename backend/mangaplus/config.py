"""
MangaPlus Backend — Application Configuration
===============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or the .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, the lifespan and the entry point.
When:  Loaded once at module import time; required values are checked in the
       lifespan before any client is constructed.

Environment variables (case-insensitive):
    MONGO_URI                  Document store connection string (required)
    IMAGEKIT_PRIVATE_KEY       Image host private key (required)
    IMAGEKIT_PUBLIC_KEY        Image host public key (required)
    IMAGEKIT_ENDPOINT_URL      Image host URL endpoint (required)
    PORT                       Listening port
"""

from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from mangaplus.exceptions import ConfigurationError

ENV_FILE = ".env"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Credentials have empty defaults so the module can be imported without a
    configured environment (tests, docs generation). validate_required()
    turns missing values into a fatal startup error.
    """

    # ── Document Store ────────────────────────────────────────────────────
    mongo_uri: str = Field(default="", description="MongoDB connection string")
    mongo_database: str = Field(default="mangaplus_dev")
    mongo_collection: str = Field(default="mangas")

    # How long the startup ping waits for a reachable server
    mongo_server_selection_timeout_ms: int = Field(default=10_000, ge=100, le=120_000)

    # ── ImageKit ──────────────────────────────────────────────────────────
    imagekit_private_key: str = Field(default="")
    imagekit_public_key: str = Field(default="")
    imagekit_endpoint_url: str = Field(default="")
    imagekit_upload_url: str = Field(
        default="https://upload.imagekit.io/api/v1/files/upload",
        description="ImageKit upload API endpoint",
    )
    imagekit_folder: str = Field(default="/MangaPlus")
    imagekit_timeout: float = Field(default=60.0, gt=0, le=600)

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)

    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # MONGO_URI and mongo_uri both work
        "extra": "ignore",
    }

    def validate_required(self) -> None:
        """
        What:  Validates that the connection settings are configured.
        When:  Called during app startup (lifespan), before building clients.
        Raises: ConfigurationError listing every missing variable.
        """
        required = {
            "MONGO_URI": self.mongo_uri,
            "IMAGEKIT_PRIVATE_KEY": self.imagekit_private_key,
            "IMAGEKIT_PUBLIC_KEY": self.imagekit_public_key,
            "IMAGEKIT_ENDPOINT_URL": self.imagekit_endpoint_url,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(
                message="Configuration validation failed:\n"
                + "\n".join(f"  - {name} is not set" for name in missing),
                context={"missing": missing},
            )

    def startup_warnings(self) -> List[str]:
        """Non-fatal configuration issues reported by GET /ping."""
        warnings = []
        if not Path(ENV_FILE).is_file():
            warnings.append(f"{ENV_FILE} file not found; using process environment only")
        return warnings


# Singleton instance — imported throughout the application
settings = Settings()
