"""
Configuration management for Evolua.

This module provides centralized configuration using Pydantic Settings
for environment-based configuration management.
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_list(v):
    """Accept a JSON list, a comma-separated string or a list."""
    if isinstance(v, str):
        text = v.strip()
        if text.startswith("[") and text.endswith("]"):
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                return [text]
        return [item.strip() for item in text.split(",") if item.strip()]
    return v


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    model_config = SettingsConfigDict(env_prefix="MONGO_")

    uri: str = Field(default="", description="MongoDB connection URI; empty selects in-memory storage")
    db_name: str = Field(default="evolua", description="MongoDB database name")

    @field_validator("uri")
    @classmethod
    def validate_mongo_uri(cls, v: str) -> str:
        """Validate MongoDB URI format."""
        if v and not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("MongoDB URI must start with 'mongodb://' or 'mongodb+srv://'")
        return v

    @property
    def enabled(self) -> bool:
        return bool(self.uri)


class AzureBlobSettings(BaseSettings):
    """Azure Blob Storage configuration settings."""

    model_config = SettingsConfigDict(env_prefix="AZURE_BLOB_")

    connection_string: str = Field(default="", description="Azure Storage Connection String")
    container_name: str = Field(default="evolua-documents", description="Blob container name")
    max_file_size_mb: int = Field(default=50, description="Maximum blob size in MB")
    connection_timeout: int = Field(default=30, description="Connect timeout in seconds")
    read_timeout: int = Field(default=300, description="Read timeout in seconds")

    @field_validator("connection_string")
    @classmethod
    def validate_connection_string(cls, v: str) -> str:
        """Validate Azure Storage connection string."""
        if v and not v.startswith("DefaultEndpointsProtocol="):
            raise ValueError("Invalid Azure Storage connection string format")
        return v

    @property
    def enabled(self) -> bool:
        return bool(self.connection_string)


class DocumentSettings(BaseSettings):
    """Clinical document upload settings."""

    model_config = SettingsConfigDict(env_prefix="DOCUMENT_")

    max_file_size_mb: int = Field(default=50, description="Maximum upload size in MB")
    allowed_mime_types: List[str] = Field(
        default=[
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "image/jpeg",
            "image/png",
            "image/gif",
            "text/plain",
        ],
        description="MIME types accepted on upload",
    )
    default_retention_years: int = Field(default=20, description="Retention when the upload gives none")
    encrypt_at_rest: bool = Field(default=False, description="Fernet-encrypt stored bytes")
    encryption_key: str = Field(default="", description="Fernet key; falls back to ENCRYPTION_KEY")
    virus_signatures: List[str] = Field(
        default_factory=list, description="Extra byte signatures flagged by the scanner"
    )

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_max_size(cls, v: int) -> int:
        if not 1 <= v <= 50:
            raise ValueError("Maximum document size must be between 1 and 50 MB")
        return v

    @field_validator("default_retention_years")
    @classmethod
    def validate_retention(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Retention must be at least 1 year")
        return v

    @field_validator("allowed_mime_types", "virus_signatures", mode="before")
    @classmethod
    def parse_lists(cls, v):
        return _parse_list(v)

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


class SecuritySettings(BaseSettings):
    """Security configuration settings."""

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    api_keys: str = Field(
        default="",
        description="Comma-separated 'key:user_id:clinic_id:role' entries",
    )
    public_paths: List[str] = Field(
        default=["/", "/health", "/health/live", "/health/ready", "/docs", "/redoc", "/openapi.json"],
        description="Paths that skip authentication",
    )

    @field_validator("public_paths", mode="before")
    @classmethod
    def parse_public_paths(cls, v):
        return _parse_list(v)


class CORSSettings(BaseSettings):
    """CORS configuration settings."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins",
    )
    allowed_methods: List[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods",
    )
    allowed_headers: List[str] = Field(default=["*"], description="Allowed HTTP headers")
    allow_credentials: bool = Field(default=True, description="Allow credentials in CORS")

    @field_validator("allowed_origins", "allowed_methods", "allowed_headers", mode="before")
    @classmethod
    def parse_lists(cls, v):
        """Parse lists from string or list."""
        return _parse_list(v)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="json", description="Log format (json or text)")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    app_name: str = Field(default="Evolua", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    app_env: str = Field(default="development", description="Application environment")
    debug: bool = Field(default=False, description="Debug mode")
    port: int = Field(default=8000, description="Application port")
    host: str = Field(default="0.0.0.0", description="Application host")

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    azure_blob: AzureBlobSettings = Field(default_factory=AzureBlobSettings)
    document: DocumentSettings = Field(default_factory=DocumentSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate application environment."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"App environment must be one of: {valid_envs}")
        return v.lower()

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_testing(self) -> bool:
        return self.app_env == "testing"


# Global settings instance (loaded after attempting to read .env)
_settings: Optional[Settings] = None


def _load_env_file_if_available() -> None:
    """Load the nearest .env from the current directory or its parents.

    Variables that are already set in the environment win.
    """
    from dotenv import load_dotenv

    cwd = Path(os.getcwd()).resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            load_dotenv(dotenv_path=str(candidate), override=False)
            break


def get_settings() -> Settings:
    """Get application settings instance (lazy-init with .env discovery)."""
    global _settings
    if _settings is None:
        _load_env_file_if_available()
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None


def settings_summary(settings: Settings) -> Dict[str, object]:
    """Non-secret view of the active configuration, used in startup logs."""
    return {
        "app_env": settings.app_env,
        "mongo": settings.database.enabled,
        "db_name": settings.database.db_name,
        "blob_storage": settings.azure_blob.enabled,
        "encrypt_at_rest": settings.document.encrypt_at_rest,
        "max_file_size_mb": settings.document.max_file_size_mb,
        "log_level": settings.logging.level,
    }
