"""Simple configuration management.

This module defines a ``Settings`` class that reads configuration
values from environment variables and provides sensible defaults.
``.env`` support is implemented by loading files from the repository
root in a defined order.  You can override any value via environment
variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv, find_dotenv

# -----------------------------------------------------------------------------
# .env loading
#
# Prefer a .env in the repository root but allow fallback to whatever
# python-dotenv discovers from the current working directory.  As a last
# resort, a .env alongside the backend package may be used.  Files are loaded
# in order without overriding already-set variables.

_THIS_FILE = Path(__file__).resolve()
_REPO_ROOT = _THIS_FILE.parents[3]
_ROOT_ENV = _REPO_ROOT / ".env"

_candidate_envs: list[str] = []
if _ROOT_ENV.exists():
    _candidate_envs.append(str(_ROOT_ENV))

_FOUND_ENV = find_dotenv(usecwd=True)
if _FOUND_ENV and _FOUND_ENV not in _candidate_envs:
    _candidate_envs.append(_FOUND_ENV)

_LOCAL_ENV = (_THIS_FILE.parent.parent.parent / ".env").as_posix()
if os.path.exists(_LOCAL_ENV) and _LOCAL_ENV not in _candidate_envs:
    _candidate_envs.append(_LOCAL_ENV)

for _env_path in _candidate_envs:
    load_dotenv(dotenv_path=_env_path, override=False)


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from the environment with sensible defaults.  Any
    attribute defined here can be overridden by setting the corresponding
    environment variable.
    """

    model_config = SettingsConfigDict(
        env_file=tuple(_candidate_envs) if _candidate_envs else (".env",),
        case_sensitive=True,
        extra="allow",
    )

    # API Settings
    PROJECT_NAME: str = "RFQ Intelligence Cost Engine"
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # Remote pricing service.  No timeout by default: the pricing service
    # owns the deadline, set COST_API_TIMEOUT to impose one on the transport.
    COST_API_BASE_URL: str = Field(default="http://localhost:8001/api/cost")
    COST_API_TIMEOUT: Optional[float] = Field(default=None)

    # Extraction backend
    EXTRACTION_API_BASE_URL: str = Field(default="https://apirfq.onrender.com")
    EXTRACTION_TIMEOUT: Optional[float] = Field(default=120.0)

    # Redis (pricing catalog persistence)
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    PRICING_CATALOG_KEY: str = Field(default="rfq:pricing_config")

    # Storage of uploaded RFQ documents
    STORE_UPLOADS: bool = Field(default=False)
    STORAGE_BACKEND: str = Field(default="filesystem")
    MINIO_ENDPOINT: str = Field(default="localhost:9000")
    MINIO_ACCESS_KEY: str = Field(default="minioadmin")
    MINIO_SECRET_KEY: str = Field(default="minioadmin")
    MINIO_BUCKET_NAME: str = Field(default="rfq-documents")
    MINIO_USE_SSL: bool = Field(default=False)
    STORAGE_DIRECTORY: str = Field(default="./storage")

    # Pipeline behaviour
    LOCAL_ESTIMATE_ON_IMPORT: bool = Field(default=True)

    # Draft RFQ header defaults
    DEFAULT_VENDOR_NAME: str = Field(default="Nosta GmbH")
    DEFAULT_LOCATION: str = Field(default="Ad-Electronic City (019028000)")
    DEFAULT_DOCUMENT_TYPE: str = Field(default="Purchase Order")

    # CORS
    BACKEND_CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
    )

    # Sentry
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.0)
    SENTRY_PROFILES_SAMPLE_RATE: float = Field(default=0.0)
    SENTRY_RELEASE: Optional[str] = Field(default=None)

    @property
    def is_development(self) -> bool:
        return (self.ENVIRONMENT or "development").lower() == "development"


# Instantiate global settings
settings = Settings()
