"""Runtime settings for the TzKT cache, read from the environment."""
from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

TZKT_API_BASE = "https://api.tzkt.io"


class StorageBackend(str, Enum):
    NONE = "none"
    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


class CacheSettings(BaseSettings):
    """Configuration for the cache and its remote collaborators."""

    model_config = SettingsConfigDict(
        env_prefix="TZKT_CACHE_",
        env_file=".env",
        extra="ignore",
    )

    # Remote collaborators
    api_base_url: str = Field(default=TZKT_API_BASE)
    yield_url: Optional[str] = Field(default=None, description="Staking/delegation yield endpoint")
    request_timeout: float = Field(default=10.0, gt=0)

    # Cache store
    max_size: int = Field(default=100, ge=1)
    storage_backend: StorageBackend = Field(default=StorageBackend.MEMORY)
    storage_path: str = Field(default=".tzkt-cache")
    redis_url: Optional[str] = None
    storage_prefix: str = Field(default="tzkt_cache_")

    # Logging
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True)
