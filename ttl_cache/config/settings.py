"""
TTL-Cache Configuration Settings

This module contains the configuration defaults for TTL-Cache. Every value
can be overridden through an environment variable.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Cache configuration settings."""

    # TTL settings
    DEFAULT_TTL: float = float(os.environ.get("TTL_CACHE_DEFAULT_TTL", "0"))  # 0 means no expiration
    SWEEP_INTERVAL: float = float(os.environ.get("TTL_CACHE_SWEEP_INTERVAL", "60"))  # Seconds between sweeps

    # Persistence settings
    SNAPSHOT_PATH: str = os.environ.get("TTL_CACHE_SNAPSHOT_PATH", "cache.snapshot")

    # Logging settings
    DEBUG: bool = os.environ.get("TTL_CACHE_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("TTL_CACHE_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
