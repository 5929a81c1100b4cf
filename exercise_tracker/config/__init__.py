"""
Application configuration using Pydantic settings.

Configuration comes from environment variables with sensible defaults,
including a mock mode for running without a Snowflake account.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
