"""
Repository pattern implementations for Snowflake.

Repositories translate between domain models and database representations.
"""

from .users import SnowflakeConfig, UserRepository

__all__ = ["SnowflakeConfig", "UserRepository"]
