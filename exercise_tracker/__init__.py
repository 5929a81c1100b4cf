"""
Exercise Tracker - A small service for logging workouts.

This package contains the complete application:
- core: Framework-agnostic business logic
- infrastructure: Record store integration
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
