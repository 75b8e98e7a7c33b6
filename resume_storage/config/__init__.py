"""
Application configuration using Pydantic settings.

Configuration comes from STORAGE_* environment variables.
Supports mock mode for local development.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
