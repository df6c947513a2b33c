"""
Application configuration using Pydantic settings.

Configuration comes from environment variables with sensible defaults.
Supports mock mode for local development.
"""

from .settings import SceneSettings, Settings, build_upload_config, get_settings

__all__ = ["SceneSettings", "Settings", "build_upload_config", "get_settings"]
