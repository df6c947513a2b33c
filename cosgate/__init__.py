"""
cosgate - scene-based uploads and presigned URLs for object storage.

This package contains the complete application:
- core: Framework-agnostic scene, path, policy and signing logic
- infrastructure: Object storage and STS integrations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
