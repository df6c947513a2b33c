"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Scenes and content types are JSON in the environment, e.g.

    SCENES='[{"id": 1, "path_prefix": "docs", "allowed_extensions": ["pdf", "txt"],
              "attachment_extensions": ["txt"]}]'
    CONTENT_TYPES='{"pdf": "application/pdf", "txt": "text/plain"}'
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.storage.models import Scene
from ..core.storage.registry import UploadConfig


class SceneSettings(BaseModel):
    """One scene as written in configuration."""
    id: int
    path_prefix: str
    allowed_extensions: list[str]
    attachment_extensions: list[str] = Field(default_factory=list)

    def to_scene(self) -> Scene:
        return Scene(
            scene_type=self.id,
            path=self.path_prefix,
            extensions=frozenset(self.allowed_extensions),
            attachments=frozenset(self.attachment_extensions),
        )


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "cosgate"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys. Using a list enables key rotation without downtime."
    )

    # COS Configuration
    cos_secret_id: str = Field(
        default="",
        description="Long-lived secret id. Signs URLs in static mode and calls STS in temporary mode."
    )
    cos_secret_key: str = Field(
        default="",
        description="Long-lived secret key"
    )
    cos_app_id: str = Field(
        default="",
        description="Account app id; appended to the bucket name and used in policy resources"
    )
    cos_bucket: str = Field(
        default="",
        description="Bucket name without the app id suffix"
    )
    cos_region: str = Field(
        default="ap-guangzhou",
        description="Bucket region"
    )
    cos_endpoint_url: Optional[str] = Field(
        default=None,
        description="S3-compatible endpoint. Constructed from the region if not provided."
    )
    sts_endpoint_url: Optional[str] = Field(
        default=None,
        description="Tencent Cloud STS host. Defaults to sts.tencentcloudapi.com."
    )
    credential_mode: Literal["temporary", "static"] = Field(
        default="temporary",
        description="temporary: scoped STS keys per signing call. static: sign with the long-lived keys."
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory storage and a fake STS issuer. Enables local dev without a bucket."
    )
    default_expires_seconds: int = Field(
        default=900,
        description="Presigned URL lifetime when the caller doesn't ask for one"
    )

    # Upload rules
    scenes: list[SceneSettings] = Field(
        default_factory=list,
        description="Scenes as a JSON list of {id, path_prefix, allowed_extensions, attachment_extensions}"
    )
    content_types: dict[str, str] = Field(
        default_factory=dict,
        description="Extension to MIME type as a JSON object"
    )

    # CDN
    cdn_domain: str = Field(
        default="",
        description="CDN base URL, e.g. https://cdn.example.com"
    )
    cdn_key: str = Field(
        default="",
        description="Shared secret for CDN URL signatures"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def cos_bucket_name(self) -> str:
        """COS bucket names on the wire carry the app id: <bucket>-<appid>."""
        if not self.cos_app_id:
            return self.cos_bucket
        return f"{self.cos_bucket}-{self.cos_app_id}"

    @property
    def cos_endpoint(self) -> str:
        if self.cos_endpoint_url:
            return self.cos_endpoint_url
        return f"https://cos.{self.cos_region}.myqcloud.com"

    @property
    def cdn_enabled(self) -> bool:
        return bool(self.cdn_domain and self.cdn_key)

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        if not self.storage_mock_mode:
            if not self.cos_secret_id:
                missing.append("COS_SECRET_ID")
            if not self.cos_secret_key:
                missing.append("COS_SECRET_KEY")
            if not self.cos_app_id:
                missing.append("COS_APP_ID")
            if not self.cos_bucket:
                missing.append("COS_BUCKET")

        if not self.scenes:
            missing.append("SCENES")
        if not self.content_types:
            missing.append("CONTENT_TYPES")

        return missing


def build_upload_config(settings: Settings) -> UploadConfig:
    """
    Turn settings into the registries the presign service reads.

    Raises RegistrationError on a malformed scene or content type.
    """
    return UploadConfig.build(
        scenes=[s.to_scene() for s in settings.scenes],
        content_types=settings.content_types,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    This is safe because settings don't change during runtime.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
