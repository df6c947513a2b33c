"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be mocked for testing
- Configuration is centralized

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, build_upload_config, get_settings
from ..core.cdn import CdnSigner
from ..core.storage.credentials import (
    CredentialSource,
    StaticCredentialSource,
    TemporaryCredentialSource,
)
from ..core.storage.policy import PolicyBuilder
from ..core.storage.presigner import ObjectStorage, PresignService
from ..core.storage.registry import UploadConfig
from ..infrastructure.storage.client import StorageConfig, create_storage_client
from ..infrastructure.sts.client import StsConfig, create_credential_issuer

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Built once per process; registries are read-only after startup
_upload_config = None

# Global mock instances (shared across requests for testing)
_mock_storage_client = None
_mock_credential_issuer = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8] if api_key else ""}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_upload_config(
    settings: Annotated[Settings, Depends(get_settings)],
) -> UploadConfig:
    """
    Provide the scene and content-type registries.

    Built from settings on first use and shared afterwards. The app's
    lifespan builds it at startup so bad scene config fails the boot.
    """
    global _upload_config

    if _upload_config is None:
        _upload_config = build_upload_config(settings)
    return _upload_config


def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> ObjectStorage:
    """
    Provide the object storage client.

    In mock mode, we reuse the same client across requests
    so that uploaded objects persist during the testing session.
    """
    global _mock_storage_client

    if settings.storage_mock_mode:
        if _mock_storage_client is None:
            _mock_storage_client = create_storage_client(mock_mode=True)
            logger.info("Created shared mock storage client for session")
        return _mock_storage_client

    config = StorageConfig(
        secret_id=settings.cos_secret_id,
        secret_key=settings.cos_secret_key,
        bucket=settings.cos_bucket_name,
        region=settings.cos_region,
        endpoint_url=settings.cos_endpoint,
    )
    client = create_storage_client(config=config)
    logger.debug("Created COS storage client")
    return client


def get_credential_source(
    settings: Annotated[Settings, Depends(get_settings)],
) -> CredentialSource:
    """
    Provide signing keys according to CREDENTIAL_MODE.

    static signs with the long-lived keys; temporary asks STS for keys
    scoped to each request.
    """
    global _mock_credential_issuer

    if settings.credential_mode == "static":
        return StaticCredentialSource(settings.cos_secret_id, settings.cos_secret_key)

    if settings.storage_mock_mode:
        if _mock_credential_issuer is None:
            _mock_credential_issuer = create_credential_issuer(mock_mode=True)
            logger.info("Created shared mock credential issuer for session")
        return TemporaryCredentialSource(_mock_credential_issuer)

    issuer = create_credential_issuer(
        config=StsConfig(
            secret_id=settings.cos_secret_id,
            secret_key=settings.cos_secret_key,
            region=settings.cos_region,
            endpoint_url=settings.sts_endpoint_url,
        )
    )
    return TemporaryCredentialSource(issuer)


def get_presign_service(
    settings: Annotated[Settings, Depends(get_settings)],
    config: Annotated[UploadConfig, Depends(get_upload_config)],
    storage: Annotated[ObjectStorage, Depends(get_storage_client)],
    credentials: Annotated[CredentialSource, Depends(get_credential_source)],
) -> PresignService:
    policy_builder = PolicyBuilder(
        app_id=settings.cos_app_id,
        bucket=settings.cos_bucket_name,
        region=settings.cos_region,
    )
    return PresignService(
        config=config,
        storage=storage,
        credentials=credentials,
        policy_builder=policy_builder,
    )


def get_cdn_signer(
    settings: Annotated[Settings, Depends(get_settings)],
) -> CdnSigner:
    """Raises 503 when no CDN domain or key is configured."""
    if not settings.cdn_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="CDN signing is not configured",
        )
    return CdnSigner(domain=settings.cdn_domain, key=settings.cdn_key)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
UploadConfigDep = Annotated[UploadConfig, Depends(get_upload_config)]
PresignServiceDep = Annotated[PresignService, Depends(get_presign_service)]
CdnSignerDep = Annotated[CdnSigner, Depends(get_cdn_signer)]
