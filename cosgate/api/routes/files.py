"""
File access endpoints.

Objects are private; clients read them through short-lived presigned
GET URLs, optionally rendered by the document preview feature, or
through signed CDN URLs.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from ...core.storage.errors import StorageError
from ..dependencies import AuthenticatedUser, CdnSignerDep, PresignServiceDep, SettingsDep
from ..errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


class FileURLResponse(BaseModel):
    """A URL granting temporary read access."""
    url: str = Field(description="Signed URL")
    file_path: str = Field(description="Object path the URL points at")
    expires_seconds: Optional[int] = Field(
        default=None,
        description="URL lifetime; CDN URLs expire per the CDN's own window"
    )


PathQuery = Annotated[str, Query(min_length=1, description="Object path")]
ExpiresQuery = Annotated[Optional[int], Query(ge=1, le=86400, description="URL lifetime")]


@router.get(
    "/url",
    response_model=FileURLResponse,
    status_code=status.HTTP_200_OK,
    summary="Get file URL",
    description="Presigned GET URL for an object",
)
async def get_file_url(
    path: PathQuery,
    expires_seconds: ExpiresQuery = None,
    api_key: AuthenticatedUser = None,
    service: PresignServiceDep = None,
    settings: SettingsDep = None,
) -> FileURLResponse:
    expires = expires_seconds or settings.default_expires_seconds
    try:
        url = await service.get_file_url(path, expires)
    except StorageError as e:
        raise to_http_exception(e)

    return FileURLResponse(url=url, file_path=path, expires_seconds=expires)


@router.get(
    "/preview-url",
    response_model=FileURLResponse,
    status_code=status.HTTP_200_OK,
    summary="Get document preview URL",
    description="Presigned GET URL that renders the document as watermarked HTML",
)
async def get_preview_url(
    path: PathQuery,
    expires_seconds: ExpiresQuery = None,
    api_key: AuthenticatedUser = None,
    service: PresignServiceDep = None,
    settings: SettingsDep = None,
) -> FileURLResponse:
    expires = expires_seconds or settings.default_expires_seconds
    try:
        url = await service.get_preview_file_url(path, expires)
    except StorageError as e:
        raise to_http_exception(e)

    return FileURLResponse(url=url, file_path=path, expires_seconds=expires)


@router.get(
    "/cdn-url",
    response_model=FileURLResponse,
    status_code=status.HTTP_200_OK,
    summary="Get signed CDN URL",
    description="CDN URL carrying an MD5 sign/t authentication query",
)
async def get_cdn_url(
    path: PathQuery,
    api_key: AuthenticatedUser = None,
    signer: CdnSignerDep = None,
) -> FileURLResponse:
    url = signer.get_auth_url(path)
    logger.debug("Signed CDN URL", extra={"file_path": path})
    return FileURLResponse(url=url, file_path=path)
