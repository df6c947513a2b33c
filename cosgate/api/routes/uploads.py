"""
Upload endpoints.

Two ways to get a file into a scene:
1. Presigned PUT: the client asks for a URL, then uploads straight to
   the object store with the returned headers
2. Direct upload: the client posts the file here and we store it

The presigned flow keeps large files off the API servers; direct upload
is for small files and server-to-server callers.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, UploadFile, status
from pydantic import BaseModel, Field

from ...core.storage.errors import StorageError
from ...core.storage.models import DispositionType
from ..dependencies import AuthenticatedUser, PresignServiceDep, SettingsDep
from ..errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class PresignUploadRequest(BaseModel):
    """Request for a presigned upload URL."""
    scene_type: int = Field(description="Scene the file belongs to")
    filename: str = Field(min_length=1, description="Original filename, including extension")
    disposition: DispositionType = Field(
        default=DispositionType.INLINE,
        description="attachment forces downloads to save the file instead of rendering it"
    )
    paths: list[str] = Field(
        default_factory=list,
        description="Extra path segments between the scene prefix and the file name"
    )
    expires_seconds: Optional[int] = Field(
        default=None,
        ge=1,
        le=86400,
        description="URL lifetime. Defaults to DEFAULT_EXPIRES_SECONDS."
    )


class PresignUploadResponse(BaseModel):
    """Presigned upload URL and the headers the upload must carry."""
    upload_url: str = Field(description="Presigned PUT URL")
    file_path: str = Field(description="Object path the file will be stored at")
    headers: dict[str, str] = Field(
        description="Send exactly these headers with the PUT or the signature check fails"
    )
    expires_seconds: int = Field(description="URL lifetime")


class UploadResponse(BaseModel):
    """Result of a direct upload."""
    file_path: str = Field(description="Object path the file was stored at")
    size_bytes: int = Field(description="Uploaded size")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/presign",
    response_model=PresignUploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Get presigned upload URL",
    description="Resolve the storage path for a scene upload and sign a PUT URL for it",
)
async def presign_upload(
    request: PresignUploadRequest,
    api_key: AuthenticatedUser = None,
    service: PresignServiceDep = None,
    settings: SettingsDep = None,
) -> PresignUploadResponse:
    expires_seconds = request.expires_seconds or settings.default_expires_seconds

    try:
        info = await service.get_upload_presigned_info(
            request.scene_type,
            request.disposition,
            request.filename,
            expires_seconds,
            *request.paths,
        )
    except StorageError as e:
        logger.warning(
            "Presign upload rejected",
            extra={
                "scene_type": request.scene_type,
                "upload_filename": request.filename,
                "error": str(e),
            },
        )
        raise to_http_exception(e)

    return PresignUploadResponse(
        upload_url=info.upload_url,
        file_path=info.file_path,
        headers=info.headers,
        expires_seconds=expires_seconds,
    )


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file",
    description="Store a file in a scene through the API",
)
async def upload_file(
    file: Annotated[UploadFile, File(description="File to store")],
    scene_type: Annotated[int, Form(description="Scene the file belongs to")],
    disposition: Annotated[DispositionType, Form()] = DispositionType.INLINE,
    paths: Annotated[Optional[list[str]], Form()] = None,
    api_key: AuthenticatedUser = None,
    service: PresignServiceDep = None,
) -> UploadResponse:
    filename = file.filename or ""
    data = await file.read()

    logger.info(
        "File upload started",
        extra={
            "scene_type": scene_type,
            "upload_filename": filename,
            "size_bytes": len(data),
        },
    )

    try:
        file_path = await service.put_object(
            scene_type,
            disposition,
            filename,
            data,
            *(paths or []),
        )
    except StorageError as e:
        raise to_http_exception(e)

    return UploadResponse(file_path=file_path, size_bytes=len(data))
