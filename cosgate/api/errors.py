"""
Mapping from storage error kinds to HTTP responses.

Caller mistakes become 4xx, collaborator failures 502. Messages come
from our own exceptions, never from the SDKs, so nothing sensitive
reaches the client.
"""

import logging

from fastapi import HTTPException, status

from ..core.storage.errors import (
    CredentialIssuanceError,
    InvalidInputError,
    SceneNotFoundError,
    SigningError,
    StorageError,
    UnknownContentTypeError,
    UnsupportedExtensionError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[StorageError], int]] = [
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (UnsupportedExtensionError, status.HTTP_400_BAD_REQUEST),
    (UnknownContentTypeError, status.HTTP_400_BAD_REQUEST),
    (SceneNotFoundError, status.HTTP_404_NOT_FOUND),
    (CredentialIssuanceError, status.HTTP_502_BAD_GATEWAY),
    (SigningError, status.HTTP_502_BAD_GATEWAY),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
]


def to_http_exception(error: StorageError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            break
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if status_code >= 500:
        logger.error(
            "Storage operation failed",
            extra={"error_type": type(error).__name__, "error": str(error)},
        )
        detail = "Object storage is unavailable. Please retry."
    else:
        detail = str(error)

    return HTTPException(status_code=status_code, detail=detail)
