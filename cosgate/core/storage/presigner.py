"""
Presigned URL service.

Ties the pieces together for each request:

1. PathBuilder resolves path, content type and attachment flag
2. PolicyBuilder scopes a policy to exactly that object
3. The credential source turns the policy into signing keys
4. The object store signs the URL

The service holds no per-request state, so one instance can serve all
requests once its UploadConfig is built.
"""

import logging
import posixpath
import string
from typing import BinaryIO, Mapping, Optional, Protocol, Union
from urllib.parse import quote

from .credentials import CredentialSource
from .errors import InvalidInputError, SigningError, StorageError, UpstreamError
from .models import Credentials, DispositionType, PresignedInfo, SceneType, UploadTarget
from .paths import PathBuilder, normalize_path
from .policy import PolicyBuilder
from .registry import UploadConfig

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_SECONDS = 900

# Query parameters understood by the object store's document preview
# feature. Passed through untouched.
PREVIEW_PARAMS: dict[str, str] = {
    "ci-process": "doc-preview",
    "dstType": "html",
    "copyable": "0",
    "htmlwaterword": "",
    "htmlfillstyle": "cmdiYSgxOTIsMTkyLDE5MiwwLjYp",
    "htmlfront": "Ym9sZCAyMHB4IFNlcmlm",
    "htmlrotate": "325",
    "htmlhorizontal": "100",
    "htmlvertical": "100",
}

# RFC 7230 token characters, safe unquoted in a header parameter
_TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~")


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class ObjectStorage(Protocol):
    """
    The object store as seen by the presign service.

    Implementations sign with the credentials they are handed; a
    session token on the credentials must end up in the signed URL.
    """

    async def presign_url(
        self,
        method: str,
        path: str,
        credentials: Credentials,
        expires_seconds: int,
        headers: Optional[Mapping[str, str]] = None,
        query: Optional[Mapping[str, str]] = None,
    ) -> str:
        ...

    async def put_object(
        self,
        path: str,
        body: Union[bytes, BinaryIO],
        headers: Mapping[str, str],
    ) -> None:
        ...

    async def put_file(
        self,
        path: str,
        local_path: str,
        headers: Mapping[str, str],
    ) -> None:
        ...


def content_disposition(filename: str) -> str:
    """
    Attachment header for `filename`.

    Plain token names stay unquoted; anything else is quoted, and
    non-ASCII names also get an RFC 5987 filename*.
    """
    if all(c in _TOKEN_CHARS for c in filename):
        return f"attachment; filename={filename}"

    fallback = filename.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace("\\", "\\\\").replace('"', '\\"')
    value = f'attachment; filename="{fallback}"'
    if not filename.isascii():
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


class PresignService:
    """Upload and view URLs for scene-classified files."""

    def __init__(
        self,
        config: UploadConfig,
        storage: ObjectStorage,
        credentials: CredentialSource,
        policy_builder: PolicyBuilder,
        path_builder: Optional[PathBuilder] = None,
    ) -> None:
        self._config = config
        self._storage = storage
        self._credentials = credentials
        self._policy = policy_builder
        self._paths = path_builder or PathBuilder(config)

    # ------------------------------------------------------------------
    # Path resolution
    # ------------------------------------------------------------------

    def build_upload_target(
        self,
        scene_type: SceneType,
        filename: str,
        *paths: str,
    ) -> UploadTarget:
        return self._paths.build_upload_target(scene_type, filename, *paths)

    def _upload_headers(
        self,
        target: UploadTarget,
        disposition: DispositionType,
        filename: str,
    ) -> dict[str, str]:
        headers = {"Content-Type": target.content_type}
        if target.attachment or disposition == DispositionType.ATTACHMENT:
            headers["Content-Disposition"] = content_disposition(filename)
        return headers

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    async def get_upload_credentials(
        self,
        resources: list[str],
        content_types: list[str],
        expires_seconds: int = DEFAULT_EXPIRES_SECONDS,
    ) -> Credentials:
        """Keys allowed to upload only `resources` with `content_types`."""
        statements = self._policy.upload_statements(resources, content_types)
        return await self._credentials.signing_credentials(statements, expires_seconds)

    async def get_view_credentials(
        self,
        resources: list[str],
        expires_seconds: int = DEFAULT_EXPIRES_SECONDS,
    ) -> Credentials:
        """Keys allowed to read only `resources`."""
        statements = self._policy.view_statements(resources)
        return await self._credentials.signing_credentials(statements, expires_seconds)

    # ------------------------------------------------------------------
    # Presigned URLs
    # ------------------------------------------------------------------

    async def get_upload_presigned_info(
        self,
        scene_type: SceneType,
        disposition: DispositionType,
        filename: str,
        expires_seconds: int = DEFAULT_EXPIRES_SECONDS,
        *paths: str,
    ) -> PresignedInfo:
        """
        Presigned PUT for a new upload in `scene_type`.

        The returned headers are part of the signature; the client has
        to send them verbatim with the upload.
        """
        target = self.build_upload_target(scene_type, filename, *paths)

        credentials = await self.get_upload_credentials(
            [target.path], [target.content_type], expires_seconds
        )
        headers = self._upload_headers(target, disposition, filename)

        url = await self._sign("PUT", target.path, credentials, expires_seconds, headers=headers)

        logger.info(
            "Presigned upload URL",
            extra={
                "scene_type": scene_type,
                "file_path": target.path,
                "content_type": target.content_type,
                "attachment": "Content-Disposition" in headers,
                "expires_seconds": expires_seconds,
            },
        )

        return PresignedInfo(upload_url=url, file_path=target.path, headers=headers)

    async def get_view_presigned_url(
        self,
        path: str,
        params: Optional[Mapping[str, str]] = None,
        expires_seconds: int = DEFAULT_EXPIRES_SECONDS,
    ) -> str:
        """Presigned GET for an existing object, with extra query params."""
        if not path:
            raise InvalidInputError("Path cannot be empty")
        file_path = normalize_path(path)
        if not file_path:
            raise InvalidInputError(f"Path does not name an object: {path}")

        credentials = await self.get_view_credentials([file_path], expires_seconds)

        return await self._sign(
            "GET",
            file_path,
            credentials,
            expires_seconds,
            query=dict(params or {}),
        )

    async def get_preview_file_url(
        self,
        path: str,
        expires_seconds: int = DEFAULT_EXPIRES_SECONDS,
    ) -> str:
        """View URL rendered through the document preview feature."""
        return await self.get_view_presigned_url(path, PREVIEW_PARAMS, expires_seconds)

    async def get_file_url(
        self,
        path: str,
        expires_seconds: int = DEFAULT_EXPIRES_SECONDS,
    ) -> str:
        return await self.get_view_presigned_url(path, {}, expires_seconds)

    async def _sign(
        self,
        method: str,
        path: str,
        credentials: Credentials,
        expires_seconds: int,
        headers: Optional[Mapping[str, str]] = None,
        query: Optional[Mapping[str, str]] = None,
    ) -> str:
        try:
            return await self._storage.presign_url(
                method,
                path,
                credentials,
                int(expires_seconds),
                headers=headers,
                query=query,
            )
        except StorageError:
            raise
        except Exception as e:
            logger.error(
                "Failed to presign URL",
                extra={"method": method, "file_path": path, "error": str(e)},
            )
            raise SigningError(f"Presigned URL generation failed: {e}") from e

    # ------------------------------------------------------------------
    # Server-side uploads
    # ------------------------------------------------------------------

    async def put_object(
        self,
        scene_type: SceneType,
        disposition: DispositionType,
        filename: str,
        body: Union[bytes, BinaryIO],
        *paths: str,
    ) -> str:
        """Upload `body` as `filename` into `scene_type`; returns its path."""
        target = self.build_upload_target(scene_type, filename, *paths)
        headers = self._upload_headers(target, disposition, filename)

        try:
            await self._storage.put_object(target.path, body, headers)
        except StorageError:
            raise
        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"file_path": target.path, "error": str(e)},
            )
            raise UpstreamError(f"Upload failed: {e}") from e

        logger.info(
            "Uploaded object",
            extra={"scene_type": scene_type, "file_path": target.path},
        )
        return target.path

    async def put_file(
        self,
        scene_type: SceneType,
        disposition: DispositionType,
        local_path: str,
        *paths: str,
    ) -> str:
        """Upload a local file; the stored name derives from its base name."""
        filename = posixpath.basename(local_path.replace("\\", "/"))
        target = self.build_upload_target(scene_type, filename, *paths)
        headers = self._upload_headers(target, disposition, filename)

        try:
            await self._storage.put_file(target.path, local_path, headers)
        except StorageError:
            raise
        except Exception as e:
            logger.error(
                "Failed to upload file",
                extra={"file_path": target.path, "local_path": local_path, "error": str(e)},
            )
            raise UpstreamError(f"File upload failed: {e}") from e

        logger.info(
            "Uploaded file",
            extra={"scene_type": scene_type, "file_path": target.path},
        )
        return target.path
