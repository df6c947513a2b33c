"""
Object storage client for scene uploads.

Talks to Tencent COS through its S3-compatible API, so boto3 does all
the request signing. Mock mode keeps objects in memory and hands out
mock:// URLs, enabling API testing without a bucket.
"""

import logging
from contextvars import ContextVar
from dataclasses import dataclass
from typing import BinaryIO, Mapping, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ...core.storage.errors import InvalidInputError, SigningError, UpstreamError
from ...core.storage.models import Credentials
from ...core.storage.presigner import ObjectStorage

logger = logging.getLogger(__name__)

# HTTP header -> boto3 request parameter
HEADER_PARAMS = {
    "Content-Type": "ContentType",
    "Content-Disposition": "ContentDisposition",
    "Cache-Control": "CacheControl",
    "Content-Encoding": "ContentEncoding",
}

CLIENT_METHODS = {
    "GET": "get_object",
    "PUT": "put_object",
}

# Extra query parameters for the presign call in progress. Read by the
# before-sign hook so they become part of the signed query string.
_extra_query: ContextVar[Optional[dict[str, str]]] = ContextVar(
    "cos_extra_query", default=None
)


def _inject_query(request, **kwargs) -> None:
    extra = _extra_query.get()
    if not extra:
        return
    parts = urlsplit(request.url)
    query = parse_qsl(parts.query, keep_blank_values=True) + list(extra.items())
    request.url = urlunsplit(parts._replace(query=urlencode(query)))


def header_params(headers: Optional[Mapping[str, str]]) -> dict[str, str]:
    params: dict[str, str] = {}
    for name, value in (headers or {}).items():
        param = HEADER_PARAMS.get(name)
        if param is None:
            logger.warning("Ignoring unsupported upload header", extra={"header": name})
            continue
        params[param] = value
    return params


@dataclass
class StorageConfig:
    """
    Configuration for the COS bucket.

    `bucket` is the full bucket name including the app id suffix
    (e.g. "uploads-1250000000"), as COS expects it on the wire.
    """
    secret_id: str
    secret_key: str
    bucket: str
    region: str
    endpoint_url: Optional[str] = None

    @property
    def endpoint(self) -> str:
        if self.endpoint_url:
            return self.endpoint_url
        return f"https://cos.{self.region}.myqcloud.com"


class CosStorageClient:
    """
    COS object storage through boto3.

    Presigning with temporary credentials builds a one-off client for
    those keys; boto3 then adds the session token to the signed URL.
    The long-lived client is built once and reused.

    Methods are async to match the ObjectStorage protocol even though
    boto3 is synchronous.
    """

    def __init__(self, config: StorageConfig) -> None:
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for COS storage. Install with: pip install boto3"
            )

        self._config = config
        self._boto3 = boto3
        self._boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "virtual"},
        )
        self._client = self._build_client(
            Credentials(secret_id=config.secret_id, secret_key=config.secret_key)
        )

        logger.info(
            "Initialized COS storage client",
            extra={"bucket": config.bucket, "endpoint": config.endpoint},
        )

    def _build_client(self, credentials: Credentials):
        client = self._boto3.client(
            "s3",
            endpoint_url=self._config.endpoint,
            aws_access_key_id=credentials.secret_id,
            aws_secret_access_key=credentials.secret_key,
            aws_session_token=credentials.session_token,
            region_name=self._config.region,
            config=self._boto_config,
        )
        client.meta.events.register("before-sign.s3", _inject_query)
        return client

    def _client_for(self, credentials: Credentials):
        if (
            not credentials.is_temporary
            and credentials.secret_id == self._config.secret_id
            and credentials.secret_key == self._config.secret_key
        ):
            return self._client
        return self._build_client(credentials)

    async def presign_url(
        self,
        method: str,
        path: str,
        credentials: Credentials,
        expires_seconds: int,
        headers: Optional[Mapping[str, str]] = None,
        query: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Presigned GET or PUT for `path`.

        Headers become signed request parameters, so the uploader has to
        send the same values. Query parameters are signed as-is.
        """
        client_method = CLIENT_METHODS.get(method.upper())
        if client_method is None:
            raise InvalidInputError(f"Unsupported presign method: {method}")

        params = {"Bucket": self._config.bucket, "Key": path}
        params.update(header_params(headers))

        token = _extra_query.set(dict(query) if query else None)
        try:
            return self._client_for(credentials).generate_presigned_url(
                ClientMethod=client_method,
                Params=params,
                ExpiresIn=int(expires_seconds),
                HttpMethod=method.upper(),
            )
        except Exception as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"method": method, "storage_path": path, "error": str(e)},
            )
            raise SigningError(f"Presigned URL generation failed: {e}") from e
        finally:
            _extra_query.reset(token)

    async def put_object(
        self,
        path: str,
        body: Union[bytes, BinaryIO],
        headers: Mapping[str, str],
    ) -> None:
        try:
            self._client.put_object(
                Bucket=self._config.bucket,
                Key=path,
                Body=body,
                **header_params(headers),
            )
            logger.debug("Uploaded object", extra={"storage_path": path})
        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"storage_path": path, "error": str(e)},
            )
            raise UpstreamError(f"Upload failed: {e}") from e

    async def put_file(
        self,
        path: str,
        local_path: str,
        headers: Mapping[str, str],
    ) -> None:
        """Upload a local file; boto3 switches to multipart for large files."""
        try:
            self._client.upload_file(
                Filename=local_path,
                Bucket=self._config.bucket,
                Key=path,
                ExtraArgs=header_params(headers),
            )
            logger.debug(
                "Uploaded file",
                extra={"storage_path": path, "local_path": local_path},
            )
        except Exception as e:
            logger.error(
                "Failed to upload file",
                extra={"storage_path": path, "local_path": local_path, "error": str(e)},
            )
            raise UpstreamError(f"File upload failed: {e}") from e


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development and tests.

    Objects and their headers live in dictionaries; presigned "URLs" are
    mock:// URIs that spell out what a real signature would cover.
    """

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.headers: dict[str, dict[str, str]] = {}
        self.presign_calls: list[dict] = []
        logger.info("Initialized mock storage client (in-memory)")

    async def presign_url(
        self,
        method: str,
        path: str,
        credentials: Credentials,
        expires_seconds: int,
        headers: Optional[Mapping[str, str]] = None,
        query: Optional[Mapping[str, str]] = None,
    ) -> str:
        self.presign_calls.append({
            "method": method,
            "path": path,
            "credentials": credentials,
            "expires_seconds": expires_seconds,
            "headers": dict(headers or {}),
            "query": dict(query or {}),
        })

        params = list((query or {}).items())
        if credentials.session_token:
            params.append(("x-cos-security-token", credentials.session_token))
        params.append(("expires", str(expires_seconds)))
        return f"mock://storage/{method.upper()}/{path}?{urlencode(params)}"

    async def put_object(
        self,
        path: str,
        body: Union[bytes, BinaryIO],
        headers: Mapping[str, str],
    ) -> None:
        data = body if isinstance(body, bytes) else body.read()
        self.objects[path] = data
        self.headers[path] = dict(headers)

        logger.debug(
            "Stored object in mock storage",
            extra={"storage_path": path, "size_bytes": len(data)},
        )

    async def put_file(
        self,
        path: str,
        local_path: str,
        headers: Mapping[str, str],
    ) -> None:
        with open(local_path, "rb") as f:
            await self.put_object(path, f, headers)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> ObjectStorage:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        ObjectStorage implementation (COS or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return CosStorageClient(config)
