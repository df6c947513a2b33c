"""
Temporary credential issuer.

Calls Tencent Cloud STS GetFederationToken with the policy built by the
core layer. Mock mode hands out fake keys so the temporary credential
flow can be exercised without an STS endpoint.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import quote, urlsplit
from uuid import uuid4

from ...core.storage.credentials import CredentialIssuer
from ...core.storage.errors import CredentialIssuanceError
from ...core.storage.models import Credentials

logger = logging.getLogger(__name__)

DEFAULT_STS_ENDPOINT = "sts.tencentcloudapi.com"

# STS accepts 15 minutes to 36 hours for federation tokens
MIN_DURATION_SECONDS = 900
MAX_DURATION_SECONDS = 129600


def clamp_duration(duration_seconds: int) -> int:
    return max(MIN_DURATION_SECONDS, min(MAX_DURATION_SECONDS, int(duration_seconds)))


def endpoint_host(endpoint_url: Optional[str]) -> str:
    """The SDK wants a bare host; accept full URLs in config too."""
    if not endpoint_url:
        return DEFAULT_STS_ENDPOINT
    return urlsplit(endpoint_url).netloc or endpoint_url.strip("/")


def credentials_from_response(response: Any) -> Optional[Credentials]:
    """
    Map a GetFederationTokenResponse onto Credentials.

    Returns None when the response carries no credentials block.
    """
    payload = getattr(response, "Credentials", None) if response else None
    if payload is None:
        return None

    expired_time = getattr(response, "ExpiredTime", None)
    expiration = (
        datetime.fromtimestamp(expired_time, tz=timezone.utc)
        if expired_time else None
    )

    return Credentials(
        secret_id=payload.TmpSecretId or "",
        secret_key=payload.TmpSecretKey or "",
        session_token=payload.Token or None,
        expiration=expiration,
    )


@dataclass
class StsConfig:
    """Configuration for the STS endpoint."""
    secret_id: str
    secret_key: str
    region: str
    endpoint_url: Optional[str] = None
    federation_name: str = "cosgate"


class StsCredentialIssuer:
    """
    STS issuer through the Tencent Cloud SDK.

    The token only ever grants what the policy allows, so the policy
    builder is the real access control here. `client` can be any object
    with a GetFederationToken method; it is built from config when
    omitted.
    """

    def __init__(self, config: StsConfig, client: Any = None) -> None:
        try:
            from tencentcloud.sts.v20180813 import models
        except ImportError:
            raise ImportError(
                "tencentcloud-sdk-python-sts is required for STS credentials. "
                "Install with: pip install tencentcloud-sdk-python-sts"
            )

        self._config = config
        self._models = models
        self._client = client if client is not None else self._build_client(config)

        logger.info(
            "Initialized STS credential issuer",
            extra={"region": config.region, "endpoint": endpoint_host(config.endpoint_url)},
        )

    @staticmethod
    def _build_client(config: StsConfig):
        from tencentcloud.common import credential
        from tencentcloud.common.profile.client_profile import ClientProfile
        from tencentcloud.common.profile.http_profile import HttpProfile
        from tencentcloud.sts.v20180813 import sts_client

        http_profile = HttpProfile()
        http_profile.endpoint = endpoint_host(config.endpoint_url)
        return sts_client.StsClient(
            credential.Credential(config.secret_id, config.secret_key),
            config.region,
            ClientProfile(httpProfile=http_profile),
        )

    async def issue(
        self,
        policy: dict[str, Any],
        duration_seconds: int,
    ) -> Optional[Credentials]:
        request = self._models.GetFederationTokenRequest()
        request.Name = self._config.federation_name
        # STS expects the policy JSON url-encoded
        request.Policy = quote(json.dumps(policy, separators=(",", ":")))
        request.DurationSeconds = clamp_duration(duration_seconds)

        try:
            response = self._client.GetFederationToken(request)
        except Exception as e:
            logger.error(
                "Failed to issue temporary credentials",
                extra={"region": self._config.region, "error": str(e)},
            )
            raise CredentialIssuanceError(f"Credential issuance failed: {e}") from e

        return credentials_from_response(response)


# ---------------------------------------------------------------------------
# Mock Issuer for Local Development
# ---------------------------------------------------------------------------

class MockCredentialIssuer:
    """
    Hands out fake temporary keys and remembers every policy it saw.

    Not suitable for production; real object stores reject these keys.
    """

    def __init__(self) -> None:
        self.issued: list[dict[str, Any]] = []
        logger.info("Initialized mock credential issuer")

    async def issue(
        self,
        policy: dict[str, Any],
        duration_seconds: int,
    ) -> Optional[Credentials]:
        self.issued.append({"policy": policy, "duration_seconds": duration_seconds})
        suffix = uuid4().hex[:12]
        return Credentials(
            secret_id=f"mock-id-{suffix}",
            secret_key=f"mock-key-{suffix}",
            session_token=f"mock-token-{suffix}",
            expiration=datetime.now(timezone.utc) + timedelta(seconds=duration_seconds),
        )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_credential_issuer(
    config: Optional[StsConfig] = None,
    mock_mode: bool = False,
) -> CredentialIssuer:
    if mock_mode:
        return MockCredentialIssuer()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return StsCredentialIssuer(config)
