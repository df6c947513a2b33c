"""
Unit tests for the Tencent Cloud STS issuer.

The SDK client is swapped for a recorder that returns real SDK response
models, so request building and response parsing run without a network.
"""

import asyncio
import json
from datetime import datetime, timezone
from urllib.parse import unquote

import pytest
from tencentcloud.common.exception.tencent_cloud_sdk_exception import (
    TencentCloudSDKException,
)
from tencentcloud.sts.v20180813 import models

from cosgate.core.storage.errors import CredentialIssuanceError
from cosgate.infrastructure.sts.client import (
    DEFAULT_STS_ENDPOINT,
    StsConfig,
    StsCredentialIssuer,
    credentials_from_response,
    endpoint_host,
)

# Body of a GetFederationToken success, as returned under "Response"
FEDERATION_TOKEN_RESPONSE = {
    "Credentials": {
        "Token": "tmp-token",
        "TmpSecretId": "AKIDtmp",
        "TmpSecretKey": "tmp-key",
    },
    "ExpiredTime": 1700001800,
    "Expiration": "2023-11-14T22:43:20Z",
    "RequestId": "req-1",
}

POLICY = {
    "version": "2.0",
    "statement": [{
        "action": ["name/cos:GetObject"],
        "effect": "allow",
        "resource": ["qcs::cos:ap-guangzhou:uid/1250000000:uploads-1250000000/docs/a.pdf"],
    }],
}


def run(coro):
    return asyncio.run(coro)


def federation_response(body: dict) -> models.GetFederationTokenResponse:
    response = models.GetFederationTokenResponse()
    response.from_json_string(json.dumps(body))
    return response


class RecordingStsClient:
    """Stands in for StsClient; keeps the requests it was sent."""

    def __init__(self, response=None, error=None):
        self.requests = []
        self._response = response
        self._error = error

    def GetFederationToken(self, request):
        self.requests.append(request)
        if self._error is not None:
            raise self._error
        return self._response


@pytest.fixture
def config() -> StsConfig:
    return StsConfig(secret_id="AKIDroot", secret_key="root-key", region="ap-guangzhou")


class TestCredentialsFromResponse:
    """Tests for mapping STS responses onto Credentials."""

    def test_maps_temporary_keys_and_expiry(self):
        creds = credentials_from_response(federation_response(FEDERATION_TOKEN_RESPONSE))

        assert creds.secret_id == "AKIDtmp"
        assert creds.secret_key == "tmp-key"
        assert creds.session_token == "tmp-token"
        assert creds.expiration == datetime.fromtimestamp(1700001800, tz=timezone.utc)
        assert creds.is_temporary

    def test_missing_credentials_block_is_none(self):
        assert credentials_from_response(federation_response({"RequestId": "req-2"})) is None

    def test_none_response_is_none(self):
        assert credentials_from_response(None) is None


class TestStsCredentialIssuer:
    """Tests for the GetFederationToken call."""

    def test_sends_url_encoded_policy(self, config):
        client = RecordingStsClient(federation_response(FEDERATION_TOKEN_RESPONSE))
        issuer = StsCredentialIssuer(config, client=client)

        creds = run(issuer.issue(POLICY, 1800))

        request = client.requests[0]
        assert request.Name == "cosgate"
        assert request.DurationSeconds == 1800
        assert "%22" in request.Policy
        assert json.loads(unquote(request.Policy)) == POLICY
        assert creds.session_token == "tmp-token"

    def test_clamps_duration(self, config):
        client = RecordingStsClient(federation_response(FEDERATION_TOKEN_RESPONSE))
        issuer = StsCredentialIssuer(config, client=client)

        run(issuer.issue(POLICY, 60))

        assert client.requests[0].DurationSeconds == 900

    def test_sdk_error_becomes_issuance_error(self, config):
        error = TencentCloudSDKException("AuthFailure.SignatureFailure", "bad signature")
        issuer = StsCredentialIssuer(config, client=RecordingStsClient(error=error))

        with pytest.raises(CredentialIssuanceError):
            run(issuer.issue(POLICY, 1800))

    def test_empty_response_returns_none(self, config):
        issuer = StsCredentialIssuer(
            config, client=RecordingStsClient(federation_response({"RequestId": "r"}))
        )

        assert run(issuer.issue(POLICY, 1800)) is None


@pytest.mark.parametrize("configured,expected", [
    (None, DEFAULT_STS_ENDPOINT),
    ("", DEFAULT_STS_ENDPOINT),
    ("sts.internal.tencentcloudapi.com", "sts.internal.tencentcloudapi.com"),
    ("https://sts.ap-guangzhou.tencentcloudapi.com/", "sts.ap-guangzhou.tencentcloudapi.com"),
])
def test_endpoint_host(configured, expected):
    assert endpoint_host(configured) == expected
