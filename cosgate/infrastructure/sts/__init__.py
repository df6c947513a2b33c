"""
Temporary credential issuance (STS).
"""

from .client import (
    MockCredentialIssuer,
    StsConfig,
    StsCredentialIssuer,
    create_credential_issuer,
    credentials_from_response,
)

__all__ = [
    "MockCredentialIssuer",
    "StsConfig",
    "StsCredentialIssuer",
    "create_credential_issuer",
    "credentials_from_response",
]
