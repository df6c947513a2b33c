"""
Where signing keys come from.

Two deployments exist side by side:

- temporary: every signing call asks the STS issuer for fresh keys
  scoped to exactly the objects (and content types) being signed
- static: one long-lived key pair signs everything

The presign service only sees the CredentialSource protocol, so the
path and policy logic is shared by both.
"""

import logging
from typing import Any, Optional, Protocol, Sequence

from .errors import CredentialIssuanceError, StorageError, UpstreamError
from .models import Credentials, PolicyStatement
from .policy import policy_document

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class CredentialIssuer(Protocol):
    """
    An STS-like service that hands out scoped temporary keys.

    Returns None when the issuer answered without credentials.
    """

    async def issue(
        self,
        policy: dict[str, Any],
        duration_seconds: int,
    ) -> Optional[Credentials]:
        ...


class CredentialSource(Protocol):
    """Produces the keys that sign a URL for the given policy."""

    async def signing_credentials(
        self,
        statements: Sequence[PolicyStatement],
        expires_seconds: int,
    ) -> Credentials:
        ...


# ---------------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------------

class TemporaryCredentialSource:
    """Fresh, policy-scoped keys from the issuer for every call."""

    def __init__(self, issuer: CredentialIssuer) -> None:
        self._issuer = issuer

    async def signing_credentials(
        self,
        statements: Sequence[PolicyStatement],
        expires_seconds: int,
    ) -> Credentials:
        policy = policy_document(statements)

        try:
            credentials = await self._issuer.issue(policy, int(expires_seconds))
        except StorageError:
            raise
        except Exception as e:
            logger.error(
                "Credential issuer call failed",
                extra={"error": str(e), "duration_seconds": expires_seconds},
            )
            raise UpstreamError(f"Credential issuer failed: {e}") from e

        if credentials is None or not credentials.secret_id or not credentials.secret_key:
            logger.error(
                "Credential issuer returned no credentials",
                extra={"resources": [r for s in statements for r in s.resource]},
            )
            raise CredentialIssuanceError("Credential issuer returned empty credentials")

        logger.debug(
            "Issued temporary credentials",
            extra={
                "duration_seconds": expires_seconds,
                "expiration": credentials.expiration.isoformat() if credentials.expiration else None,
            },
        )
        return credentials


class StaticCredentialSource:
    """One long-lived key pair; the policy is not consulted."""

    def __init__(self, secret_id: str, secret_key: str) -> None:
        self._credentials = Credentials(secret_id=secret_id, secret_key=secret_key)

    async def signing_credentials(
        self,
        statements: Sequence[PolicyStatement],
        expires_seconds: int,
    ) -> Credentials:
        return self._credentials
