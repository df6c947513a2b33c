"""
Credential policy statements for the STS issuer.

Pure functions of (app id, bucket, region, inputs): no I/O, so policies
can be asserted on directly in tests. Action names follow the COS CAM
permission list.
"""

from typing import Any, Sequence

from .errors import EmptyContentTypesError, EmptyResourcesError
from .models import PolicyStatement
from .paths import normalize_path

POLICY_VERSION = "2.0"

UPLOAD_ACTIONS = (
    "name/cos:PutObject",
    "name/cos:PostObject",
    "name/cos:InitiateMultipartUpload",
    "name/cos:ListMultipartUploads",
    "name/cos:ListParts",
    "name/cos:UploadPart",
    "name/cos:CompleteMultipartUpload",
    "name/cos:AbortMultipartUpload",
)

VIEW_ACTIONS = ("name/cos:GetObject",)

CONTENT_TYPE_CONDITION = "string_equal_ignore_case"
CONTENT_TYPE_KEY = "cos:content-type"


class PolicyBuilder:
    """Builds statements scoped to objects in one bucket."""

    def __init__(
        self,
        app_id: str,
        bucket: str,
        region: str,
        scheme: str = "qcs::cos",
    ) -> None:
        self.app_id = app_id
        self.bucket = bucket
        self.region = region
        self.scheme = scheme

    @property
    def resource_base(self) -> str:
        return f"{self.scheme}:{self.region}:uid/{self.app_id}:{self.bucket}"

    def resource_id(self, path: str) -> str:
        normalized = normalize_path(path)
        if not normalized:
            return self.resource_base
        return f"{self.resource_base}/{normalized}"

    def upload_statements(
        self,
        resources: Sequence[str],
        content_types: Sequence[str],
    ) -> list[PolicyStatement]:
        if not resources:
            raise EmptyResourcesError("Resource paths cannot be empty")
        if not content_types:
            raise EmptyContentTypesError("Content types cannot be empty")

        return [
            PolicyStatement(
                action=list(UPLOAD_ACTIONS),
                resource=[self.resource_id(r) for r in resources],
                condition={
                    CONTENT_TYPE_CONDITION: {CONTENT_TYPE_KEY: list(content_types)},
                },
            )
        ]

    def view_statements(self, resources: Sequence[str]) -> list[PolicyStatement]:
        if not resources:
            raise EmptyResourcesError("Resource paths cannot be empty")

        return [
            PolicyStatement(
                action=list(VIEW_ACTIONS),
                resource=[self.resource_id(r) for r in resources],
            )
        ]


def policy_document(statements: Sequence[PolicyStatement]) -> dict[str, Any]:
    """The document handed to the issuer, JSON-serialisable."""
    return {
        "version": POLICY_VERSION,
        "statement": [s.to_dict() for s in statements],
    }
