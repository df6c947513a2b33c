"""
Domain models for scene-based uploads.

These are plain values: no SDK types leak in here. The infrastructure
layer translates them to and from boto3 calls.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


SceneType = int


class DispositionType(Enum):
    """How the object store should serve the file back."""
    INLINE = "inline"
    ATTACHMENT = "attachment"


@dataclass(frozen=True)
class Scene:
    """
    A business context for uploaded files.

    `path` is the storage prefix, `extensions` the accepted file
    suffixes and `attachments` the suffixes that must always be served
    as downloads (e.g. txt, html) regardless of what the caller asks for.

    Extensions are stored lower-cased without the leading dot so that
    lookups in the path builder are plain set membership.
    """
    scene_type: SceneType
    path: str
    extensions: frozenset[str] = frozenset()
    attachments: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "extensions", normalize_extensions(self.extensions))
        object.__setattr__(self, "attachments", normalize_extensions(self.attachments))

    def allows(self, extension: str) -> bool:
        return extension in self.extensions

    def forces_attachment(self, extension: str) -> bool:
        return extension in self.attachments


def normalize_extension(extension: str) -> str:
    """'.PDF' -> 'pdf'"""
    return extension.strip().lstrip(".").lower()


def normalize_extensions(extensions) -> frozenset[str]:
    normalized = (normalize_extension(ext) for ext in extensions)
    return frozenset(ext for ext in normalized if ext)


@dataclass(frozen=True)
class UploadTarget:
    """Where an upload goes and how it must be sent."""
    path: str
    content_type: str
    attachment: bool = False


@dataclass
class PolicyStatement:
    """
    One statement of a credential policy.

    Serialises to the issuer's lower-case policy keys. `condition` is
    only present on upload statements.
    """
    action: list[str]
    resource: list[str]
    effect: str = "allow"
    condition: Optional[dict[str, dict[str, Any]]] = None

    def to_dict(self) -> dict[str, Any]:
        statement: dict[str, Any] = {
            "action": list(self.action),
            "effect": self.effect,
            "resource": list(self.resource),
        }
        if self.condition:
            statement["condition"] = self.condition
        return statement


@dataclass(frozen=True)
class Credentials:
    """
    Keys used to sign a URL.

    Long-lived keys have no session token or expiration; temporary keys
    from the issuer carry both. Never cache these across requests.
    """
    secret_id: str
    secret_key: str
    session_token: Optional[str] = None
    expiration: Optional[datetime] = None

    @property
    def is_temporary(self) -> bool:
        return self.session_token is not None

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks
        return f"Credentials(secret_id={self.secret_id[:4]}..., temporary={self.is_temporary})"


@dataclass
class PresignedInfo:
    """
    Everything a client needs to upload straight to the object store.

    The client must send exactly `headers` with its PUT, otherwise the
    signature check on the object store fails.
    """
    upload_url: str
    file_path: str
    headers: dict[str, str] = field(default_factory=dict)
