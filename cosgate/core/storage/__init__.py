"""
Scene-based upload paths, credential policies and presigned URLs.

Framework-agnostic: the object store and the credential issuer are
reached through the protocols defined here.
"""

from .credentials import (
    CredentialIssuer,
    CredentialSource,
    StaticCredentialSource,
    TemporaryCredentialSource,
)
from .errors import (
    CredentialIssuanceError,
    EmptyContentTypesError,
    EmptyResourcesError,
    InvalidInputError,
    MissingExtensionError,
    RegistrationError,
    SceneNotFoundError,
    SigningError,
    StorageError,
    UnknownContentTypeError,
    UnsupportedExtensionError,
    UpstreamError,
)
from .models import (
    Credentials,
    DispositionType,
    PolicyStatement,
    PresignedInfo,
    Scene,
    SceneType,
    UploadTarget,
)
from .paths import PathBuilder, normalize_path
from .policy import PolicyBuilder, policy_document
from .presigner import ObjectStorage, PresignService
from .registry import ContentTypeRegistry, SceneRegistry, UploadConfig

__all__ = [
    "ContentTypeRegistry",
    "CredentialIssuanceError",
    "CredentialIssuer",
    "CredentialSource",
    "Credentials",
    "DispositionType",
    "EmptyContentTypesError",
    "EmptyResourcesError",
    "InvalidInputError",
    "MissingExtensionError",
    "ObjectStorage",
    "PathBuilder",
    "PolicyBuilder",
    "PolicyStatement",
    "PresignService",
    "PresignedInfo",
    "RegistrationError",
    "Scene",
    "SceneNotFoundError",
    "SceneRegistry",
    "SceneType",
    "SigningError",
    "StaticCredentialSource",
    "StorageError",
    "TemporaryCredentialSource",
    "UnknownContentTypeError",
    "UnsupportedExtensionError",
    "UploadConfig",
    "UploadTarget",
    "UpstreamError",
    "normalize_path",
    "policy_document",
]
