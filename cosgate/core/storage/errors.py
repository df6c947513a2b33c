"""
Error kinds raised by the upload/presign layer.

Every error is returned to the caller; nothing here is retried. The HTTP
layer maps these onto status codes, so keep the hierarchy shallow and
meaningful rather than one class per call site.
"""


class StorageError(Exception):
    """Base class for all upload, credential and signing failures."""
    pass


class RegistrationError(StorageError):
    """Raised at startup when a scene or content type is malformed."""
    pass


class InvalidInputError(StorageError):
    """Empty filename, path or resource list."""
    pass


class MissingExtensionError(InvalidInputError):
    """Filename has no extension to classify it by."""
    pass


class EmptyResourcesError(InvalidInputError):
    """A credential policy was requested for no resources."""
    pass


class EmptyContentTypesError(InvalidInputError):
    """An upload policy was requested without content types."""
    pass


class SceneNotFoundError(StorageError):
    """No scene is registered under the requested type."""
    pass


class UnsupportedExtensionError(StorageError):
    """The scene does not accept files with this extension."""
    pass


class UnknownContentTypeError(StorageError):
    """No content type is registered for the extension."""
    pass


class CredentialIssuanceError(StorageError):
    """The credential issuer failed or returned an empty payload."""
    pass


class SigningError(StorageError):
    """The object store could not produce a presigned URL."""
    pass


class UpstreamError(StorageError):
    """Any other failure from the object store or credential issuer."""
    pass
