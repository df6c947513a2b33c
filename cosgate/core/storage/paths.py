"""
Object path construction for uploads.

Every uploaded file gets a fresh name so two users uploading
"report.pdf" never overwrite each other:

    <scene path>/<extra segments>/<base64url(uuid + filename)>_<ns>.<ext>

The encoded token can be decoded back to the request's uuid and the
original filename, which makes stored objects traceable to uploads.
"""

import base64
import posixpath
import time
import uuid
from typing import Callable, Sequence

from .errors import (
    InvalidInputError,
    MissingExtensionError,
    UnknownContentTypeError,
    UnsupportedExtensionError,
)
from .models import SceneType, UploadTarget, normalize_extension
from .registry import UploadConfig


def normalize_path(path: str) -> str:
    """
    Clean an object path and drop its leading slash.

    Collapses duplicate slashes and `.`/`..` segments (never climbing
    above the root), removes any trailing slash. Idempotent.
    """
    cleaned = posixpath.normpath("/" + (path or "").lstrip("/"))
    return cleaned.lstrip("/")


def join_path(*segments: str) -> str:
    return normalize_path("/".join(s for s in segments if s))


def check_segments(segments: Sequence[str]) -> None:
    """Reject extra path segments that try to climb out of the scene prefix."""
    for segment in segments:
        if ".." in (segment or "").replace("\\", "/").split("/"):
            raise InvalidInputError(f"Path segment may not contain '..': {segment}")


def file_extension(filename: str) -> str:
    """Extension of the base name, lower-cased, without the dot."""
    name = posixpath.basename(filename.replace("\\", "/"))
    if "." not in name:
        return ""
    return normalize_extension(name.rsplit(".", 1)[1])


def encode_token(unique_id: str, filename: str) -> str:
    return base64.urlsafe_b64encode(f"{unique_id}{filename}".encode("utf-8")).decode("ascii")


class PathBuilder:
    """
    Resolves where an upload for a scene should be stored.

    `clock_ns` and `id_factory` are injectable so tests get stable paths.
    """

    def __init__(
        self,
        config: UploadConfig,
        clock_ns: Callable[[], int] = time.time_ns,
        id_factory: Callable[[], object] = uuid.uuid4,
    ) -> None:
        self._config = config
        self._clock_ns = clock_ns
        self._id_factory = id_factory

    def build_upload_target(
        self,
        scene_type: SceneType,
        filename: str,
        *paths: str,
    ) -> UploadTarget:
        if not filename:
            raise InvalidInputError("Filename cannot be empty")
        if any(ord(c) < 32 or ord(c) == 127 for c in filename):
            raise InvalidInputError("Filename contains control characters")

        ext = file_extension(filename)
        if not ext:
            raise MissingExtensionError(f"Filename has no extension: {filename}")

        scene = self._config.scenes.lookup(scene_type)
        if not scene.allows(ext):
            raise UnsupportedExtensionError(
                f"Scene {scene_type} does not accept '.{ext}' files"
            )

        attachment = scene.forces_attachment(ext)

        content_type = self._config.content_types.resolve(ext)
        if not content_type:
            raise UnknownContentTypeError(f"No content type registered for '.{ext}'")

        unique_name = "{}_{}.{}".format(
            encode_token(str(self._id_factory()), filename),
            self._clock_ns(),
            ext,
        )
        check_segments(paths)
        path = join_path(scene.path, *paths, unique_name)

        prefix = normalize_path(scene.path)
        if prefix and not path.startswith(prefix + "/"):
            raise InvalidInputError(f"Upload path escapes scene {scene_type}: {path}")

        return UploadTarget(path=path, content_type=content_type, attachment=attachment)
