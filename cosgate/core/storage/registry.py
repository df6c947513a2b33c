"""
Scene and content-type registries.

Both are filled once at startup and only read afterwards, so they carry
no locking. Registering while requests are being served is not
supported.

Invalid entries raise RegistrationError instead of being dropped: a
misconfigured scene should stop the process at boot, not surface later
as "scene not found" for every upload.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .errors import RegistrationError, SceneNotFoundError
from .models import Scene, SceneType, normalize_extension

logger = logging.getLogger(__name__)


class SceneRegistry:
    """Scenes keyed by their type."""

    def __init__(self) -> None:
        self._scenes: dict[SceneType, Scene] = {}

    def register(self, scene: Scene) -> None:
        """Store a scene, replacing any earlier one with the same type."""
        if scene is None:
            raise RegistrationError("Scene is required")
        if not scene.path.strip("/ "):
            raise RegistrationError(f"Scene {scene.scene_type} has an empty path")
        if not scene.extensions:
            raise RegistrationError(f"Scene {scene.scene_type} allows no extensions")

        if scene.scene_type in self._scenes:
            logger.warning(
                "Replacing registered scene",
                extra={"scene_type": scene.scene_type},
            )
        self._scenes[scene.scene_type] = scene

        logger.debug(
            "Registered scene",
            extra={
                "scene_type": scene.scene_type,
                "path": scene.path,
                "extensions": sorted(scene.extensions),
            },
        )

    def get(self, scene_type: SceneType) -> Optional[Scene]:
        return self._scenes.get(scene_type)

    def lookup(self, scene_type: SceneType) -> Scene:
        scene = self._scenes.get(scene_type)
        if scene is None:
            raise SceneNotFoundError(f"Scene {scene_type} is not registered")
        return scene

    def __contains__(self, scene_type: object) -> bool:
        return scene_type in self._scenes

    def __len__(self) -> int:
        return len(self._scenes)


class ContentTypeRegistry:
    """File extension to MIME type."""

    def __init__(self) -> None:
        self._content_types: dict[str, str] = {}

    def allow(self, extension: str, content_type: str) -> None:
        ext = normalize_extension(extension or "")
        content_type = (content_type or "").strip()
        if not ext:
            raise RegistrationError("Content type extension cannot be empty")
        if not content_type:
            raise RegistrationError(f"Content type for '{ext}' cannot be empty")
        self._content_types[ext] = content_type

    def resolve(self, extension: str) -> Optional[str]:
        return self._content_types.get(normalize_extension(extension))

    def __len__(self) -> int:
        return len(self._content_types)


@dataclass
class UploadConfig:
    """
    The registries a presign service works against.

    Built once (usually from Settings) and passed to the service, so
    there is no process-wide registry state.
    """
    scenes: SceneRegistry = field(default_factory=SceneRegistry)
    content_types: ContentTypeRegistry = field(default_factory=ContentTypeRegistry)

    def register_scene(self, scene: Scene) -> "UploadConfig":
        self.scenes.register(scene)
        return self

    def allow_content_type(self, extension: str, content_type: str) -> "UploadConfig":
        self.content_types.allow(extension, content_type)
        return self

    @classmethod
    def build(
        cls,
        scenes: Iterable[Scene] = (),
        content_types: Optional[dict[str, str]] = None,
    ) -> "UploadConfig":
        config = cls()
        for scene in scenes:
            config.register_scene(scene)
        for ext, mime in (content_types or {}).items():
            config.allow_content_type(ext, mime)

        logger.info(
            "Upload configuration built",
            extra={
                "scenes": len(config.scenes),
                "content_types": len(config.content_types),
            },
        )
        return config
