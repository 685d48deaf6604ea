from .bounds import Bounds, parse_bounds
from .camera import Camera, CameraController, CameraFraming
from .edit_session import CommitResult, EditSession
from .element import NaturalKey
from .element_store import ElementStore
from .errors import ArchiveError, ElementNotFoundError, InvalidDraftError, MalformedInputError, StackViewError
from .keys import KeyBindings
from .pick_engine import PickEngine
from .scene_builder import SceneBuilder
from .volume import Volume, VolumeArena, VolumeSet

__all__ = [
    "Bounds",
    "parse_bounds",
    "Camera",
    "CameraController",
    "CameraFraming",
    "CommitResult",
    "EditSession",
    "NaturalKey",
    "ElementStore",
    "StackViewError",
    "MalformedInputError",
    "ElementNotFoundError",
    "InvalidDraftError",
    "ArchiveError",
    "KeyBindings",
    "PickEngine",
    "SceneBuilder",
    "Volume",
    "VolumeArena",
    "VolumeSet",
]
