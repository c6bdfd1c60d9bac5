"""
SceneGraphNode - Scene Hierarchy Entities
=========================================

A node is one entity of a scene graph: a group, a camera or a model. Model
nodes own a volume. Every node carries a palette (falling back to the
default palette injected by its scene graph), transform keyframes and free
form key/value properties.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from voxconvert.core.palette import Palette
from voxconvert.core.region import INVALID_REGION, Region
from voxconvert.core.volume import Volume


class SceneGraphNodeType(Enum):
    ROOT = 'Root'
    GROUP = 'Group'
    MODEL = 'Model'
    CAMERA = 'Camera'


class InterpolationType(Enum):
    INSTANT = 'Instant'
    LINEAR = 'Linear'
    QUAD_EASE_IN = 'QuadEaseIn'
    QUAD_EASE_OUT = 'QuadEaseOut'


@dataclass
class SceneGraphTransform:
    """Local transform of a node: translation, orientation quaternion (x, y, z, w) and scale."""
    translation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)


@dataclass
class SceneGraphKeyFrame:
    frame_idx: int = 0
    interpolation: InterpolationType = InterpolationType.LINEAR
    long_rotation: bool = False
    transform: SceneGraphTransform = field(default_factory=SceneGraphTransform)


class SceneGraphNode:
    """
    One entity in a scene graph hierarchy.

    Nodes are created detached and get their id and parent assigned when
    they are emplaced into a SceneGraph.
    """

    def __init__(self, node_type: SceneGraphNodeType = SceneGraphNodeType.MODEL,
                 name: str = ""):
        self.id = -1
        self.parent = -1
        self.type = node_type
        self.name = name
        self.children: List[int] = []
        self.key_frames: List[SceneGraphKeyFrame] = [SceneGraphKeyFrame()]
        self.properties: Dict[str, str] = {}
        self._volume: Optional[Volume] = None
        self._owns_volume = False
        self._palette: Optional[Palette] = None
        self._default_palette: Optional[Palette] = None

    # ==================== Volume ====================

    @property
    def volume(self) -> Optional[Volume]:
        return self._volume

    @property
    def owns_volume(self) -> bool:
        return self._owns_volume

    def is_model(self) -> bool:
        return self.type == SceneGraphNodeType.MODEL

    def set_volume(self, volume: Optional[Volume], owns: bool = True):
        """
        Assign a volume to this model node.

        The volume is moved: if another node currently owns it, that node
        loses it. The previously assigned volume of this node is released.

        Args:
            volume: Volume to assign (None clears the node)
            owns: Whether this node owns the volume and releases it on removal

        Raises:
            TypeError: If this node is not a model node
        """
        if volume is not None and not self.is_model():
            raise TypeError(f"Only model nodes can carry a volume, '{self.name}' is a {self.type.value} node")
        if volume is self._volume:
            self._owns_volume = owns and volume is not None
            if self._owns_volume:
                volume._owner = self
            return
        self.release_volume()
        if volume is not None:
            previous = volume.owner
            if previous is not None and previous is not self:
                previous.release_volume()
            if owns:
                volume._owner = self
        self._volume = volume
        self._owns_volume = owns and volume is not None

    def release_volume(self) -> Optional[Volume]:
        """Detach the volume from this node and return it."""
        volume = self._volume
        if volume is not None and volume.owner is self:
            volume._owner = None
        self._volume = None
        self._owns_volume = False
        return volume

    @property
    def region(self) -> Region:
        """Region of the node volume, INVALID_REGION without volume."""
        if self._volume is None:
            return INVALID_REGION
        return self._volume.region

    # ==================== Palette ====================

    @property
    def palette(self) -> Palette:
        """The node palette, or the scene graph default if none was set."""
        if self._palette is not None:
            return self._palette
        if self._default_palette is None:
            self._default_palette = Palette.built_in()
        return self._default_palette

    def has_palette(self) -> bool:
        return self._palette is not None

    def set_palette(self, palette: Optional[Palette]):
        """Assign a copy of ``palette`` (None reverts to the default palette)."""
        self._palette = palette.copy() if palette is not None else None

    # ==================== Transform ====================

    def key_frame(self, frame_idx: int) -> SceneGraphKeyFrame:
        """The key frame at or before ``frame_idx``."""
        best = self.key_frames[0]
        for kf in self.key_frames:
            if kf.frame_idx <= frame_idx:
                best = kf
        return best

    def add_key_frame(self, frame_idx: int) -> SceneGraphKeyFrame:
        for kf in self.key_frames:
            if kf.frame_idx == frame_idx:
                return kf
        kf = SceneGraphKeyFrame(frame_idx=frame_idx)
        self.key_frames.append(kf)
        self.key_frames.sort(key=lambda k: k.frame_idx)
        return kf

    @property
    def transform(self) -> SceneGraphTransform:
        return self.key_frame(0).transform

    # ==================== Properties ====================

    def set_property(self, key: str, value):
        self.properties[key] = str(value)

    def property(self, key: str, default: str = "") -> str:
        return self.properties.get(key, default)

    def release(self):
        """Release the owned volume and forget the children."""
        volume = self.release_volume()
        del volume
        self.children = []

    def __repr__(self) -> str:
        return (f"SceneGraphNode(id={self.id}, type={self.type.value}, "
                f"name={self.name!r}, region={self.region})")
