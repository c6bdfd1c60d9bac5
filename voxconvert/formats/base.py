"""
Format - Codec Contract
=======================

Every file format handler derives from :class:`Format` and reads into or
writes from a SceneGraph using binary streams.
"""

import logging
import struct
from typing import BinaryIO, Optional, Tuple

from voxconvert.config import FormatConfig
from voxconvert.core.palette import Palette
from voxconvert.errors import FormatError
from voxconvert.scenegraph.scenegraph import SceneGraph

logger = logging.getLogger(__name__)


class Format:
    """
    Base class of all format handlers.

    Subclasses set NAME and EXTENSIONS and implement ``load`` and ``save``.
    ``load_palette`` defaults to a full load and returns the palette of the
    first model, which is what RGB formats need anyway; indexed formats
    override it to read the color table only.
    """

    NAME = ""
    EXTENSIONS: Tuple[str, ...] = ()

    def __init__(self, config: Optional[FormatConfig] = None):
        self.config = config if config is not None else FormatConfig()

    def create_scene_graph(self) -> SceneGraph:
        """
        Create an empty scene graph using the configured default palette.

        Raises:
            FormatError: If the palette file or built-in name can't be loaded
        """
        name = self.config.default_palette
        try:
            palette = Palette.load(name)
        except (OSError, ValueError) as e:
            raise FormatError(f"Can't load palette {name}: {e}") from e
        return SceneGraph(palette)

    def load_palette(self, filename: str, stream: BinaryIO) -> Tuple[int, Palette]:
        """
        Read the palette of a file.

        Args:
            filename: Name of the file, used for messages only
            stream: Binary stream positioned at the start of the file

        Returns:
            Tuple of (color count, Palette)
        """
        scene_graph = self.load(filename, stream)
        if scene_graph.empty():
            return 0, Palette()
        palette = scene_graph.first_palette()
        return palette.color_count, palette

    def load(self, filename: str, stream: BinaryIO) -> SceneGraph:
        """
        Read a file into a new scene graph.

        The stream position is undefined afterwards.

        Raises:
            FormatError: If the data is malformed
        """
        raise NotImplementedError

    def save(self, scene_graph: SceneGraph, filename: str, stream: BinaryIO):
        """
        Write a scene graph.

        Raises:
            FormatError: If the scene graph can't be represented
        """
        raise NotImplementedError


# ==================== Stream helpers ====================

def read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise FormatError(f"Unexpected end of data: wanted {size} bytes, got {len(data)}")
    return data


def read_struct(stream: BinaryIO, fmt: str) -> tuple:
    """Read and unpack one struct from a stream."""
    return struct.unpack(fmt, read_exact(stream, struct.calcsize(fmt)))


def read_u32(stream: BinaryIO) -> int:
    return read_struct(stream, '<I')[0]
