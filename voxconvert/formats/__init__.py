"""
VoxConvert Formats Module
=========================

File format readers and writers and the extension based format lookup.
"""

import logging
from pathlib import Path
from typing import NamedTuple, Optional, Tuple, Type

from voxconvert.config import FormatConfig
from voxconvert.core.palette import Palette
from voxconvert.errors import FormatError
from voxconvert.formats.base import Format
from voxconvert.formats.qb import QubicleFormat
from voxconvert.formats.vox import VoxFormat
from voxconvert.scenegraph.scenegraph import SceneGraph

logger = logging.getLogger(__name__)


class FormatDescription(NamedTuple):
    name: str
    extensions: Tuple[str, ...]
    handler: Type[Format]


FORMATS: Tuple[FormatDescription, ...] = tuple(
    FormatDescription(handler.NAME, handler.EXTENSIONS, handler)
    for handler in (VoxFormat, QubicleFormat)
)


def find_format(filepath: str) -> Optional[FormatDescription]:
    """Get the format description matching the file extension."""
    ext = Path(filepath).suffix.lower()
    for desc in FORMATS:
        if ext in desc.extensions:
            return desc
    return None


def _handler(filepath: str, config: Optional[FormatConfig]) -> Format:
    desc = find_format(filepath)
    if desc is None:
        raise FormatError(f"Unsupported format: {Path(filepath).suffix or filepath}")
    return desc.handler(config)


def load_format(filepath: str, config: Optional[FormatConfig] = None) -> SceneGraph:
    """
    Load a file into a scene graph.

    Raises:
        FormatError: If the format is unknown or the file is malformed
        OSError: If the file can't be read
    """
    handler = _handler(filepath, config)
    with open(filepath, 'rb') as f:
        scene_graph = handler.load(Path(filepath).name, f)
    logger.info("Loaded %s (%d models)", filepath, len(scene_graph))
    return scene_graph


def load_palette(filepath: str, config: Optional[FormatConfig] = None) -> Tuple[int, Palette]:
    """Read only the palette of a file, returns (color count, palette)."""
    handler = _handler(filepath, config)
    with open(filepath, 'rb') as f:
        return handler.load_palette(Path(filepath).name, f)


def save_format(filepath: str, scene_graph: SceneGraph, config: Optional[FormatConfig] = None):
    """
    Save a scene graph, the extension selects the format.

    Raises:
        FormatError: If the format is unknown or can't hold the scene
        OSError: If the file can't be written
    """
    handler = _handler(filepath, config)
    with open(filepath, 'wb') as f:
        handler.save(scene_graph, Path(filepath).name, f)
    logger.info("Saved %s (%d models)", filepath, len(scene_graph))


__all__ = [
    'FORMATS',
    'FormatDescription',
    'Format',
    'VoxFormat',
    'QubicleFormat',
    'find_format',
    'load_format',
    'load_palette',
    'save_format',
]
