"""
Shared fixtures for voxconvert tests.

Provides a synthesized 17 color Qubicle model, small volumes and a scene
graph builder.
"""
import struct

import numpy as np
import pytest

from voxconvert.core.palette import Palette
from voxconvert.core.region import Region
from voxconvert.core.volume import Volume
from voxconvert.scenegraph.node import SceneGraphNode, SceneGraphNodeType
from voxconvert.scenegraph.scenegraph import SceneGraph


# 17 distinct opaque colors, in the order a scan of the knight model meets them
KNIGHT_COLORS = [
    (33, 30, 28), (60, 56, 52), (92, 86, 80), (128, 120, 112), (170, 162, 150),
    (210, 204, 190), (120, 30, 24), (170, 48, 36), (220, 80, 60), (40, 60, 120),
    (60, 90, 170), (96, 130, 210), (90, 60, 30), (130, 90, 50), (190, 150, 90),
    (230, 200, 60), (250, 240, 180),
]

KNIGHT_SIZE = (5, 4, 3)
KNIGHT_POSITION = (-2, 0, 1)


def knight_color_indices() -> np.ndarray:
    """(z, y, x) array of color indices into KNIGHT_COLORS, -1 for air."""
    sx, sy, sz = KNIGHT_SIZE
    indices = np.full((sz, sy, sx), -1, dtype=np.int32)
    for z in range(sz):
        for y in range(sy):
            for x in range(sx):
                if z == 0 or (x + y + z) % 4 != 3:
                    indices[z, y, x] = (x + y * sx + z * sx * sy) % len(KNIGHT_COLORS)
    return indices


def pack_rgba(r: int, g: int, b: int, a: int = 255) -> int:
    return r | (g << 8) | (b << 16) | (a << 24)


def build_qb(matrices, color_format: int = 0, z_axis: int = 0) -> bytes:
    """
    Build an uncompressed Qubicle file.

    Args:
        matrices: List of (name, position, data) where data is a (z, y, x)
                  uint32 array of packed colors
    """
    out = struct.pack('<IIIIII', 0x101, color_format, z_axis, 0, 0, len(matrices))
    for name, position, data in matrices:
        encoded = name.encode('utf-8')
        sz, sy, sx = data.shape
        out += struct.pack('<B', len(encoded)) + encoded
        out += struct.pack('<III', sx, sy, sz)
        out += struct.pack('<iii', *position)
        out += data.astype('<u4').tobytes()
    return out


def knight_qb_data(bgra: bool = False) -> np.ndarray:
    indices = knight_color_indices()
    data = np.zeros(indices.shape, dtype=np.uint32)
    for (z, y, x), index in np.ndenumerate(indices):
        if index >= 0:
            r, g, b = KNIGHT_COLORS[index]
            data[z, y, x] = pack_rgba(b, g, r) if bgra else pack_rgba(r, g, b)
    return data


@pytest.fixture
def knight_qb() -> bytes:
    """A 17 color, fully opaque Qubicle model with one matrix."""
    return build_qb([("knight", KNIGHT_POSITION, knight_qb_data())])


@pytest.fixture
def knight_qb_file(tmp_path, knight_qb):
    path = tmp_path / "chr_knight.qb"
    path.write_bytes(knight_qb)
    return str(path)


def solid_box(size, lower=(0, 0, 0), color: int = 1) -> Volume:
    """Volume completely filled with one palette index."""
    return Volume.from_array(np.full(size, color + 1, dtype=np.uint8), lower)


def model_node(volume: Volume, palette: Palette = None, name: str = "model") -> SceneGraphNode:
    node = SceneGraphNode(SceneGraphNodeType.MODEL, name)
    node.set_volume(volume)
    if palette is not None:
        node.set_palette(palette)
    return node


def scene_with(*nodes: SceneGraphNode) -> SceneGraph:
    scene_graph = SceneGraph()
    for node in nodes:
        scene_graph.emplace(node)
    return scene_graph


@pytest.fixture
def rgb_palette() -> Palette:
    return Palette([(255, 0, 0, 255), (0, 255, 0, 255), (0, 0, 255, 255)])


@pytest.fixture
def small_region() -> Region:
    return Region((0, 0, 0), (3, 3, 3))
