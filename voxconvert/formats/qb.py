"""
Qubicle Binary .qb File Format Handler
======================================

Qubicle stores one RGBA color per voxel, there is no palette in the file.
Loading builds a single palette shared by all matrices: colors are added in
file scan order (matrix by matrix, slice by slice, row by row) so a model
with up to 256 distinct colors converts to an indexed format without any
loss. Alpha only marks visibility, the palette colors are fully opaque.

File layout (little-endian):
- Header: version, color format (0 = RGBA, 1 = BGRA), z axis orientation
  (0 = left-handed, 1 = right-handed), compression flag, visibility mask
  encoding flag, matrix count
- Per matrix: name, size, position and the voxel data, optionally run
  length encoded per z slice
"""

import logging
import struct
from typing import BinaryIO, List, Tuple

import numpy as np

from voxconvert.core.palette import Palette, PaletteLookup
from voxconvert.core.region import Region
from voxconvert.core.volume import Volume
from voxconvert.core.voxel import VoxelType
from voxconvert.errors import FormatError
from voxconvert.formats.base import Format, read_exact, read_struct, read_u32
from voxconvert.scenegraph.node import SceneGraphNode, SceneGraphNodeType
from voxconvert.scenegraph.scenegraph import SceneGraph

logger = logging.getLogger(__name__)

CODE_FLAG = 2
NEXT_SLICE_FLAG = 6

COLOR_FORMAT_RGBA = 0
COLOR_FORMAT_BGRA = 1


class QubicleFormat(Format):
    """
    Handler for the Qubicle Binary format (.qb).

    Every matrix becomes a model node; all model nodes share the palette
    built while loading.
    """

    NAME = 'Qubicle Binary'
    EXTENSIONS = ('.qb',)

    VERSION = 0x00000101  # 1.1.0.0

    def load(self, filename: str, stream: BinaryIO) -> SceneGraph:
        version, color_format, z_axis, compressed, vis_mask, num_matrices = \
            read_struct(stream, '<IIIIII')
        if color_format not in (COLOR_FORMAT_RGBA, COLOR_FORMAT_BGRA):
            raise FormatError(f"{filename}: unknown color format {color_format}")
        logger.debug("%s: version %x, %d matrices, compressed: %d, right-handed: %d, mask: %d",
                     filename, version, num_matrices, compressed, z_axis, vis_mask)

        lookup = PaletteLookup(Palette(), tolerance=self.config.color_tolerance)
        scene_graph = self.create_scene_graph()
        nodes: List[SceneGraphNode] = []

        for _ in range(num_matrices):
            name_len = read_struct(stream, '<B')[0]
            name = read_exact(stream, name_len).decode('utf-8', errors='replace')
            size = read_struct(stream, '<III')
            position = read_struct(stream, '<iii')
            if min(size) <= 0:
                raise FormatError(f"{filename}: matrix '{name}' has an invalid size {size}")

            if compressed:
                data = self._read_rle(stream, size)
            else:
                sx, sy, sz = size
                raw = read_exact(stream, sx * sy * sz * 4)
                data = np.frombuffer(raw, dtype='<u4').reshape(sz, sy, sx)

            volume = self._create_volume(data, size, position, color_format, z_axis, lookup)
            node = SceneGraphNode(SceneGraphNodeType.MODEL, name)
            node.set_volume(volume)
            nodes.append(node)

        palette = lookup.palette
        palette.name = filename
        for node in nodes:
            node.set_palette(palette)
            scene_graph.emplace(node)
        logger.debug("%s: %d colors", filename, palette.color_count)
        return scene_graph

    def _read_rle(self, stream: BinaryIO, size: Tuple[int, int, int]) -> np.ndarray:
        """Decode run length encoded slices into a (z, y, x) array."""
        sx, sy, sz = size
        data = np.zeros((sz, sy, sx), dtype=np.uint32)
        for z in range(sz):
            flat = data[z].reshape(-1)
            index = 0
            while True:
                value = read_u32(stream)
                if value == NEXT_SLICE_FLAG:
                    break
                if value == CODE_FLAG:
                    count, color = read_struct(stream, '<II')
                else:
                    count, color = 1, value
                if index + count > len(flat):
                    raise FormatError(f"Run length data exceeds slice {z}")
                flat[index:index + count] = color
                index += count
        return data

    def _create_volume(self, data: np.ndarray, size: Tuple[int, int, int],
                       position: Tuple[int, int, int], color_format: int, z_axis: int,
                       lookup: PaletteLookup) -> Volume:
        rgba = data.astype('<u4').view(np.uint8).reshape(data.shape + (4,))
        if color_format == COLOR_FORMAT_BGRA:
            rgba = rgba[..., [2, 1, 0, 3]]
        solid = rgba[..., 3] != 0

        # deduplicate in scan order: z slices, then y rows, then x
        rgb = rgba[solid][:, :3].astype(np.uint32)
        keys = rgb[:, 0] | (rgb[:, 1] << 8) | (rgb[:, 2] << 16)
        unique, first, inverse = np.unique(keys, return_index=True, return_inverse=True)
        mapping = np.zeros(len(unique), dtype=np.uint8)
        for u in np.argsort(first, kind='stable'):
            key = int(unique[u])
            mapping[u] = lookup.find_color((key & 0xFF, (key >> 8) & 0xFF, (key >> 16) & 0xFF, 255))

        types = np.zeros(data.shape, dtype=np.uint8)
        colors = np.zeros(data.shape, dtype=np.uint8)
        types[solid] = VoxelType.GENERIC
        colors[solid] = mapping[inverse.reshape(-1)]

        types = types.transpose(2, 1, 0)
        colors = colors.transpose(2, 1, 0)
        if z_axis:
            types = np.flip(types, axis=2)
            colors = np.flip(colors, axis=2)
        region = Region.from_size(size, position)
        return Volume(region, np.ascontiguousarray(types), np.ascontiguousarray(colors))

    def save(self, scene_graph: SceneGraph, filename: str, stream: BinaryIO):
        """
        Write every model node as one matrix.

        Voxel colors are resolved through the node palette, so only the
        colors that are used end up in the file.
        """
        models = [node for node in scene_graph if node.volume is not None]
        if not models:
            raise FormatError(f"{filename}: no models to save")
        compressed = self.config.qb_compressed
        right_handed = self.config.qb_right_handed

        stream.write(struct.pack('<IIIIII', self.VERSION, COLOR_FORMAT_RGBA,
                                 1 if right_handed else 0, 1 if compressed else 0,
                                 0, len(models)))

        for node in models:
            volume = node.volume
            name_bytes = node.name.encode('utf-8')[:255]
            stream.write(struct.pack('<B', len(name_bytes)))
            stream.write(name_bytes)
            stream.write(struct.pack('<III', *volume.region.dimensions))
            stream.write(struct.pack('<iii', *volume.region.lower))

            grid = self._encode_colors(volume, node.palette)
            if right_handed:
                grid = np.flip(grid, axis=2)
            grid = np.ascontiguousarray(grid.transpose(2, 1, 0))

            if compressed:
                for z in range(grid.shape[0]):
                    self._write_rle_slice(stream, grid[z].reshape(-1))
            else:
                stream.write(grid.astype('<u4').tobytes())
        logger.debug("%s: wrote %d matrices", filename, len(models))

    @staticmethod
    def _encode_colors(volume: Volume, palette: Palette) -> np.ndarray:
        """Packed 0xAABBGGRR colors per voxel, 0 for air."""
        table = np.zeros(256, dtype=np.uint32)
        if palette.color_count:
            rgba = palette.rgba_array().astype(np.uint32)
            table[:len(rgba)] = rgba[:, 0] | (rgba[:, 1] << 8) | (rgba[:, 2] << 16)
        table |= np.uint32(0xFF000000)
        return np.where(volume.solid_mask(), table[volume.colors], 0).astype(np.uint32)

    @staticmethod
    def _write_rle_slice(stream: BinaryIO, values: np.ndarray):
        """Run length encode one slice, followed by the next slice flag."""
        out = bytearray()
        changes = np.flatnonzero(np.diff(values)) + 1
        starts = np.concatenate(([0], changes))
        ends = np.concatenate((changes, [len(values)]))
        for start, end in zip(starts.tolist(), ends.tolist()):
            color = int(values[start])
            count = end - start
            if count > 1:
                out += struct.pack('<III', CODE_FLAG, count, color)
            else:
                out += struct.pack('<I', color)
        out += struct.pack('<I', NEXT_SLICE_FLAG)
        stream.write(bytes(out))
