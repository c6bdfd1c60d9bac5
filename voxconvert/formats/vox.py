"""
MagicaVoxel .vox File Format Handler
====================================

Reads and writes MagicaVoxel .vox files including the palette and the scene
hierarchy.

VOX file layout:
- VOX files use little-endian byte order
- File starts with 'VOX ' magic number and version
- Main chunk contains SIZE, XYZI and RGBA chunks
- nTRN, nGRP and nSHP chunks describe the scene graph
- Z is the up axis, the scene graph uses Y as up axis

Voxel color bytes are 1-based: byte ``i + 1`` refers to palette index ``i``
which is entry ``i`` of the RGBA chunk. Byte 0 is never used for a voxel, so
a file can address at most 255 colors.
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, List, Optional, Tuple

import numpy as np

from voxconvert.core.palette import Palette, PaletteLookup
from voxconvert.core.region import Region
from voxconvert.core.volume import Volume
from voxconvert.core.voxel import VoxelType
from voxconvert.errors import FormatError
from voxconvert.formats.base import Format, read_exact, read_struct
from voxconvert.scenegraph.node import SceneGraphNode, SceneGraphNodeType
from voxconvert.scenegraph.scenegraph import SceneGraph

logger = logging.getLogger(__name__)


@dataclass
class VoxChunk:
    """Represents a chunk in the VOX file."""
    id: str
    content: bytes
    children: List['VoxChunk'] = field(default_factory=list)


@dataclass
class VoxModel:
    """A single SIZE/XYZI model within a VOX file."""
    size: Tuple[int, int, int]
    voxels: np.ndarray  # (N, 4) uint8: x, y, z, color byte


@dataclass
class VoxNode:
    """A nTRN, nGRP or nSHP scene graph chunk."""
    kind: str
    node_id: int
    attributes: Dict[str, str] = field(default_factory=dict)
    # child node for nTRN, child nodes for nGRP, model ids for nSHP
    children: List[int] = field(default_factory=list)
    frame: Dict[str, str] = field(default_factory=dict)


class VoxFormat(Format):
    """
    MagicaVoxel .vox file format reader/writer.

    Supports:
    - Multiple models per file
    - Palette with up to 255 colors
    - Scene hierarchy (transforms, groups, shapes)
    """

    NAME = 'MagicaVoxel'
    EXTENSIONS = ('.vox',)

    MAGIC = b'VOX '
    VERSION = 150  # MagicaVoxel version 0.99
    MAX_COLORS = 255
    MAX_SIZE = 256

    # ==================== Reading ====================

    def load_palette(self, filename: str, stream: BinaryIO) -> Tuple[int, Palette]:
        """Read the color table without decoding any voxel data."""
        chunks = self._read_main(stream)
        for chunk in chunks:
            if chunk.id == 'RGBA':
                palette = self._parse_palette(chunk.content)
                return palette.color_count, palette
        palette = Palette.built_in('built-in:magicavoxel')
        return palette.color_count, palette

    def load(self, filename: str, stream: BinaryIO) -> SceneGraph:
        """
        Read a VOX file into a scene graph.

        Every shape of the scene hierarchy becomes a model node, groups
        become group nodes. Files without hierarchy get one model node per
        model, all placed at the origin.
        """
        chunks = self._read_main(stream)

        models: List[VoxModel] = []
        nodes: Dict[int, VoxNode] = {}
        rgba: Optional[bytes] = None
        current_size = None

        for chunk in chunks:
            if chunk.id == 'SIZE':
                current_size = _unpack('<III', chunk.content, 'SIZE')
            elif chunk.id == 'XYZI':
                if current_size is None:
                    raise FormatError(f"{filename}: XYZI chunk without SIZE chunk")
                num_voxels = _unpack('<I', chunk.content, 'XYZI')[0]
                data = chunk.content[4:4 + num_voxels * 4]
                if len(data) != num_voxels * 4:
                    raise FormatError(f"{filename}: truncated XYZI chunk")
                voxels = np.frombuffer(data, dtype=np.uint8).reshape(-1, 4)
                models.append(VoxModel(size=tuple(current_size), voxels=voxels))
                current_size = None
            elif chunk.id == 'RGBA':
                rgba = chunk.content
            elif chunk.id in ('nTRN', 'nGRP', 'nSHP'):
                node = self._parse_node(chunk)
                nodes[node.node_id] = node

        if rgba is not None:
            used = max((int(m.voxels[:, 3].max()) for m in models if len(m.voxels)), default=0)
            palette = self._parse_palette(rgba, min_colors=used)
        else:
            palette = Palette.built_in('built-in:magicavoxel')
        logger.debug("%s: %d models, %d colors, %d scene nodes",
                     filename, len(models), palette.color_count, len(nodes))

        scene_graph = self.create_scene_graph()
        volumes = [self._create_volume(filename, model) for model in models]
        if 0 in nodes and nodes[0].kind == 'nTRN':
            used_models = set()
            self._add_nodes(scene_graph, nodes, volumes, palette, 0, 0, (0, 0, 0),
                            used_models, set())
        else:
            for i, volume in enumerate(volumes):
                node = SceneGraphNode(SceneGraphNodeType.MODEL, f"model {i}")
                node.set_volume(volume)
                node.set_palette(palette)
                scene_graph.emplace(node)
        return scene_graph

    def _read_main(self, stream: BinaryIO) -> List[VoxChunk]:
        magic = read_exact(stream, 4)
        if magic != self.MAGIC:
            raise FormatError(f"Invalid VOX file: expected 'VOX ', got {magic!r}")
        version = read_struct(stream, '<I')[0]
        logger.debug("VOX version %d", version)
        main_chunk = self._read_chunk(stream)
        if main_chunk.id != 'MAIN':
            raise FormatError(f"Expected MAIN chunk, got '{main_chunk.id}'")
        return main_chunk.children

    def _read_chunk(self, f: BinaryIO) -> VoxChunk:
        """Read a single chunk with its children from the stream."""
        try:
            chunk_id = read_exact(f, 4).decode('ascii')
        except UnicodeDecodeError:
            raise FormatError("Invalid chunk id") from None
        content_size, children_size = read_struct(f, '<II')
        content = read_exact(f, content_size)

        children = []
        children_end = f.tell() + children_size
        while f.tell() < children_end:
            children.append(self._read_chunk(f))

        return VoxChunk(id=chunk_id, content=content, children=children)

    def _parse_palette(self, content: bytes, min_colors: int = 0) -> Palette:
        """
        Build a palette from a RGBA chunk.

        Trailing (0, 0, 0, 0) entries don't count as colors unless a voxel
        refers to them (``min_colors``).
        """
        if len(content) < 256 * 4:
            raise FormatError(f"Invalid RGBA chunk of {len(content)} bytes")
        entries = np.frombuffer(content[:256 * 4], dtype=np.uint8).reshape(256, 4)
        count = self.MAX_COLORS
        while count > 0 and not entries[count - 1].any():
            count -= 1
        count = max(count, min(min_colors, self.MAX_COLORS))
        return Palette([tuple(int(v) for v in entries[i]) for i in range(count)])

    def _parse_node(self, chunk: VoxChunk) -> VoxNode:
        data = chunk.content
        node_id, offset = _read_i32(data, 0)
        attributes, offset = _read_dict(data, offset)
        node = VoxNode(kind=chunk.id, node_id=node_id, attributes=attributes)

        if chunk.id == 'nTRN':
            child_id, offset = _read_i32(data, offset)
            offset += 8  # reserved id, layer id
            num_frames, offset = _read_i32(data, offset)
            node.children = [child_id]
            if num_frames > 0:
                node.frame, offset = _read_dict(data, offset)
        elif chunk.id == 'nGRP':
            num_children, offset = _read_i32(data, offset)
            for _ in range(num_children):
                child_id, offset = _read_i32(data, offset)
                node.children.append(child_id)
        else:
            num_models, offset = _read_i32(data, offset)
            for _ in range(num_models):
                model_id, offset = _read_i32(data, offset)
                _, offset = _read_dict(data, offset)
                node.children.append(model_id)
        return node

    def _create_volume(self, filename: str, model: VoxModel) -> Volume:
        sx, sy, sz = model.size
        if min(model.size) <= 0:
            raise FormatError(f"{filename}: invalid model size {model.size}")
        volume = Volume(Region.from_size((sx, sz, sy)))
        voxels = model.voxels[model.voxels[:, 3] > 0]
        if len(voxels) == 0:
            return volume
        x, y, z = (voxels[:, i].astype(np.int64) for i in range(3))
        if x.max() >= sx or y.max() >= sy or z.max() >= sz:
            raise FormatError(f"{filename}: voxel outside of model size {model.size}")
        volume.types[x, z, y] = VoxelType.GENERIC
        volume.colors[x, z, y] = voxels[:, 3] - 1
        return volume

    def _add_nodes(self, scene_graph: SceneGraph, nodes: Dict[int, VoxNode],
                   volumes: List[Volume], palette: Palette, trn_id: int, parent: int,
                   offset: Tuple[int, int, int], used_models: set, visited: set):
        """Add the transform node ``trn_id`` and its subtree below ``parent``."""
        if trn_id in visited:
            raise FormatError(f"Cycle in the scene graph at node {trn_id}")
        visited.add(trn_id)
        trn = nodes.get(trn_id)
        if trn is None or trn.kind != 'nTRN':
            raise FormatError(f"Expected a transform node with id {trn_id}")
        child = nodes.get(trn.children[0])
        if child is None:
            raise FormatError(f"Transform node {trn_id} refers to unknown node {trn.children[0]}")

        translation = _vox_to_world(_parse_translation(trn.frame.get('_t', '')))
        name = trn.attributes.get('_name', '')
        hidden = trn.attributes.get('_hidden', '0')

        if child.kind == 'nGRP':
            if trn_id == 0:
                for grp_child in child.children:
                    self._add_nodes(scene_graph, nodes, volumes, palette, grp_child, parent,
                                    offset, used_models, visited)
                return
            group = SceneGraphNode(SceneGraphNodeType.GROUP, name or "group")
            group.transform.translation = tuple(float(t) for t in translation)
            group.set_property('hidden', hidden)
            group_id = scene_graph.emplace(group, parent)
            group_offset = tuple(o + t for o, t in zip(offset, translation))
            for grp_child in child.children:
                self._add_nodes(scene_graph, nodes, volumes, palette, grp_child, group_id,
                                group_offset, used_models, visited)
        elif child.kind == 'nSHP':
            for model_id in child.children:
                if not 0 <= model_id < len(volumes):
                    raise FormatError(f"Shape node {child.node_id} refers to unknown model {model_id}")
                volume = volumes[model_id]
                if model_id in used_models:
                    volume = volume.copy()
                used_models.add(model_id)
                dims = volume.region.dimensions
                lower = tuple(o + t - d // 2 for o, t, d in zip(offset, translation, dims))
                volume.translate(tuple(l - vl for l, vl in zip(lower, volume.region.lower)))
                node = SceneGraphNode(SceneGraphNodeType.MODEL, name or f"model {model_id}")
                node.transform.translation = tuple(float(t) for t in translation)
                node.set_property('hidden', hidden)
                node.set_volume(volume)
                node.set_palette(palette)
                scene_graph.emplace(node, parent)
        else:
            raise FormatError(f"Transform node {trn_id} has an unexpected child {child.kind}")

    # ==================== Writing ====================

    def save(self, scene_graph: SceneGraph, filename: str, stream: BinaryIO):
        """
        Write all model nodes with one shared palette.

        If all models use the same palette it is written as is, otherwise
        the palettes are unified and the voxels remapped. A 256th color is
        mapped to its nearest neighbour among the first 255 colors.
        """
        models = [node for node in scene_graph if node.volume is not None]
        if not models:
            raise FormatError(f"{filename}: no models to save")

        palette, tables = self._unify_palettes(models)

        chunks = []
        model_ids: Dict[int, int] = {}
        for node, table in zip(models, tables):
            volume = node.volume
            width, height, depth = volume.region.dimensions
            if max(width, height, depth) > self.MAX_SIZE:
                raise FormatError(f"Model '{node.name}' exceeds the max size of {self.MAX_SIZE} "
                                  f"({width}x{height}x{depth}), split it first")
            model_ids[node.id] = len(model_ids)
            chunks.append(VoxChunk('SIZE', struct.pack('<III', width, depth, height)))
            solid = np.argwhere(volume.solid_mask())
            xyzi = np.empty((len(solid), 4), dtype=np.uint8)
            xyzi[:, 0] = solid[:, 0]
            xyzi[:, 1] = solid[:, 2]
            xyzi[:, 2] = solid[:, 1]
            xyzi[:, 3] = table[volume.colors[tuple(solid.T)]] + 1
            chunks.append(VoxChunk('XYZI', struct.pack('<I', len(solid)) + xyzi.tobytes()))

        chunks.extend(self._scene_chunks(scene_graph, model_ids))

        rgba = bytearray()
        for i in range(256):
            if i < palette.color_count:
                rgba.extend(palette.color(i).to_tuple())
            else:
                rgba.extend((0, 0, 0, 0))
        chunks.append(VoxChunk('RGBA', bytes(rgba)))

        children_data = b''.join(self._write_chunk(chunk) for chunk in chunks)
        stream.write(self.MAGIC)
        stream.write(struct.pack('<I', self.VERSION))
        stream.write(b'MAIN')
        stream.write(struct.pack('<II', 0, len(children_data)))
        stream.write(children_data)
        logger.debug("%s: wrote %d models with %d colors", filename, len(models), palette.color_count)

    def _unify_palettes(self, models: List[SceneGraphNode]) -> Tuple[Palette, List[np.ndarray]]:
        """
        Build the file palette and a per-model index remapping table.

        Returns:
            Tuple of (palette with at most 255 colors, list of index tables)
        """
        first = models[0].palette
        identity = np.arange(256, dtype=np.int32)
        if all(node.palette.colors == first.colors for node in models):
            palette = first
            tables = [identity.copy() for _ in models]
        else:
            lookup = PaletteLookup(Palette(), tolerance=self.config.color_tolerance)
            tables = []
            for node in models:
                table = identity.copy()
                used = np.unique(node.volume.colors[node.volume.solid_mask()])
                for index in used.tolist():
                    if index < node.palette.color_count:
                        table[index] = lookup.find_color(node.palette.color(index))
                    else:
                        table[index] = 0
                tables.append(table)
            palette = lookup.palette
            logger.info("Unified %d model palettes into %d colors", len(models), palette.color_count)

        if palette.color_count > self.MAX_COLORS:
            reduced = Palette(palette.colors[:self.MAX_COLORS], name=palette.name)
            for index in range(self.MAX_COLORS, palette.color_count):
                nearest, _ = reduced.find_nearest_color(palette.color(index))
                for table in tables:
                    table[table == index] = nearest
                logger.warning("Color %s at index %d doesn't fit, using index %d",
                               palette.color(index), index, nearest)
            palette = reduced
        for table in tables:
            table[table >= self.MAX_COLORS] = self.MAX_COLORS - 1
        return palette, tables

    def _scene_chunks(self, scene_graph: SceneGraph, model_ids: Dict[int, int]) -> List[VoxChunk]:
        """Encode the node hierarchy as nTRN/nGRP/nSHP chunks."""
        chunks: List[VoxChunk] = []
        next_id = [0]

        def allocate() -> int:
            node_id = next_id[0]
            next_id[0] += 1
            return node_id

        def add_transform(node_id: int, child_id: int, attributes: Dict[str, str],
                          translation: Optional[Tuple[int, int, int]], layer: int):
            content = struct.pack('<i', node_id) + _write_dict(attributes)
            content += struct.pack('<iiii', child_id, -1, layer, 1)
            frame = {}
            if translation is not None:
                frame['_t'] = ' '.join(str(int(t)) for t in _world_to_vox(translation))
            content += _write_dict(frame)
            chunks.append(VoxChunk('nTRN', content))

        def add_group(node_id: int, children: List[int]):
            content = struct.pack('<i', node_id) + _write_dict({})
            content += struct.pack('<i', len(children))
            content += b''.join(struct.pack('<i', c) for c in children)
            chunks.append(VoxChunk('nGRP', content))

        def add_children(node: SceneGraphNode, offset: Tuple[int, int, int]) -> List[int]:
            trn_ids = []
            for child in scene_graph.children(node.id):
                if child.type == SceneGraphNodeType.GROUP:
                    trn_id, grp_id = allocate(), allocate()
                    translation = tuple(int(round(t)) for t in child.transform.translation)
                    add_transform(trn_id, grp_id, _node_attributes(child), translation, 0)
                    child_offset = tuple(o + t for o, t in zip(offset, translation))
                    add_group(grp_id, add_children(child, child_offset))
                    trn_ids.append(trn_id)
                elif child.id in model_ids:
                    trn_id, shp_id = allocate(), allocate()
                    region = child.region
                    center = tuple(l + d // 2 - o for l, d, o in
                                   zip(region.lower, region.dimensions, offset))
                    add_transform(trn_id, shp_id, _node_attributes(child), center, 0)
                    content = struct.pack('<i', shp_id) + _write_dict({})
                    content += struct.pack('<ii', 1, model_ids[child.id]) + _write_dict({})
                    chunks.append(VoxChunk('nSHP', content))
                    trn_ids.append(trn_id)
            return trn_ids

        root_trn, root_grp = allocate(), allocate()
        add_transform(root_trn, root_grp, {}, None, -1)
        add_group(root_grp, add_children(scene_graph.root, (0, 0, 0)))
        return chunks

    def _write_chunk(self, chunk: VoxChunk) -> bytes:
        """Write a chunk to bytes."""
        children_data = b''.join(self._write_chunk(child) for child in chunk.children)

        result = chunk.id.encode('ascii')
        result += struct.pack('<I', len(chunk.content))
        result += struct.pack('<I', len(children_data))
        result += chunk.content
        result += children_data

        return result


# ==================== Helpers ====================

def _unpack(fmt: str, data: bytes, chunk_id: str, offset: int = 0) -> tuple:
    try:
        return struct.unpack_from(fmt, data, offset)
    except struct.error:
        raise FormatError(f"Truncated {chunk_id} chunk") from None


def _read_i32(data: bytes, offset: int) -> Tuple[int, int]:
    return _unpack('<i', data, 'scene graph', offset)[0], offset + 4


def _read_dict(data: bytes, offset: int) -> Tuple[Dict[str, str], int]:
    """Parse a DICT structure: count, then length prefixed key/value strings."""
    result = {}
    num_pairs, offset = _read_i32(data, offset)
    for _ in range(num_pairs):
        key_len, offset = _read_i32(data, offset)
        key = data[offset:offset + key_len].decode('utf-8', errors='replace')
        offset += key_len
        val_len, offset = _read_i32(data, offset)
        value = data[offset:offset + val_len].decode('utf-8', errors='replace')
        offset += val_len
        result[key] = value
    return result, offset


def _write_dict(values: Dict[str, str]) -> bytes:
    data = struct.pack('<i', len(values))
    for key, value in values.items():
        for text in (key, value):
            encoded = text.encode('utf-8')
            data += struct.pack('<i', len(encoded)) + encoded
    return data


def _parse_translation(text: str) -> Tuple[int, int, int]:
    parts = text.split()
    if len(parts) != 3:
        return (0, 0, 0)
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        logger.warning("Invalid translation '%s'", text)
        return (0, 0, 0)


def _vox_to_world(v: Tuple[int, int, int]) -> Tuple[int, int, int]:
    return (v[0], v[2], v[1])


def _world_to_vox(v: Tuple[int, int, int]) -> Tuple[int, int, int]:
    return (v[0], v[2], v[1])


def _node_attributes(node: SceneGraphNode) -> Dict[str, str]:
    attributes = {}
    if node.name:
        attributes['_name'] = node.name
    if node.property('hidden') in ('1', 'true'):
        attributes['_hidden'] = '1'
    return attributes
