"""
SceneGraph - Node Hierarchy of a Voxel Scene
============================================

Tree of SceneGraphNodes keyed by id with a fixed root node (id 0). Every
codec loads into and saves from a SceneGraph. ``merge`` flattens all model
nodes into one volume with one unified palette.
"""

import logging
from typing import Dict, Iterator, List, NamedTuple, Optional

from voxconvert.core.palette import Palette, PaletteLookup
from voxconvert.core.region import INVALID_REGION, Region
from voxconvert.core.volume import Volume
from voxconvert.errors import SceneGraphError
from voxconvert.scenegraph.node import SceneGraphNode, SceneGraphNodeType

logger = logging.getLogger(__name__)

ROOT_NODE_ID = 0


class MergedVolumePalette(NamedTuple):
    volume: Optional[Volume]
    palette: Palette


class SceneGraph:
    """
    Hierarchy of scene graph nodes.

    Iterating a scene graph yields its model nodes in id order.
    """

    def __init__(self, default_palette: Optional[Palette] = None):
        """
        Create a scene graph holding only the root node.

        Args:
            default_palette: Palette for nodes that don't carry their own,
                             defaults to the built-in default palette
        """
        self._default_palette = default_palette if default_palette is not None else Palette.built_in()
        self._nodes: Dict[int, SceneGraphNode] = {}
        self._next_id = 0
        self._add_root()

    def _add_root(self):
        root = SceneGraphNode(SceneGraphNodeType.ROOT, "root")
        root.id = ROOT_NODE_ID
        root._default_palette = self._default_palette
        self._nodes[ROOT_NODE_ID] = root
        self._next_id = ROOT_NODE_ID + 1

    @property
    def default_palette(self) -> Palette:
        return self._default_palette

    # ==================== Structure ====================

    def emplace(self, node: SceneGraphNode, parent: int = ROOT_NODE_ID) -> int:
        """
        Insert a node below ``parent`` and assign its id.

        Args:
            node: Detached node to insert
            parent: Id of a node already in the graph

        Returns:
            The id of the inserted node

        Raises:
            SceneGraphError: If the parent is unknown or the node is a root node
        """
        if node.type == SceneGraphNodeType.ROOT:
            raise SceneGraphError("A scene graph has exactly one root node")
        if parent not in self._nodes:
            raise SceneGraphError(f"Parent node {parent} doesn't exist")
        node.id = self._next_id
        node.parent = parent
        node._default_palette = self._default_palette
        self._next_id += 1
        self._nodes[node.id] = node
        self._nodes[parent].children.append(node.id)
        logger.debug("Added %s node '%s' with id %d below %d",
                     node.type.value, node.name, node.id, parent)
        return node.id

    def node(self, node_id: int) -> SceneGraphNode:
        """
        Get a node by id.

        Raises:
            SceneGraphError: For an unknown id
        """
        try:
            return self._nodes[node_id]
        except KeyError:
            raise SceneGraphError(f"Node {node_id} doesn't exist") from None

    __getitem__ = node

    def has_node(self, node_id: int) -> bool:
        return node_id in self._nodes

    @property
    def root(self) -> SceneGraphNode:
        return self._nodes[ROOT_NODE_ID]

    def nodes(self) -> List[SceneGraphNode]:
        """All nodes including root, in id order."""
        return [self._nodes[i] for i in sorted(self._nodes)]

    def children(self, node_id: int) -> List[SceneGraphNode]:
        return [self._nodes[c] for c in self.node(node_id).children]

    def remove_node(self, node_id: int) -> bool:
        """
        Remove a node together with its subtree and release their volumes.

        The root node can't be removed.
        """
        if node_id == ROOT_NODE_ID or node_id not in self._nodes:
            return False
        node = self._nodes[node_id]
        for child in list(node.children):
            self.remove_node(child)
        parent = self._nodes.get(node.parent)
        if parent is not None and node_id in parent.children:
            parent.children.remove(node_id)
        node.release()
        del self._nodes[node_id]
        return True

    def clear(self):
        """Release every node and start over with a fresh root."""
        for node in self._nodes.values():
            node.release()
        self._nodes.clear()
        self._add_root()

    # ==================== Model access ====================

    def __iter__(self) -> Iterator[SceneGraphNode]:
        for node_id in sorted(self._nodes):
            node = self._nodes[node_id]
            if node.is_model():
                yield node

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def empty(self) -> bool:
        return len(self) == 0

    def first_palette(self) -> Palette:
        """Palette of the first model node, the default palette without models."""
        for node in self:
            return node.palette
        return self._default_palette

    def region(self) -> Region:
        """Union region of all model volumes (INVALID_REGION without volumes)."""
        regions = [node.region for node in self if node.volume is not None]
        if not regions:
            return INVALID_REGION
        return Region.bounding(regions)

    # ==================== Merge ====================

    def merge(self, skip_hidden: bool = False) -> MergedVolumePalette:
        """
        Flatten all model nodes into a single volume with a unified palette.

        Each node's voxels are resolved through its own palette and written
        through one shared PaletteLookup, so equal colors of different nodes
        share a single index. Later nodes overwrite earlier ones where they
        overlap.

        Args:
            skip_hidden: Ignore nodes whose ``hidden`` property is true

        Returns:
            MergedVolumePalette; its volume is None if no model node carries
            a volume
        """
        nodes = [node for node in self if node.volume is not None and
                 not (skip_hidden and node.property('hidden') in ('1', 'true'))]
        lookup = PaletteLookup(Palette(name="merged"))
        if not nodes:
            logger.error("No model nodes to merge")
            return MergedVolumePalette(None, lookup.palette)

        region = Region.bounding(node.region for node in nodes)
        merged = Volume(region)
        for node in nodes:
            volume = node.volume
            palette = node.palette
            remap = {}
            solid = volume.solid_mask()
            for index in sorted(set(volume.colors[solid].tolist())):
                if index < palette.color_count:
                    remap[index] = lookup.find_color(palette.color(index))
                else:
                    logger.warning("Node '%s' uses color index %d outside of its palette (%d colors)",
                                   node.name, index, palette.color_count)
                    remap[index] = 0
            table = [remap.get(i, 0) for i in range(256)]
            offset = [l - ml for l, ml in zip(volume.region.lower, region.lower)]
            target = tuple(slice(o, o + d) for o, d in zip(offset, volume.region.dimensions))
            merged.types[target][solid] = volume.types[solid]
            merged.colors[target][solid] = [table[i] for i in volume.colors[solid].tolist()]
            logger.debug("Merged node '%s' (%d voxels)", node.name, int(solid.sum()))
        return MergedVolumePalette(merged, lookup.palette)

    def __repr__(self) -> str:
        return f"SceneGraph(nodes={len(self._nodes)}, models={len(self)})"
