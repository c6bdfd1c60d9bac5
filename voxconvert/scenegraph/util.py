"""Helpers to move nodes between scene graphs."""

import copy
import logging

from voxconvert.scenegraph.node import SceneGraphNode
from voxconvert.scenegraph.scenegraph import SceneGraph

logger = logging.getLogger(__name__)


def copy_node(source: SceneGraphNode, move_volume: bool = True) -> SceneGraphNode:
    """
    Create a detached copy of a node.

    Args:
        source: Node to copy
        move_volume: Move the volume to the new node instead of copying it

    Returns:
        New node without id, parent or children
    """
    target = SceneGraphNode(source.type, source.name)
    target.properties = dict(source.properties)
    target.key_frames = copy.deepcopy(source.key_frames)
    if source.has_palette():
        target.set_palette(source.palette)
    if source.volume is not None:
        if move_volume:
            target.set_volume(source.volume)
        else:
            target.set_volume(source.volume.copy())
    return target


def add_scene_graph_node(target: SceneGraph, source: SceneGraph,
                         node: SceneGraphNode, parent: int) -> int:
    """Copy ``node`` and its subtree from ``source`` below ``parent`` of ``target``."""
    new_id = target.emplace(copy_node(node), parent)
    for child in source.children(node.id):
        add_scene_graph_node(target, source, child, new_id)
    return new_id


def add_scene_graph_nodes(target: SceneGraph, source: SceneGraph, parent: int = 0) -> int:
    """
    Move all nodes of ``source`` below ``parent`` in ``target``.

    Volumes are moved, so ``source`` ends up without volumes.

    Returns:
        Number of nodes added
    """
    count = 0
    for child in source.children(source.root.id):
        add_scene_graph_node(target, source, child, parent)
        count += 1
    logger.debug("Added %d top level nodes below %d", count, parent)
    return count
