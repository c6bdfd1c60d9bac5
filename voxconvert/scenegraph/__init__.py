"""
VoxConvert Scene Graph Module
=============================

Node hierarchy every format loads into and saves from.
"""

from voxconvert.scenegraph.node import (SceneGraphNode, SceneGraphNodeType,
                                        SceneGraphKeyFrame, SceneGraphTransform)
from voxconvert.scenegraph.scenegraph import SceneGraph, MergedVolumePalette

__all__ = ['SceneGraphNode', 'SceneGraphNodeType', 'SceneGraphKeyFrame',
           'SceneGraphTransform', 'SceneGraph', 'MergedVolumePalette']
