"""
VoxConvert - Voxel Format Interchange
=====================================

Converts voxel models between file formats through a format neutral scene
graph and applies geometric operations on the way:
- MagicaVoxel .vox (indexed palette)
- Qubicle Binary .qb (RGBA per voxel)
- Palette files (.png, .gpl, .pal)

Version: 1.0.0
"""

__version__ = "1.0.0"
__license__ = "MIT"

from voxconvert.core.palette import Palette, PaletteLookup
from voxconvert.core.region import Region
from voxconvert.core.volume import Volume
from voxconvert.scenegraph.scenegraph import SceneGraph

__all__ = ['Palette', 'PaletteLookup', 'Region', 'Volume', 'SceneGraph', '__version__']
