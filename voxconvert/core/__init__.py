"""
VoxConvert Core Module
======================

Core data structures and algorithms for voxel manipulation.
"""

from voxconvert.core.region import Region, INVALID_REGION
from voxconvert.core.palette import Palette, PaletteColor, PaletteLookup
from voxconvert.core.voxel import Voxel, VoxelType, create_voxel
from voxconvert.core.volume import Volume
from voxconvert.core.operations import VolumeOperations

__all__ = ['Region', 'INVALID_REGION', 'Palette', 'PaletteColor', 'PaletteLookup',
           'Voxel', 'VoxelType', 'create_voxel', 'Volume', 'VolumeOperations']
