"""
Volume - Core Voxel Data Structure
==================================

Dense voxel storage bound to a Region. Uses two numpy arrays of the region's
dimensions: the voxel type tags and the palette indices. Array index
``[0, 0, 0]`` is the region's lower corner; all public accessors take world
coordinates.
"""

from typing import Iterator, Optional, Sequence, Tuple

import numpy as np

from voxconvert.core.region import Region
from voxconvert.core.voxel import AIR, Voxel, VoxelType
from voxconvert.errors import GeometryError, VolumeBoundsError


class Volume:
    """
    Dense 3D array of voxels confined to a region.

    Attributes:
        region: The region the volume covers
        types: uint8 array of VoxelType tags
        colors: uint8 array of palette indices
    """

    def __init__(self, region: Region, types: Optional[np.ndarray] = None,
                 colors: Optional[np.ndarray] = None):
        """
        Allocate a volume.

        Args:
            region: Region of the volume, must be valid
            types: Optional initial type array (copied by reference)
            colors: Optional initial palette index array

        Raises:
            GeometryError: If the region is invalid or the arrays don't fit
        """
        if not region.is_valid():
            raise GeometryError(f"Can't create a volume for an {region}")
        dims = region.dimensions
        if types is None:
            types = np.zeros(dims, dtype=np.uint8)
        if colors is None:
            colors = np.zeros(dims, dtype=np.uint8)
        if types.shape != dims or colors.shape != dims:
            raise GeometryError(f"Array shape {types.shape} doesn't match region {region}")
        self._region = region
        self._types = types.astype(np.uint8, copy=False)
        self._colors = colors.astype(np.uint8, copy=False)
        self._owner = None

    @classmethod
    def from_array(cls, array: np.ndarray, lower: Sequence[int] = (0, 0, 0)) -> 'Volume':
        """
        Create a volume from an index array where 0 means empty.

        Every non-zero cell becomes a generic voxel with color ``value - 1``.

        Args:
            array: 3D numpy array of voxel data
            lower: Lower corner of the resulting region
        """
        array = np.asarray(array)
        region = Region.from_size(array.shape, lower)
        solid = array > 0
        types = np.where(solid, VoxelType.GENERIC, VoxelType.AIR).astype(np.uint8)
        colors = np.where(solid, array.astype(np.int32) - 1, 0).astype(np.uint8)
        return cls(region, types, colors)

    @property
    def region(self) -> Region:
        return self._region

    @property
    def types(self) -> np.ndarray:
        return self._types

    @property
    def colors(self) -> np.ndarray:
        return self._colors

    @property
    def owner(self):
        """The scene graph node currently owning this volume (or None)."""
        return self._owner

    def solid_mask(self) -> np.ndarray:
        """Boolean array, True for every non-air cell."""
        return self._types != VoxelType.AIR

    def _local(self, x: int, y: int, z: int) -> Tuple[int, int, int]:
        if not self._region.contains_point((x, y, z)):
            raise VolumeBoundsError(f"Position {x}:{y}:{z} is outside of {self._region}")
        lx, ly, lz = self._region.lower
        return x - lx, y - ly, z - lz

    def voxel(self, x: int, y: int, z: int) -> Voxel:
        """
        Get the voxel at a world position.

        Raises:
            VolumeBoundsError: If the position is outside the region
        """
        pos = self._local(x, y, z)
        voxel_type = self._types[pos]
        if voxel_type == VoxelType.AIR:
            return AIR
        return Voxel(VoxelType(int(voxel_type)), int(self._colors[pos]))

    def set_voxel(self, x: int, y: int, z: int, voxel: Voxel):
        """
        Set the voxel at a world position.

        Raises:
            VolumeBoundsError: If the position is outside the region
        """
        pos = self._local(x, y, z)
        self._types[pos] = int(voxel.type)
        self._colors[pos] = voxel.color if not voxel.is_air() else 0

    def translate(self, offset: Sequence[int]):
        """Move the volume by ``offset``; the voxel data is untouched."""
        self._region = self._region.translate(offset)

    def voxel_count(self) -> int:
        """Get the number of non-air voxels."""
        return int(np.count_nonzero(self._types))

    def is_empty(self) -> bool:
        return not self._types.any()

    def iter_voxels(self) -> Iterator[Tuple[int, int, int, Voxel]]:
        """
        Iterate all non-air voxels in x, y, z array order.

        Yields:
            Tuples of (x, y, z, Voxel) in world coordinates
        """
        lx, ly, lz = self._region.lower
        for x, y, z in np.argwhere(self._types != VoxelType.AIR):
            yield (int(x) + lx, int(y) + ly, int(z) + lz,
                   Voxel(VoxelType(int(self._types[x, y, z])), int(self._colors[x, y, z])))

    def copy(self) -> 'Volume':
        """Create a deep copy of this volume (not owned by any node)."""
        return Volume(self._region, self._types.copy(), self._colors.copy())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Volume):
            return NotImplemented
        if self._region != other._region:
            return False
        solid = self.solid_mask()
        return (np.array_equal(self._types, other._types) and
                np.array_equal(self._colors[solid], other._colors[solid]))

    __hash__ = None

    def __repr__(self) -> str:
        return f"Volume(region={self._region}, voxels={self.voxel_count()})"
