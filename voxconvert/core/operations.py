"""
VolumeOperations - Geometric Volume Transformations
===================================================

Crop, resize, rotate, mirror, rescale and split operations on volumes.

The static methods are pure: they read a volume (and palette where colors
matter) and return newly allocated volumes; the source volume is never
modified. The instance methods apply those transformations to the volume of
one scene graph node and replace it, leaving the node untouched when it has
no volume or the operation fails for geometric reasons.
"""

import logging
from typing import List, Optional, Sequence, TYPE_CHECKING, Union

import numpy as np
from scipy.spatial.transform import Rotation

from voxconvert.core.palette import Palette
from voxconvert.core.region import Region
from voxconvert.core.volume import Volume
from voxconvert.errors import GeometryError

if TYPE_CHECKING:
    from voxconvert.scenegraph.node import SceneGraphNode

logger = logging.getLogger(__name__)

AXES = {'x': 0, 'y': 1, 'z': 2}

Axis = Union[str, int]


def axis_index(axis: Axis) -> int:
    """
    Convert an axis name ('x', 'y', 'z') or index into an index.

    Raises:
        ValueError: For an unknown axis
    """
    if isinstance(axis, str):
        key = axis.strip().lower()[:1]
        if key in AXES:
            return AXES[key]
    elif axis in (0, 1, 2):
        return int(axis)
    raise ValueError(f"Unknown axis: {axis!r}")


class VolumeOperations:
    """
    Operations on the volume of a scene graph node.

    Can be used both as instance methods (with a node) or static methods
    (with plain volumes).
    """

    def __init__(self, node: 'SceneGraphNode' = None):
        """
        Initialize operations with an optional node reference.

        Args:
            node: SceneGraphNode whose volume is transformed
        """
        self.node = node

    def _replace(self, name: str, transform) -> bool:
        volume = self.node.volume if self.node is not None else None
        if volume is None:
            logger.debug("%s: node has no volume, skipping", name)
            return False
        try:
            result = transform(volume)
        except GeometryError as e:
            logger.warning("%s failed for node '%s': %s", name, self.node.name, e)
            return False
        if result is None:
            logger.warning("%s: node '%s' left unchanged", name, self.node.name)
            return False
        self.node.set_volume(result)
        return True

    def crop(self) -> bool:
        """Reduce the node volume to the region of its voxels."""
        return self._replace('crop', VolumeOperations.crop_volume)

    def resize(self, size: Sequence[int]) -> bool:
        """
        Resize the node volume.

        Args:
            size: New dimensions (x, y, z)
        """
        return self._replace('resize', lambda v: VolumeOperations.resize_volume(v, size))

    def rotate(self, axis: Axis, degrees: float = 90.0) -> bool:
        """
        Rotate the node volume around an axis through its center.

        The angle is taken modulo 360. Angles of one degree or less after
        that normalization are ignored with a warning.

        Args:
            axis: Rotation axis ('x', 'y' or 'z')
            degrees: Rotation angle
        """
        index = axis_index(axis)
        degrees = float(degrees) % 360.0
        if degrees <= 1.0:
            logger.warning("Don't rotate on axis %s by %f degree", 'xyz'[index], degrees)
            return False
        angles = [0.0, 0.0, 0.0]
        angles[index] = degrees
        return self._replace('rotate', lambda v: VolumeOperations.rotate_volume(v, angles))

    def mirror(self, axis: Axis) -> bool:
        """
        Mirror the node volume along an axis.

        Args:
            axis: Mirror axis ('x', 'y' or 'z')
        """
        return self._replace('mirror', lambda v: VolumeOperations.mirror_axis(v, axis))

    def scale(self, size: Optional[Sequence[int]] = None) -> bool:
        """Rescale the node volume, by default to half its size."""
        palette = self.node.palette if self.node is not None else None
        return self._replace('scale', lambda v: VolumeOperations.rescale_volume(v, palette, size))

    def translate(self, offset: Sequence[int]) -> bool:
        """Move the node volume by ``offset``."""
        volume = self.node.volume if self.node is not None else None
        if volume is None:
            return False
        volume.translate(offset)
        return True

    # ==================== Static Methods ====================

    @staticmethod
    def copy_region(src: Volume, dest: Volume, region: Region):
        """
        Copy the voxels of ``region`` from one volume into another.

        Args:
            src: Source volume
            dest: Destination volume
            region: World space region, clipped against both volumes
        """
        region = region.intersect(src.region).intersect(dest.region)
        if not region.is_valid():
            return
        src_slice = _slices(region, src.region)
        dest_slice = _slices(region, dest.region)
        dest.types[dest_slice] = src.types[src_slice]
        dest.colors[dest_slice] = src.colors[src_slice]

    @staticmethod
    def crop_volume(volume: Optional[Volume]) -> Optional[Volume]:
        """
        Crop a volume to the tightest region holding all non-air voxels.

        Args:
            volume: Volume to crop

        Returns:
            New volume over the tight region, or None if the input is None or
            has no solid voxel
        """
        if volume is None:
            return None
        solid = np.argwhere(volume.solid_mask())
        if len(solid) == 0:
            return None
        lower = np.asarray(volume.region.lower)
        mins = solid.min(axis=0)
        maxs = solid.max(axis=0)
        region = Region(tuple(mins + lower), tuple(maxs + lower))
        cropped = Volume(region)
        VolumeOperations.copy_region(volume, cropped, region)
        return cropped

    @staticmethod
    def resize_volume(volume: Optional[Volume], size: Sequence[int]) -> Optional[Volume]:
        """
        Re-allocate a volume with new dimensions.

        The lower corner stays in place. Voxels of the overlapping region are
        copied, new cells are air and voxels outside the new bounds are lost.

        Args:
            volume: Volume to resize
            size: New dimensions (x, y, z)

        Raises:
            GeometryError: If any dimension is not positive
        """
        if volume is None:
            return None
        if len(size) != 3 or any(int(s) <= 0 for s in size):
            raise GeometryError(f"Invalid volume size {tuple(size)}")
        region = Region.from_size([int(s) for s in size], volume.region.lower)
        resized = Volume(region)
        VolumeOperations.copy_region(volume, resized, volume.region)
        return resized

    @staticmethod
    def rotate_volume(volume: Optional[Volume], angles: Sequence[float],
                      pivot: Optional[Sequence[float]] = None) -> Optional[Volume]:
        """
        Rotate a volume by euler angles.

        The destination region is the bounding box of the rotated source
        region. Each destination cell center is transformed back into source
        space, relative to the centers of both regions, and the source cell it
        falls into is copied (nearest sampling). Cells mapping outside of the
        source stay air.

        Args:
            volume: Volume to rotate
            angles: Intrinsic XYZ euler angles in degrees
            pivot: Rotation pivot in world space that places the destination region,
                   defaults to the volume center

        Returns:
            New rotated volume
        """
        if volume is None:
            return None
        matrix = Rotation.from_euler('XYZ', angles, degrees=True).as_matrix()
        src_region = volume.region
        if pivot is None:
            pivot = src_region.center
        pivot = np.asarray(pivot, dtype=np.float64)
        dest_region = src_region.rotate(matrix, pivot)
        rotated = Volume(dest_region)

        grid = np.indices(dest_region.dimensions).reshape(3, -1).T
        centers = grid + np.asarray(dest_region.lower) + 0.5
        dest_center = np.asarray(dest_region.center)
        src_center = np.asarray(src_region.center)
        # row vectors: (c - p) @ R == R^T (c - p), the inverse rotation
        src = np.round((centers - dest_center) @ matrix + src_center, 9)
        local = np.floor(src).astype(np.int64) - np.asarray(src_region.lower)
        inside = np.all((local >= 0) & (local < np.asarray(src_region.dimensions)), axis=1)
        dst_idx = tuple(grid[inside].T)
        src_idx = tuple(local[inside].T)
        rotated.types[dst_idx] = volume.types[src_idx]
        rotated.colors[dst_idx] = volume.colors[src_idx]
        return rotated

    @staticmethod
    def mirror_axis(volume: Optional[Volume], axis: Axis) -> Optional[Volume]:
        """
        Reflect a volume along an axis within its region.

        Args:
            volume: Volume to mirror
            axis: Mirror axis ('x', 'y' or 'z')
        """
        if volume is None:
            return None
        index = axis_index(axis)
        return Volume(volume.region,
                      np.flip(volume.types, axis=index).copy(),
                      np.flip(volume.colors, axis=index).copy())

    @staticmethod
    def rescale_volume(volume: Optional[Volume], palette: Optional[Palette],
                       size: Optional[Sequence[int]] = None) -> Optional[Volume]:
        """
        Down-sample a volume.

        Every destination cell covers a block of source cells and takes the
        most frequent non-air color of that block. Colors are compared by
        their palette value, so different indices holding the same color
        count together; on equal counts the color found first in array order
        wins. Blocks without solid voxels become air.

        Args:
            volume: Volume to rescale
            palette: Palette used to compare colors (None compares indices)
            size: Target dimensions, defaults to half of the source dimensions

        Raises:
            GeometryError: If the target region is empty
        """
        if volume is None:
            return None
        src_region = volume.region
        if size is None:
            size = tuple(d // 2 for d in src_region.dimensions)
        if any(int(s) <= 0 for s in size):
            raise GeometryError(f"Volume {src_region} is too small to be rescaled to {tuple(size)}")
        dest_region = Region.from_size([int(s) for s in size], src_region.lower)
        scaled = Volume(dest_region)

        canonical = np.arange(256, dtype=np.int32)
        if palette is not None:
            for i, color in enumerate(palette):
                canonical[i] = palette.index_of(color)

        # gather every block into one array, each source cell tagged with its destination cell
        src_axes = []
        dest_axes = []
        for src_size, dest_size in zip(src_region.dimensions, dest_region.dimensions):
            bounds = _block_bounds(src_size, dest_size)
            src_axes.append(np.concatenate([np.arange(start, end) for start, end in bounds]))
            dest_axes.append(np.concatenate([np.full(end - start, d, dtype=np.int64)
                                             for d, (start, end) in enumerate(bounds)]))
        grid = np.ix_(*src_axes)
        solid = volume.solid_mask()[grid].ravel()
        if not solid.any():
            return scaled
        raw = volume.colors[grid].ravel()[solid]
        types = volume.types[grid].ravel()[solid]
        dx, dy, dz = dest_axes
        _, height, depth = dest_region.dimensions
        cells = ((dx[:, None, None] * height + dy[None, :, None]) * depth
                 + dz[None, None, :]).ravel()[solid]

        keys = cells * 256 + canonical[raw]
        unique, first, counts = np.unique(keys, return_index=True, return_counts=True)
        unique_cells = unique // 256
        # per cell: highest count first, then the earliest position
        order = np.lexsort((first, -counts, unique_cells))
        ordered_cells = unique_cells[order]
        winner = np.ones(len(order), dtype=bool)
        winner[1:] = ordered_cells[1:] != ordered_cells[:-1]
        pick = first[order[winner]]
        target = np.unravel_index(ordered_cells[winner], dest_region.dimensions)
        scaled.types[target] = types[pick]
        scaled.colors[target] = raw[pick]
        return scaled

    @staticmethod
    def split_volume(volume: Optional[Volume], size: Sequence[int],
                     skip_empty: bool = False) -> List[Volume]:
        """
        Tile a volume into sub-volumes of a fixed size.

        The tiles cover the source region without gaps or overlaps; the last
        tile on each axis is clipped to the source region.

        Args:
            volume: Volume to split
            size: Tile dimensions (x, y, z)
            skip_empty: Drop tiles without any solid voxel

        Returns:
            List of new volumes ordered by z, then y, then x

        Raises:
            GeometryError: If any tile dimension is not positive
        """
        if volume is None:
            return []
        if len(size) != 3 or any(int(s) <= 0 for s in size):
            raise GeometryError(f"Invalid split size {tuple(size)}")
        region = volume.region
        (lx, ly, lz), (ux, uy, uz) = region.lower, region.upper
        sx, sy, sz = (int(s) for s in size)
        pieces = []
        for z in range(lz, uz + 1, sz):
            for y in range(ly, uy + 1, sy):
                for x in range(lx, ux + 1, sx):
                    tile = Region((x, y, z), (min(x + sx - 1, ux), min(y + sy - 1, uy),
                                              min(z + sz - 1, uz)))
                    piece = Volume(tile)
                    VolumeOperations.copy_region(volume, piece, tile)
                    if skip_empty and piece.is_empty():
                        continue
                    pieces.append(piece)
        return pieces


def _slices(region: Region, within: Region):
    return tuple(slice(l - wl, u - wl + 1)
                 for l, u, wl in zip(region.lower, region.upper, within.lower))


def _block_bounds(src_size: int, dest_size: int):
    """Source cell ranges [start, end) covered by each destination cell."""
    bounds = []
    for d in range(dest_size):
        start = d * src_size // dest_size
        end = max(start + 1, (d + 1) * src_size // dest_size)
        bounds.append((start, min(end, src_size)))
    return bounds
