"""
Region - Integer Axis-Aligned Bounding Box
==========================================

Immutable box with inclusive lower and upper corners. Every volume is bound
to one region, and all geometric operations (crop, resize, rotate, split)
are expressed through region arithmetic.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np

Vec3 = Tuple[int, int, int]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Region:
    """
    Integer axis-aligned bounding box.

    Both corners are inclusive: a region from (0, 0, 0) to (15, 15, 15)
    holds 16 voxels along each axis. A cell at integer position ``p`` covers
    the continuous space ``[p, p + 1)``.

    Attributes:
        lower: Lower corner (x, y, z)
        upper: Upper corner (x, y, z)
    """

    lower: Vec3 = (0, 0, 0)
    upper: Vec3 = (0, 0, 0)

    def __post_init__(self):
        object.__setattr__(self, 'lower', tuple(int(v) for v in self.lower))
        object.__setattr__(self, 'upper', tuple(int(v) for v in self.upper))

    @classmethod
    def cube(cls, mins: int, maxs: int) -> 'Region':
        """Create a region with the same lower/upper value on every axis."""
        return cls((mins, mins, mins), (maxs, maxs, maxs))

    @classmethod
    def from_size(cls, size: Sequence[int], lower: Sequence[int] = (0, 0, 0)) -> 'Region':
        """
        Create a region of the given dimensions.

        Args:
            size: Number of voxels per axis
            lower: Lower corner of the new region

        Returns:
            Region spanning ``lower .. lower + size - 1``
        """
        return cls(tuple(lower), tuple(l + s - 1 for l, s in zip(lower, size)))

    @classmethod
    def bounding(cls, regions: Iterable['Region']) -> 'Region':
        """Union of all valid regions, or INVALID_REGION if there is none."""
        result = INVALID_REGION
        for region in regions:
            result = result.union(region)
        return result

    # ==================== Queries ====================

    def is_valid(self) -> bool:
        """True if lower <= upper on every axis."""
        return all(l <= u for l, u in zip(self.lower, self.upper))

    @property
    def dimensions(self) -> Vec3:
        """Size in voxels per axis (upper - lower + 1)."""
        return tuple(u - l + 1 for l, u in zip(self.lower, self.upper))

    @property
    def width(self) -> int:
        return self.upper[0] - self.lower[0] + 1

    @property
    def height(self) -> int:
        return self.upper[1] - self.lower[1] + 1

    @property
    def depth(self) -> int:
        return self.upper[2] - self.lower[2] + 1

    @property
    def voxel_count(self) -> int:
        if not self.is_valid():
            return 0
        w, h, d = self.dimensions
        return w * h * d

    @property
    def center(self) -> Tuple[float, float, float]:
        """Continuous center of the box covered by the region's cells."""
        return tuple(l + (u - l + 1) / 2.0 for l, u in zip(self.lower, self.upper))

    def contains_point(self, point: Sequence[int], margin: int = 0) -> bool:
        """
        Check whether a point lies inside the region.

        Args:
            point: Position (x, y, z)
            margin: Distance the point must keep from the region borders

        Returns:
            True if every component lies in [lower + margin, upper - margin]
        """
        if not self.is_valid():
            return False
        return all(l + margin <= p <= u - margin
                   for p, l, u in zip(point, self.lower, self.upper))

    def contains_region(self, other: 'Region', margin: int = 0) -> bool:
        """True if both corners of ``other`` are contained in this region."""
        if not other.is_valid():
            return False
        return (self.contains_point(other.lower, margin) and
                self.contains_point(other.upper, margin))

    # ==================== Derived regions ====================

    def translate(self, offset: Sequence[int]) -> 'Region':
        """Return the region moved by ``offset``."""
        if not self.is_valid():
            return self
        return Region(tuple(l + o for l, o in zip(self.lower, offset)),
                      tuple(u + o for u, o in zip(self.upper, offset)))

    def intersect(self, other: 'Region') -> 'Region':
        """Overlap of both regions (invalid if they don't touch)."""
        if not self.is_valid() or not other.is_valid():
            return INVALID_REGION
        lower = tuple(max(a, b) for a, b in zip(self.lower, other.lower))
        upper = tuple(min(a, b) for a, b in zip(self.upper, other.upper))
        region = Region(lower, upper)
        return region if region.is_valid() else INVALID_REGION

    def union(self, other: 'Region') -> 'Region':
        """Smallest region containing both regions."""
        if not other.is_valid():
            return self
        if not self.is_valid():
            return other
        return Region(tuple(min(a, b) for a, b in zip(self.lower, other.lower)),
                      tuple(max(a, b) for a, b in zip(self.upper, other.upper)))

    def move_into(self, dx: int, dy: int, dz: int) -> Vec3:
        """
        Wrap a step offset into the region.

        Positive offsets are counted from the lower corner, negative ones
        backwards from the upper corner. Offsets larger than the region
        dimensions wrap around, so the result is always inside the region.

        Args:
            dx, dy, dz: Step offset per axis

        Returns:
            The wrapped position in world coordinates
        """
        result = []
        for l, u, size, offset in zip(self.lower, self.upper, self.dimensions, (dx, dy, dz)):
            if offset < 0:
                result.append(u - (-offset) % size)
            else:
                result.append(l + offset % size)
        return tuple(result)

    def rotate(self, matrix, pivot: Sequence[float]) -> 'Region':
        """
        Compute the bounding box of the region rotated about ``pivot``.

        All eight corners of the box covered by the region's cells are
        transformed and the axis-aligned bounding box of the result is
        returned. This is NOT a rotated volume: the returned region is in
        general larger than the source and holds more cells than the rotated
        content occupies.

        Each axis keeps the rounded extent of the transformed box and is
        placed around its transformed center, so right-angle rotations keep
        the cell count and four quarter turns give back the source region.

        Args:
            matrix: 3x3 linear transform (a 4x4 matrix has its translation ignored)
            pivot: Rotation pivot in world coordinates

        Returns:
            New axis-aligned Region enclosing the transformed corners
        """
        if not self.is_valid():
            return INVALID_REGION
        mat = np.asarray(matrix, dtype=np.float64)[:3, :3]
        pivot = np.asarray(pivot, dtype=np.float64)
        mins = np.asarray(self.lower, dtype=np.float64) - pivot
        maxs = np.asarray(self.upper, dtype=np.float64) + 1.0 - pivot
        corners = np.array([[x, y, z]
                            for x in (mins[0], maxs[0])
                            for y in (mins[1], maxs[1])
                            for z in (mins[2], maxs[2])])
        rotated = np.round(corners @ mat.T + pivot, 9)
        lower = []
        upper = []
        for lo, hi in zip(rotated.min(axis=0), rotated.max(axis=0)):
            size = max(1, _round_half_up(hi - lo))
            start = (lo + hi) / 2.0 - size / 2.0
            # ties go down for even sizes and up for odd sizes, so quarter
            # turns and their inverses land on the same cells
            if abs(start - math.floor(start) - 0.5) < 1e-6:
                start = math.floor(start) if size % 2 == 0 else math.ceil(start)
            else:
                start = _round_half_up(start)
            lower.append(int(start))
            upper.append(int(start) + size - 1)
        return Region(tuple(lower), tuple(upper))

    # ==================== Iteration ====================

    def positions(self) -> Iterator[Vec3]:
        """Iterate all positions, x fastest, then y, then z."""
        if not self.is_valid():
            return
        for z in range(self.lower[2], self.upper[2] + 1):
            for y in range(self.lower[1], self.upper[1] + 1):
                for x in range(self.lower[0], self.upper[0] + 1):
                    yield (x, y, z)

    def __str__(self) -> str:
        if not self.is_valid():
            return "invalid region"
        return "{}:{}:{} - {}:{}:{}".format(*self.lower, *self.upper)


INVALID_REGION = Region((0, 0, 0), (-1, -1, -1))
