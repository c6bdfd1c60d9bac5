"""
Tests for region arithmetic
"""
import pytest
from scipy.spatial.transform import Rotation

from voxconvert.core.region import INVALID_REGION, Region


class TestContains:
    """Point and region containment"""

    def test_contains_point(self):
        region = Region((0, 0, 0), (15, 15, 15))
        assert region.contains_point((0, 0, 0))
        assert region.contains_point((15, 15, 15))
        assert not region.contains_point((16, 16, 16))

    def test_contains_point_with_margin(self):
        region = Region((0, 0, 0), (15, 15, 15))
        assert not region.contains_point((0, 0, 0), 1)
        assert not region.contains_point((15, 15, 15), 1)
        assert region.contains_point((1, 1, 1), 1)

    def test_contains_region(self):
        region = Region((0, 0, 0), (15, 15, 15))
        assert region.contains_region(region)
        assert not region.contains_region(region, 1)
        assert region.contains_region(Region((2, 2, 2), (4, 4, 4)))

    def test_invalid_region_fails_all_queries(self):
        assert not INVALID_REGION.is_valid()
        assert not INVALID_REGION.contains_point((0, 0, 0))
        assert not INVALID_REGION.contains_region(Region.cube(0, 0))
        assert not Region.cube(0, 5).contains_region(INVALID_REGION)
        assert INVALID_REGION.voxel_count == 0


class TestDimensions:
    """Size arithmetic"""

    def test_inclusive_corners(self):
        region = Region((-1, 0, 2), (1, 3, 2))
        assert region.dimensions == (3, 4, 1)
        assert region.width == 3
        assert region.height == 4
        assert region.depth == 1
        assert region.voxel_count == 12

    def test_from_size(self):
        region = Region.from_size((4, 5, 6), (1, 1, 1))
        assert region.lower == (1, 1, 1)
        assert region.upper == (4, 5, 6)

    def test_center(self):
        assert Region.cube(0, 9).center == (5.0, 5.0, 5.0)

    def test_corners_are_ints(self):
        region = Region((1.0, 2.0, 3.0), [4, 5, 6])
        assert region.lower == (1, 2, 3)
        assert region.upper == (4, 5, 6)

    def test_frozen(self):
        region = Region.cube(0, 1)
        with pytest.raises(AttributeError):
            region.lower = (1, 1, 1)


class TestDerivedRegions:
    """translate, intersect, union"""

    def test_translate_returns_new_region(self):
        region = Region.cube(0, 3)
        moved = region.translate((1, -2, 3))
        assert moved == Region((1, -2, 3), (4, 1, 6))
        assert region == Region.cube(0, 3)

    def test_intersect(self):
        a = Region.cube(0, 5)
        b = Region.cube(3, 8)
        assert a.intersect(b) == Region.cube(3, 5)
        assert not a.intersect(Region.cube(6, 8)).is_valid()

    def test_union_and_bounding(self):
        a = Region.cube(0, 1)
        b = Region((5, -3, 0), (6, 0, 0))
        assert a.union(b) == Region((0, -3, 0), (6, 1, 1))
        assert Region.bounding([a, b, INVALID_REGION]) == Region((0, -3, 0), (6, 1, 1))
        assert Region.bounding([]) == INVALID_REGION

    def test_positions_order(self):
        positions = list(Region((0, 0, 0), (1, 1, 0)).positions())
        assert positions == [(0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0)]


class TestRotate:
    """Bounding box of rotated regions"""

    def test_rotate_axis_y_45(self):
        matrix = Rotation.from_euler('XYZ', [0.0, 45.0, 0.0], degrees=True).as_matrix()
        rotated = Region.cube(-10, 10).rotate(matrix, (0.0, 0.0, 0.0))
        assert rotated.lower[1] == -10
        assert rotated.upper[1] == 10
        assert rotated.lower == (-14, -10, -15)
        assert rotated.upper == (15, 10, 14)

    def test_rotate_accepts_4x4_matrix(self):
        matrix = [[1, 0, 0, 5], [0, 1, 0, 5], [0, 0, 1, 5], [0, 0, 0, 1]]
        region = Region((0, 0, 0), (3, 4, 5))
        assert region.rotate(matrix, (0, 0, 0)) == region

    def test_rotate_90_swaps_dimensions(self):
        matrix = Rotation.from_euler('XYZ', [0.0, 90.0, 0.0], degrees=True).as_matrix()
        region = Region((0, 0, 0), (3, 1, 1))
        rotated = region.rotate(matrix, region.center)
        assert rotated.dimensions == (2, 2, 4)

    def test_rotate_90_keeps_odd_extents(self):
        """A 3x1x2 box turned a quarter keeps exactly 2x1x3 cells."""
        matrix = Rotation.from_euler('XYZ', [0.0, 90.0, 0.0], degrees=True).as_matrix()
        region = Region((0, 0, 0), (2, 0, 1))
        rotated = region.rotate(matrix, region.center)
        assert rotated == Region((0, 0, 0), (1, 0, 2))
        assert rotated.voxel_count == region.voxel_count

    def test_rotate_is_not_volume_preserving(self):
        matrix = Rotation.from_euler('XYZ', [0.0, 45.0, 0.0], degrees=True).as_matrix()
        region = Region.cube(0, 9)
        rotated = region.rotate(matrix, region.center)
        assert rotated.voxel_count > region.voxel_count

    def test_rotate_invalid_region(self):
        assert INVALID_REGION.rotate([[1, 0, 0], [0, 1, 0], [0, 0, 1]], (0, 0, 0)) == INVALID_REGION


class TestMoveInto:
    """Wrapping step offsets into a region"""

    @pytest.mark.parametrize("lower, upper, step, expected", [
        ((0, 0, 0), (0, 0, 0), (2, 2, 2), (0, 0, 0)),
        ((0, 0, 0), (0, 0, 0), (0, 0, 0), (0, 0, 0)),
        ((0, 0, 0), (0, 0, 0), (10, 0, 0), (0, 0, 0)),
        ((0, 0, 0), (10, 10, 10), (2, 2, 2), (2, 2, 2)),
        ((0, 0, 0), (10, 10, 10), (2, 20, 2), (2, 9, 2)),
        ((0, 0, 0), (10, 10, 10), (2, 10, 2), (2, 10, 2)),
        ((10, 10, 10), (11, 11, 11), (2, 2, 2), (10, 10, 10)),
        ((10, 10, 10), (15, 15, 15), (2, 2, 2), (12, 12, 12)),
        ((-10, -10, -10), (15, 15, 15), (2, 2, 2), (-8, -8, -8)),
        ((-10, -10, -10), (15, 15, 15), (-2, -2, -2), (13, 13, 13)),
        ((-10, -10, -10), (10, 10, 10), (41, 41, -41), (10, 10, -10)),
    ])
    def test_move_into(self, lower, upper, step, expected):
        region = Region(lower, upper)
        pos = region.move_into(*step)
        assert pos == expected
        assert region.contains_point(pos)
