"""
Tests for volume operations
"""
import numpy as np
import pytest

from conftest import model_node, solid_box
from voxconvert.core.operations import VolumeOperations, axis_index
from voxconvert.core.palette import Palette
from voxconvert.core.region import Region
from voxconvert.core.volume import Volume
from voxconvert.core.voxel import VoxelType, create_voxel
from voxconvert.errors import GeometryError


def sparse_volume():
    """10x10x10 volume with two voxels at (2, 3, 4) and (5, 3, 6)."""
    volume = Volume(Region.cube(0, 9))
    volume.set_voxel(2, 3, 4, create_voxel(VoxelType.GENERIC, 1))
    volume.set_voxel(5, 3, 6, create_voxel(VoxelType.GENERIC, 2))
    return volume


class TestAxis:

    @pytest.mark.parametrize("axis, expected", [('x', 0), ('Y', 1), ('z', 2), (1, 1)])
    def test_axis_index(self, axis, expected):
        assert axis_index(axis) == expected

    def test_unknown_axis(self):
        with pytest.raises(ValueError):
            axis_index('w')


class TestCrop:
    """Cropping to the voxel bounding box"""

    def test_crop_to_solid_voxels(self):
        cropped = VolumeOperations.crop_volume(sparse_volume())
        assert cropped.region == Region((2, 3, 4), (5, 3, 6))
        assert cropped.voxel(2, 3, 4).color == 1
        assert cropped.voxel(5, 3, 6).color == 2
        assert cropped.voxel_count() == 2

    def test_crop_is_idempotent(self):
        once = VolumeOperations.crop_volume(sparse_volume())
        twice = VolumeOperations.crop_volume(once)
        assert twice == once

    def test_crop_empty_volume(self, small_region):
        assert VolumeOperations.crop_volume(Volume(small_region)) is None
        assert VolumeOperations.crop_volume(None) is None

    def test_crop_node_keeps_empty_volume(self, small_region):
        volume = Volume(small_region)
        node = model_node(volume)
        assert not VolumeOperations(node).crop()
        assert node.volume is volume

    def test_crop_node_replaces_volume(self):
        node = model_node(sparse_volume())
        assert VolumeOperations(node).crop()
        assert node.region == Region((2, 3, 4), (5, 3, 6))
        assert node.volume.owner is node


class TestResize:

    def test_grow_keeps_lower_corner(self):
        volume = solid_box((2, 2, 2), (1, 1, 1))
        resized = VolumeOperations.resize_volume(volume, (4, 3, 2))
        assert resized.region == Region((1, 1, 1), (4, 3, 2))
        assert resized.voxel_count() == 8
        assert resized.voxel(4, 3, 2).is_air()

    def test_shrink_drops_voxels(self):
        resized = VolumeOperations.resize_volume(solid_box((4, 4, 4)), (2, 4, 4))
        assert resized.voxel_count() == 32

    def test_invalid_size(self):
        with pytest.raises(GeometryError):
            VolumeOperations.resize_volume(solid_box((2, 2, 2)), (0, 2, 2))

    def test_node_resize_failure_keeps_volume(self):
        volume = solid_box((2, 2, 2))
        node = model_node(volume)
        assert not VolumeOperations(node).resize((2, -1, 2))
        assert node.volume is volume


class TestRotate:
    """Rotation with nearest sampling"""

    def test_rotate_90_keeps_voxels(self):
        volume = solid_box((4, 2, 2))
        volume.set_voxel(3, 0, 0, create_voxel(VoxelType.GENERIC, 7))
        volume.set_voxel(3, 1, 0, create_voxel(VoxelType.GENERIC, 7))
        rotated = VolumeOperations.rotate_volume(volume, [0.0, 90.0, 0.0])
        assert rotated.region.dimensions == (2, 2, 4)
        assert rotated.voxel_count() == 16
        assert int(np.count_nonzero(rotated.colors == 7)) == 2
        assert volume.region.dimensions == (4, 2, 2)

    def test_rotate_90_odd_box(self):
        """Quarter turns of boxes with odd extents neither lose nor add cells."""
        volume = solid_box((3, 1, 2))
        volume.set_voxel(2, 0, 0, create_voxel(VoxelType.GENERIC, 7))
        rotated = VolumeOperations.rotate_volume(volume, [0.0, 90.0, 0.0])
        assert rotated.region.dimensions == (2, 1, 3)
        assert rotated.voxel_count() == 6
        assert int(np.count_nonzero(rotated.colors == 7)) == 1

    def test_four_quarter_turns_restore_volume(self):
        volume = solid_box((3, 1, 2))
        volume.set_voxel(0, 0, 1, create_voxel(VoxelType.GENERIC, 4))
        original = volume.copy()
        node = model_node(volume)
        ops = VolumeOperations(node)
        for _ in range(4):
            assert ops.rotate('y', 90)
            assert node.volume.voxel_count() == 6
        assert node.region == Region((0, 0, 0), (2, 0, 1))
        assert node.volume == original

    def test_rotate_round_trip(self):
        node = model_node(solid_box((10, 10, 10)))
        ops = VolumeOperations(node)
        assert ops.rotate('y', 45)
        assert ops.rotate('y', -45)
        assert ops.crop()
        region = node.region
        assert region.lower[1] == 0 and region.upper[1] == 9
        for axis in (0, 2):
            assert abs(region.lower[axis]) <= 1
            assert abs(region.upper[axis] - 9) <= 1
        assert node.volume.voxel_count() > 800

    @pytest.mark.parametrize("degrees", [0, 360, 1, 720.5])
    def test_tiny_angles_are_ignored(self, degrees):
        volume = solid_box((3, 3, 3))
        node = model_node(volume)
        assert not VolumeOperations(node).rotate('x', degrees)
        assert node.volume is volume

    def test_rotate_without_volume(self):
        assert not VolumeOperations(None).rotate('z', 90)


class TestMirror:

    def test_mirror_x(self):
        volume = Volume(Region((0, 0, 0), (3, 0, 0)))
        volume.set_voxel(0, 0, 0, create_voxel(VoxelType.GENERIC, 4))
        mirrored = VolumeOperations.mirror_axis(volume, 'x')
        assert mirrored.region == volume.region
        assert mirrored.voxel(3, 0, 0).color == 4
        assert mirrored.voxel(0, 0, 0).is_air()

    def test_mirror_twice_is_identity(self):
        volume = sparse_volume()
        twice = VolumeOperations.mirror_axis(VolumeOperations.mirror_axis(volume, 'z'), 'z')
        assert twice == volume

    def test_mirror_unknown_axis(self):
        with pytest.raises(ValueError):
            VolumeOperations.mirror_axis(sparse_volume(), 'w')


class TestRescale:
    """Down-sampling by majority color"""

    def test_default_halves(self):
        volume = solid_box((4, 4, 4), (2, 2, 2), color=3)
        scaled = VolumeOperations.rescale_volume(volume, None)
        assert scaled.region == Region((2, 2, 2), (3, 3, 3))
        assert scaled.voxel_count() == 8
        assert scaled.voxel(3, 3, 3).color == 3

    def test_equal_colors_count_together(self):
        palette = Palette([(255, 0, 0, 255), (0, 0, 255, 255), (0, 0, 255, 255)])
        volume = Volume(Region.cube(0, 1))
        for pos, color in [((0, 0, 0), 0), ((0, 0, 1), 0), ((0, 1, 0), 1),
                           ((0, 1, 1), 2), ((1, 0, 0), 2)]:
            volume.set_voxel(*pos, create_voxel(VoxelType.GENERIC, color))
        by_index = VolumeOperations.rescale_volume(volume, None, (1, 1, 1))
        assert by_index.voxel(0, 0, 0).color == 0
        by_color = VolumeOperations.rescale_volume(volume, palette, (1, 1, 1))
        assert by_color.voxel(0, 0, 0).color == 1

    def test_tie_prefers_first_in_array_order(self):
        volume = Volume(Region.cube(0, 1))
        volume.set_voxel(0, 0, 1, create_voxel(VoxelType.GENERIC, 0))
        volume.set_voxel(0, 0, 0, create_voxel(VoxelType.GENERIC, 5))
        scaled = VolumeOperations.rescale_volume(volume, None)
        assert scaled.voxel(0, 0, 0).color == 5

    def test_every_block_gets_its_own_majority(self):
        volume = solid_box((6, 6, 6), color=1)
        for pos in [(0, 0, 0), (0, 0, 1), (0, 1, 0), (1, 0, 0), (1, 1, 1)]:
            volume.set_voxel(*pos, create_voxel(VoxelType.GENERIC, 2))
        volume.set_voxel(5, 5, 5, create_voxel(VoxelType.GENERIC, 3))
        scaled = VolumeOperations.rescale_volume(volume, None)
        assert scaled.region.dimensions == (3, 3, 3)
        assert scaled.voxel_count() == 27
        assert scaled.voxel(0, 0, 0).color == 2
        assert int(np.count_nonzero(scaled.colors == 1)) == 26

    def test_empty_blocks_stay_air(self):
        volume = Volume(Region.cube(0, 3))
        volume.set_voxel(0, 0, 0, create_voxel(VoxelType.GENERIC, 1))
        scaled = VolumeOperations.rescale_volume(volume, None)
        assert scaled.voxel_count() == 1

    def test_too_small(self):
        volume = solid_box((1, 4, 4))
        with pytest.raises(GeometryError):
            VolumeOperations.rescale_volume(volume, None)
        node = model_node(volume)
        assert not VolumeOperations(node).scale()
        assert node.volume is volume


class TestSplit:

    def test_tiles_cover_region(self):
        volume = solid_box((10, 7, 5))
        pieces = VolumeOperations.split_volume(volume, (4, 4, 4))
        assert len(pieces) == 12
        assert sum(p.voxel_count() for p in pieces) == 350
        assert Region.bounding(p.region for p in pieces) == volume.region
        for i, a in enumerate(pieces):
            for b in pieces[i + 1:]:
                assert not a.region.intersect(b.region).is_valid()

    def test_skip_empty(self):
        volume = Volume(Region.cube(0, 7))
        volume.set_voxel(6, 6, 6, create_voxel(VoxelType.GENERIC, 1))
        pieces = VolumeOperations.split_volume(volume, (4, 4, 4), skip_empty=True)
        assert len(pieces) == 1
        assert pieces[0].region == Region.cube(4, 7)

    def test_invalid_size(self):
        with pytest.raises(GeometryError):
            VolumeOperations.split_volume(solid_box((2, 2, 2)), (2, 0, 2))


class TestTranslateAndCopy:

    def test_translate_node(self):
        node = model_node(solid_box((2, 2, 2)))
        assert VolumeOperations(node).translate((1, 2, 3))
        assert node.region == Region((1, 2, 3), (2, 3, 4))

    def test_copy_region_clips(self):
        src = solid_box((4, 4, 4), color=2)
        dest = Volume(Region.cube(2, 5))
        VolumeOperations.copy_region(src, dest, Region.cube(-10, 10))
        assert dest.voxel_count() == 8
        assert dest.voxel(3, 3, 3).color == 2
        assert dest.voxel(4, 4, 4).is_air()
