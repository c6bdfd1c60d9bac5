"""Voxel cell values: a type tag plus a palette index."""

from dataclasses import dataclass
from enum import IntEnum


class VoxelType(IntEnum):
    AIR = 0
    GENERIC = 1


@dataclass(frozen=True)
class Voxel:
    """
    A single volume cell.

    Two voxels are equal when type and palette index are equal; the resolved
    color is never part of the comparison.
    """
    type: VoxelType = VoxelType.AIR
    color: int = 0

    def is_air(self) -> bool:
        return self.type == VoxelType.AIR


AIR = Voxel()


def create_voxel(voxel_type: VoxelType, color: int) -> Voxel:
    """Create a voxel; air voxels always carry color index 0."""
    if voxel_type == VoxelType.AIR:
        return AIR
    if not 0 <= color <= 255:
        raise ValueError(f"Palette index {color} out of range (0..255)")
    return Voxel(VoxelType(voxel_type), int(color))
