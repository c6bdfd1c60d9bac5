"""Exceptions raised by the voxconvert core and format handlers."""


class VoxConvertError(Exception):
    """Base exception for voxconvert errors"""
    pass


class FormatError(VoxConvertError):
    """Malformed input data or an unsupported file format"""
    pass


class GeometryError(VoxConvertError):
    """Invalid region or volume geometry (empty crop, bad size, no models)"""
    pass


class VolumeBoundsError(VoxConvertError, IndexError):
    """Voxel access outside of the volume region"""
    pass


class SceneGraphError(VoxConvertError, KeyError):
    """Unknown node or parent id in a scene graph"""
    pass
