"""
Configuration
=============

Options for the format handlers and the conversion pipeline.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class FormatConfig:
    """Settings shared by the format handlers."""
    qb_compressed: bool = True
    qb_right_handed: bool = True
    # squared RGBA distance under which a color is matched to an existing entry
    color_tolerance: float = 0.0
    default_palette: str = "built-in:default"


@dataclass
class ConvertOptions:
    """
    What a conversion run does, in pipeline order.

    Attributes:
        input_files: Files to load; several inputs end up in one scene graph
        output: Target file, its extension picks the format
        force: Overwrite an existing output file
        filter: Model node selection like ``"1-4,6"`` (model order, 0 based)
        dump: Log the scene graph structure after loading
        export_layers: Save every model node into its own file
        export_palette: Save the palette of the first model as png
        merge: Merge all model nodes into one
        scale: Halve the volume sizes
        resize: New volume dimensions
        mirror: Axis to mirror along
        rotate: ``axis[:degrees]`` rotation
        translate: Offset for all volumes
        crop: Crop the volumes to their voxels
        split: Tile size to split the volumes into
    """
    input_files: List[str] = field(default_factory=list)
    output: Optional[str] = None
    force: bool = False
    filter: Optional[str] = None
    dump: bool = False
    export_layers: bool = False
    export_palette: bool = False
    merge: bool = False
    scale: bool = False
    resize: Optional[Tuple[int, int, int]] = None
    mirror: Optional[str] = None
    rotate: Optional[str] = None
    translate: Optional[Tuple[int, int, int]] = None
    crop: bool = False
    split: Optional[Tuple[int, int, int]] = None
    palette: Optional[str] = None
    format: FormatConfig = field(default_factory=FormatConfig)
