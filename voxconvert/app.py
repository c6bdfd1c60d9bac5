"""
VoxConvert - Conversion Pipeline
================================

Loads one or more input files into a scene graph, applies the requested
operations in a fixed order and saves the result:

    filter -> export layers -> merge -> scale -> resize -> mirror ->
    rotate -> translate -> crop -> split -> save

A failing input file is logged and skipped, the remaining inputs are still
converted. Geometric failures on single nodes leave the node unchanged.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence, Set, Tuple

from voxconvert.config import ConvertOptions
from voxconvert.core.operations import VolumeOperations, axis_index
from voxconvert.core.palette import Palette
from voxconvert.errors import FormatError, VoxConvertError
from voxconvert.formats import find_format, load_format, load_palette, save_format
from voxconvert.scenegraph.node import SceneGraphNode, SceneGraphNodeType
from voxconvert.scenegraph.scenegraph import SceneGraph
from voxconvert.scenegraph.util import add_scene_graph_nodes, copy_node

logger = logging.getLogger(__name__)

PALETTE_EXTENSIONS = ('.png', '.gpl', '.pal')

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_MISSING_INPUT = 127


def parse_filter(expression: str) -> Set[int]:
    """
    Parse a layer filter like ``"1-4,6"`` into a set of model indices.

    Raises:
        ValueError: For malformed tokens
    """
    layers: Set[int] = set()
    for token in expression.split(','):
        token = token.strip()
        if not token:
            continue
        if '-' in token:
            start, end = token.split('-', 1)
            layers.update(range(int(start), int(end) + 1))
        else:
            layers.add(int(token))
    return layers


def parse_ivec3(text: str) -> Tuple[int, int, int]:
    """
    Parse ``x:y:z`` (also accepts ``x,y,z`` or ``XxYxZ``).

    Raises:
        ValueError: If the text doesn't hold three integers
    """
    parts = [p for p in re.split(r'[:,x]', text.strip().lower()) if p != '']
    if len(parts) != 3:
        raise ValueError(f"Expected three values like 1:2:3, got '{text}'")
    return tuple(int(p) for p in parts)


def parse_rotate(text: str) -> Tuple[str, float]:
    """
    Parse a rotation argument ``axis[:degrees]``, degrees default to 90.

    Raises:
        ValueError: For an unknown axis or a non numeric angle
    """
    axis, _, degrees = text.partition(':')
    index = axis_index(axis)
    return 'xyz'[index], float(degrees) if degrees else 90.0


def layer_filename(input_file: str, layer_name: str, index: int) -> str:
    """Output path for one exported layer, next to ``input_file``."""
    path = Path(input_file)
    ext = path.suffix
    name = f"{layer_name}{ext}" if layer_name else f"layer-{index}{ext}"
    name = re.sub(r'[\\/:*?"<>|]', '_', name)
    return str(path.with_name(name))


class VoxConvert:
    """
    Runs one conversion as described by ConvertOptions.

    Example:
        options = ConvertOptions(input_files=['in.qb'], output='out.vox', crop=True)
        exit_code = VoxConvert(options).run()
    """

    def __init__(self, options: ConvertOptions):
        self.options = options
        self.format_config = options.format
        self.exit_code = EXIT_OK

    # ==================== Pipeline ====================

    def run(self) -> int:
        """
        Execute the conversion.

        Returns:
            Process exit code, 0 on success
        """
        opts = self.options
        if not opts.input_files:
            logger.error("No input file was specified")
            return EXIT_FAILURE
        self._log_options()

        if opts.output and Path(opts.output).suffix.lower() in PALETTE_EXTENSIONS \
                and find_format(opts.output) is None:
            return self.convert_palette()

        if not self._check_output():
            return EXIT_FAILURE

        try:
            scene_graph = self.create_scene_graph()
        except (OSError, ValueError) as e:
            logger.error("Failed to load palette: %s", e)
            return EXIT_FAILURE
        multiple = len(opts.input_files) > 1
        loaded = 0
        for input_file in opts.input_files:
            if self.handle_input_file(input_file, scene_graph, multiple):
                loaded += 1
        if scene_graph.empty():
            logger.error("No valid input found in the scenegraph to operate on.")
            return self.exit_code or EXIT_FAILURE
        logger.debug("Loaded %d of %d input files", loaded, len(opts.input_files))

        if opts.filter is not None:
            if not multiple:
                self.filter_volumes(scene_graph, opts.filter)
            else:
                logger.warning("Don't apply layer filters for multiple input files")

        if opts.export_layers:
            if multiple:
                logger.warning("The format and path of the first input file is used for exporting all layers")
            self.export_layers(scene_graph, opts.input_files[0])

        if opts.merge:
            if not self.merge(scene_graph, ', '.join(Path(f).name for f in opts.input_files)):
                return EXIT_FAILURE
        if opts.scale:
            self.scale(scene_graph)
        if opts.resize is not None:
            self.resize(scene_graph, opts.resize)
        if opts.mirror is not None:
            self.mirror(scene_graph, opts.mirror)
        if opts.rotate is not None:
            self.rotate(scene_graph, opts.rotate)
        if opts.translate is not None:
            self.translate(scene_graph, opts.translate)
        if opts.crop:
            self.crop(scene_graph)
        if opts.split is not None:
            if not self.split(scene_graph, opts.split):
                return EXIT_FAILURE

        if opts.output:
            logger.debug("Save %d volumes", len(scene_graph))
            try:
                save_format(opts.output, scene_graph, self.format_config)
            except (VoxConvertError, OSError) as e:
                logger.error("Failed to write to output file '%s': %s", opts.output, e)
                return EXIT_FAILURE
            logger.info("Wrote output file %s", opts.output)
        return self.exit_code

    def create_scene_graph(self) -> SceneGraph:
        name = self.options.palette or self.format_config.default_palette
        return SceneGraph(Palette.load(name))

    def _log_options(self):
        opts = self.options
        logger.info("Options")
        logger.info("* input files:       - %s", ', '.join(opts.input_files))
        if opts.output:
            logger.info("* output file:       - %s", opts.output)
        for label, value in (("dump scene graph", opts.dump), ("merge volumes", opts.merge),
                             ("scale volumes", opts.scale), ("crop volumes", opts.crop),
                             ("split volumes", opts.split is not None),
                             ("mirror volumes", opts.mirror is not None),
                             ("translate volumes", opts.translate is not None),
                             ("rotate volumes", opts.rotate is not None),
                             ("export palette", opts.export_palette),
                             ("export layers", opts.export_layers),
                             ("resize volumes", opts.resize is not None)):
            logger.info("* %-18s - %s", label + ':', 'true' if value else 'false')

    def _check_output(self) -> bool:
        opts = self.options
        if opts.output:
            if Path(opts.output).exists() and not opts.force:
                logger.error("Given output file '%s' already exists", opts.output)
                return False
            if find_format(opts.output) is None:
                logger.error("Unsupported output format: %s", opts.output)
                return False
        elif not (opts.export_layers or opts.export_palette or opts.dump):
            logger.error("No output specified")
            return False
        return True

    def convert_palette(self) -> int:
        """Write the palette of the single input file into a palette file."""
        opts = self.options
        if len(opts.input_files) != 1:
            logger.error("Palette export needs exactly one input file")
            return EXIT_FAILURE
        try:
            count, palette = load_palette(opts.input_files[0], self.format_config)
            palette.save(opts.output)
        except (VoxConvertError, OSError, ValueError) as e:
            logger.error("Failed to write %s: %s", opts.output, e)
            return EXIT_FAILURE
        logger.info("Saved palette with %d colors to %s", count, opts.output)
        return EXIT_OK

    # ==================== Input ====================

    def handle_input_file(self, input_file: str, scene_graph: SceneGraph,
                          multiple_inputs: bool) -> bool:
        """
        Load one input file into ``scene_graph``.

        With several inputs every file gets its own group node named after
        the file.
        """
        logger.info("-- current input file: %s", input_file)
        if not Path(input_file).is_file():
            logger.error("Given input file '%s' does not exist", input_file)
            self.exit_code = EXIT_MISSING_INPUT
            return False
        try:
            new_scene_graph = load_format(input_file, self.format_config)
        except (FormatError, OSError) as e:
            logger.error("Failed to load %s: %s", input_file, e)
            return False

        parent = scene_graph.root.id
        if multiple_inputs:
            group = SceneGraphNode(SceneGraphNodeType.GROUP, Path(input_file).name)
            parent = scene_graph.emplace(group, parent)
        add_scene_graph_nodes(scene_graph, new_scene_graph, parent)

        if self.options.dump:
            self.dump(scene_graph)
        if self.options.export_palette:
            palette_file = str(Path(input_file).with_suffix('.png'))
            try:
                scene_graph.first_palette().save(palette_file)
                logger.info("Saved palette to %s", palette_file)
            except (OSError, ValueError) as e:
                logger.error("Failed to save palette %s: %s", palette_file, e)
        return True

    def filter_volumes(self, scene_graph: SceneGraph, expression: str):
        """Remove all model nodes whose index isn't part of the filter expression."""
        if not expression:
            logger.warning("No filter specified")
            return
        try:
            layers = parse_filter(expression)
        except ValueError:
            logger.error("Invalid filter expression '%s'", expression)
            return
        for i, node in enumerate(list(scene_graph)):
            if i not in layers:
                logger.debug("Remove layer %d - not part of the filter expression", i)
                scene_graph.remove_node(node.id)
        logger.info("Filtered layers: %d", len(layers))

    # ==================== Output helpers ====================

    def dump(self, scene_graph: SceneGraph):
        voxels = self._dump_node(scene_graph, scene_graph.root.id, 0)
        logger.info("Voxel count: %d", voxels)

    def _dump_node(self, scene_graph: SceneGraph, node_id: int, indent: int) -> int:
        node = scene_graph.node(node_id)
        pad = ' ' * indent
        logger.info("%sNode: %d (parent %d)", pad, node.id, node.parent)
        logger.info("%s  |- name: %s", pad, node.name)
        logger.info("%s  |- type: %s", pad, node.type.value)
        voxels = 0
        if node.is_model():
            volume = node.volume
            logger.info("%s  |- volume: %s", pad, volume.region if volume is not None else "no volume")
            if volume is not None:
                voxels = volume.voxel_count()
            logger.info("%s  |- voxels: %d", pad, voxels)
        for key, value in node.properties.items():
            logger.info("%s  |- %s: %s", pad, key, value)
        for kf in node.key_frames:
            logger.info("%s  |- keyframe: %d", pad, kf.frame_idx)
            logger.info("%s    |- interpolation: %s", pad, kf.interpolation.value)
            logger.info("%s    |- translation %s", pad, kf.transform.translation)
        logger.info("%s  |- children: %d", pad, len(node.children))
        for child in node.children:
            voxels += self._dump_node(scene_graph, child, indent + 2)
        return voxels

    def export_layers(self, scene_graph: SceneGraph, input_file: str):
        """Save every model node into its own file next to the input file."""
        logger.info("Export layers into single objects")
        for n, node in enumerate(scene_graph):
            layer_graph = SceneGraph(scene_graph.default_palette)
            layer_graph.emplace(copy_node(node, move_volume=False))
            filename = layer_filename(input_file, node.name, n)
            try:
                save_format(filename, layer_graph, self.format_config)
                logger.info(" .. %s", filename)
            except (VoxConvertError, OSError) as e:
                logger.error(" .. %s: %s", filename, e)

    # ==================== Operations ====================

    def merge(self, scene_graph: SceneGraph, name: str) -> bool:
        logger.info("Merge layers")
        merged = scene_graph.merge()
        if merged.volume is None:
            logger.error("Failed to merge volumes")
            return False
        scene_graph.clear()
        node = SceneGraphNode(SceneGraphNodeType.MODEL, name)
        node.set_palette(merged.palette)
        node.set_volume(merged.volume)
        scene_graph.emplace(node)
        return True

    def scale(self, scene_graph: SceneGraph):
        logger.info("Scale layers")
        for node in scene_graph:
            VolumeOperations(node).scale()

    def resize(self, scene_graph: SceneGraph, size: Sequence[int]):
        logger.info("Resize layers")
        for node in scene_graph:
            VolumeOperations(node).resize(size)

    def mirror(self, scene_graph: SceneGraph, axis: str):
        try:
            axis_index(axis)
        except ValueError:
            logger.warning("Invalid mirror axis '%s'", axis)
            return
        logger.info("Mirror on axis %s", axis[0])
        for node in scene_graph:
            VolumeOperations(node).mirror(axis)

    def rotate(self, scene_graph: SceneGraph, argument: str):
        try:
            axis, degrees = parse_rotate(argument)
        except ValueError:
            logger.warning("Invalid rotation '%s'", argument)
            return
        logger.info("Rotate on axis %s by %s degree", axis, degrees)
        for node in scene_graph:
            VolumeOperations(node).rotate(axis, degrees)

    def translate(self, scene_graph: SceneGraph, offset: Sequence[int]):
        logger.info("Translate by %s", tuple(offset))
        for node in scene_graph:
            VolumeOperations(node).translate(offset)

    def crop(self, scene_graph: SceneGraph):
        logger.info("Crop volumes")
        for node in scene_graph:
            VolumeOperations(node).crop()

    def split(self, scene_graph: SceneGraph, size: Sequence[int]) -> bool:
        """Merge all models and replace them by tiles of ``size``."""
        logger.info("split volumes at %s", ':'.join(str(s) for s in size))
        merged = scene_graph.merge()
        if merged.volume is None:
            logger.error("Failed to merge volumes")
            return False
        try:
            pieces = VolumeOperations.split_volume(merged.volume, size)
        except VoxConvertError as e:
            logger.error("Failed to split volumes: %s", e)
            return False
        scene_graph.clear()
        for i, piece in enumerate(pieces):
            node = SceneGraphNode(SceneGraphNodeType.MODEL, f"split {i}")
            node.set_volume(piece)
            node.set_palette(merged.palette)
            scene_graph.emplace(node)
        return True


def convert(input_files: Iterable[str], output: Optional[str], **kwargs) -> int:
    """Shortcut for ``VoxConvert(ConvertOptions(...)).run()``."""
    options = ConvertOptions(input_files=list(input_files), output=output, **kwargs)
    return VoxConvert(options).run()
