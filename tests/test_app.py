"""
Tests for the conversion pipeline and the command line
"""
import struct
from pathlib import Path

import numpy as np
import pytest

import main
from conftest import KNIGHT_POSITION, KNIGHT_SIZE, build_qb, knight_color_indices, pack_rgba
from voxconvert.app import (EXIT_FAILURE, EXIT_MISSING_INPUT, EXIT_OK, convert, layer_filename,
                            parse_filter, parse_ivec3, parse_rotate)
from voxconvert.core.palette import Palette
from voxconvert.core.region import Region
from voxconvert.formats import load_format
from voxconvert.scenegraph import SceneGraphNodeType

KNIGHT_VOXELS = int(np.count_nonzero(knight_color_indices() >= 0))


@pytest.fixture
def layers_qb_file(tmp_path):
    """Qubicle file with three single voxel matrices a, b and c."""
    matrices = []
    for i, (name, color) in enumerate([("a", (255, 0, 0)), ("b", (0, 255, 0)), ("c", (0, 0, 255))]):
        data = np.full((1, 1, 1), pack_rgba(*color), dtype=np.uint32)
        matrices.append((name, (i * 2, 0, 0), data))
    path = tmp_path / "layers.qb"
    path.write_bytes(build_qb(matrices))
    return str(path)


class TestParsers:

    def test_parse_filter(self):
        assert parse_filter("1-3,6") == {1, 2, 3, 6}
        assert parse_filter("0") == {0}
        with pytest.raises(ValueError):
            parse_filter("a-b")

    @pytest.mark.parametrize("text", ["1:2:3", "1,2,3", "1x2x3"])
    def test_parse_ivec3(self, text):
        assert parse_ivec3(text) == (1, 2, 3)

    def test_parse_ivec3_negative_and_invalid(self):
        assert parse_ivec3("-1:0:4") == (-1, 0, 4)
        with pytest.raises(ValueError):
            parse_ivec3("1:2")

    def test_parse_rotate(self):
        assert parse_rotate("y") == ('y', 90.0)
        assert parse_rotate("X:180") == ('x', 180.0)
        with pytest.raises(ValueError):
            parse_rotate("q:90")

    def test_layer_filename(self):
        assert layer_filename("/data/scene.vox", "tree", 0) == str(Path("/data/tree.vox"))
        assert layer_filename("/data/scene.vox", "", 3) == str(Path("/data/layer-3.vox"))
        assert layer_filename("/data/scene.vox", "a/b", 1) == str(Path("/data/a_b.vox"))


class TestConvert:
    """End to end conversions through files"""

    def test_qb_to_vox(self, knight_qb_file, tmp_path):
        output = str(tmp_path / "chr_knight.vox")
        assert convert([knight_qb_file], output) == EXIT_OK
        scene_graph = load_format(output)
        node = next(iter(scene_graph))
        assert node.palette.color_count == 17
        assert node.region == Region.from_size(KNIGHT_SIZE, KNIGHT_POSITION)
        assert node.volume.voxel_count() == KNIGHT_VOXELS

    def test_missing_input(self, tmp_path):
        code = convert([str(tmp_path / "missing.qb")], str(tmp_path / "out.vox"))
        assert code == EXIT_MISSING_INPUT

    def test_existing_output_needs_force(self, knight_qb_file, tmp_path):
        output = tmp_path / "out.vox"
        output.write_bytes(b'')
        assert convert([knight_qb_file], str(output)) == EXIT_FAILURE
        assert convert([knight_qb_file], str(output), force=True) == EXIT_OK
        assert output.stat().st_size > 0

    def test_unsupported_output(self, knight_qb_file, tmp_path):
        assert convert([knight_qb_file], str(tmp_path / "out.obj")) == EXIT_FAILURE

    def test_no_output(self, knight_qb_file):
        assert convert([knight_qb_file], None) == EXIT_FAILURE

    def test_palette_output(self, knight_qb_file, tmp_path):
        output = str(tmp_path / "knight.png")
        assert convert([knight_qb_file], output) == EXIT_OK
        assert Palette.load(output).color_count == 17

    def test_export_palette(self, knight_qb_file, tmp_path):
        assert convert([knight_qb_file], str(tmp_path / "out.vox"), export_palette=True) == EXIT_OK
        assert (tmp_path / "chr_knight.png").exists()

    def test_broken_input_is_skipped(self, knight_qb_file, tmp_path):
        """A truncated vox file doesn't stop the remaining inputs."""
        broken = tmp_path / "bad.vox"
        content = b'SIZE' + struct.pack('<II', 4, 0) + b'\x01\x00\x00\x00'
        broken.write_bytes(b'VOX ' + struct.pack('<I', 150) + b'MAIN' +
                           struct.pack('<II', 0, len(content)) + content)
        output = str(tmp_path / "out.vox")
        assert convert([str(broken), knight_qb_file], output) == EXIT_OK
        assert sum(n.volume.voxel_count() for n in load_format(output)) == KNIGHT_VOXELS

    def test_filter(self, layers_qb_file, tmp_path):
        output = str(tmp_path / "filtered.qb")
        assert convert([layers_qb_file], output, filter="0,2") == EXIT_OK
        assert [n.name for n in load_format(output)] == ["a", "c"]

    def test_export_layers(self, layers_qb_file, tmp_path):
        assert convert([layers_qb_file], None, export_layers=True) == EXIT_OK
        for name in ("a", "b", "c"):
            layer = load_format(str(tmp_path / f"{name}.qb"))
            assert [n.name for n in layer] == [name]

    def test_multiple_inputs_get_groups(self, knight_qb_file, layers_qb_file, tmp_path):
        output = str(tmp_path / "both.vox")
        assert convert([knight_qb_file, layers_qb_file], output) == EXIT_OK
        scene_graph = load_format(output)
        groups = [n.name for n in scene_graph.nodes() if n.type == SceneGraphNodeType.GROUP]
        assert groups == ["chr_knight.qb", "layers.qb"]
        assert len(scene_graph) == 4

    def test_merge(self, knight_qb_file, layers_qb_file, tmp_path):
        output = str(tmp_path / "merged.vox")
        assert convert([knight_qb_file, layers_qb_file], output, merge=True) == EXIT_OK
        scene_graph = load_format(output)
        assert len(scene_graph) == 1
        node = next(iter(scene_graph))
        assert node.palette.color_count == 20
        assert node.region == Region((-2, 0, 0), (4, 3, 3))

    def test_rotate_by_zero_is_ignored(self, knight_qb_file, tmp_path):
        output = str(tmp_path / "out.qb")
        assert convert([knight_qb_file], output, rotate="y:0") == EXIT_OK
        node = next(iter(load_format(output)))
        assert node.region == Region.from_size(KNIGHT_SIZE, KNIGHT_POSITION)

    def test_translate_and_crop(self, layers_qb_file, tmp_path):
        output = str(tmp_path / "out.qb")
        assert convert([layers_qb_file], output, translate=(1, 2, 3), crop=True) == EXIT_OK
        assert [n.region.lower for n in load_format(output)] == [(1, 2, 3), (3, 2, 3), (5, 2, 3)]

    def test_split(self, knight_qb_file, tmp_path):
        output = str(tmp_path / "split.vox")
        assert convert([knight_qb_file], output, split=(2, 2, 2)) == EXIT_OK
        scene_graph = load_format(output)
        assert len(scene_graph) == 12
        assert sum(n.volume.voxel_count() for n in scene_graph) == KNIGHT_VOXELS
        assert scene_graph.region() == Region.from_size(KNIGHT_SIZE, KNIGHT_POSITION)


class TestCommandLine:

    def test_build_options(self):
        args = main.parse_arguments(['-i', 'a.qb', '-i', 'b.qb', '-o', 'out.vox', '--rotate', 'y:180',
                                     '--resize', '4:4:4', '--qb-uncompressed', '-m'])
        options = main.build_options(args)
        assert options.input_files == ['a.qb', 'b.qb']
        assert options.rotate == 'y:180'
        assert options.resize == (4, 4, 4)
        assert options.merge
        assert not options.format.qb_compressed
        assert options.format.qb_right_handed

    def test_invalid_vector(self):
        with pytest.raises(SystemExit):
            main.parse_arguments(['-i', 'a.qb', '--split', '4:4'])

    def test_main_missing_input(self, tmp_path):
        code = main.main(['-i', str(tmp_path / "missing.qb"), '-o', str(tmp_path / "out.vox")])
        assert code == EXIT_MISSING_INPUT

    def test_main_converts(self, knight_qb_file, tmp_path):
        output = tmp_path / "out.vox"
        assert main.main(['-i', knight_qb_file, '-o', str(output), '--crop']) == EXIT_OK
        assert output.exists()

    def test_main_palette_file(self, knight_qb_file, rgb_palette, tmp_path):
        """A palette file given on the command line is used as default palette."""
        palette_file = str(tmp_path / "colors.gpl")
        rgb_palette.save(palette_file)
        output = tmp_path / "out.vox"
        code = main.main(['-i', knight_qb_file, '-o', str(output), '--palette', palette_file])
        assert code == EXIT_OK
        assert next(iter(load_format(str(output)))).volume.voxel_count() == KNIGHT_VOXELS

    def test_main_missing_palette_file(self, knight_qb_file, tmp_path):
        output = tmp_path / "out.vox"
        code = main.main(['-i', knight_qb_file, '-o', str(output),
                          '--palette', str(tmp_path / "missing.gpl")])
        assert code == EXIT_FAILURE
        assert not output.exists()
