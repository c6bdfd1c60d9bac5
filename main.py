#!/usr/bin/env python3
"""
VoxConvert - Voxel Format Converter
===================================

Main entry point for the voxconvert command line tool.
Converts voxel models between formats and applies geometric operations
like crop, rotate or split on the way.

Usage:
    python main.py -i input.qb -o output.vox [options]
"""

import argparse
import logging
import sys

from voxconvert import __version__
from voxconvert.app import VoxConvert, parse_ivec3
from voxconvert.config import ConvertOptions, FormatConfig
from voxconvert.core.palette import Palette
from voxconvert.formats import FORMATS


def ivec3(text: str):
    try:
        return parse_ivec3(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_arguments(argv=None):
    """Parse command line arguments."""
    formats = '\n'.join(f"  {desc.name:<16} {' '.join('*' + ext for ext in desc.extensions)}"
                        for desc in FORMATS)
    palettes = '\n'.join(f"  {name}" for name in Palette.built_in_names())
    parser = argparse.ArgumentParser(
        prog='voxconvert',
        description='VoxConvert - Voxel Format Converter',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Supported formats:
{formats}
  Palettes         *.png *.gpl *.pal

Built-in palettes:
{palettes}

Examples:
  %(prog)s -i knight.qb -o knight.vox          Convert a Qubicle model
  %(prog)s -i scene.vox -o merged.vox --merge  Merge all layers
  %(prog)s -i scene.vox -o palette.png         Export the palette
  %(prog)s -i model.vox -o out.vox --rotate y:180 --crop
        """
    )

    parser.add_argument('-i', '--input', action='append', required=True, metavar='FILE',
                        help='Input file, can be given multiple times')
    parser.add_argument('-o', '--output', help='Output file, the extension selects the format')
    parser.add_argument('-f', '--force', action='store_true', help='Overwrite existing files')
    parser.add_argument('--crop', action='store_true',
                        help='Reduce the volumes to their real voxel sizes')
    parser.add_argument('--dump', action='store_true',
                        help='Dump the scene graph of the input file')
    parser.add_argument('--export-layers', action='store_true',
                        help='Export all the layers of a scene into single files')
    parser.add_argument('--export-palette', action='store_true',
                        help='Export the used palette data into an image')
    parser.add_argument('--filter', help="Layer filter. For example '1-4,6'")
    parser.add_argument('-m', '--merge', action='store_true', help='Merge layers into one volume')
    parser.add_argument('--mirror', metavar='AXIS', help='Mirror by the given axis (x, y or z)')
    parser.add_argument('--rotate', metavar='AXIS[:DEGREES]',
                        help='Rotate by 90 degree at the given axis (x, y or z), '
                             'specify e.g. x:180 to rotate around x by 180 degree')
    parser.add_argument('--resize', type=ivec3, metavar='X:Y:Z',
                        help='Resize the volume to the given x (right), y (up) and z (back) size')
    parser.add_argument('-s', '--scale', action='store_true',
                        help='Scale layer to 50%% of its original size')
    parser.add_argument('--split', type=ivec3, metavar='X:Y:Z',
                        help='Slices the volumes into pieces of the given size')
    parser.add_argument('-t', '--translate', type=ivec3, metavar='X:Y:Z',
                        help='Translate the volumes by x (right), y (up), z (back)')
    parser.add_argument('--palette', help='Default palette for formats without palette')
    parser.add_argument('--color-tolerance', type=float, default=0.0,
                        help='Squared RGBA distance to reuse an existing palette color (default: 0)')
    parser.add_argument('--qb-uncompressed', action='store_true',
                        help='Write Qubicle files without run length encoding')
    parser.add_argument('--qb-left-handed', action='store_true',
                        help='Write Qubicle files with a left-handed z axis')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser.parse_args(argv)


def build_options(args) -> ConvertOptions:
    """Translate parsed arguments into ConvertOptions."""
    format_config = FormatConfig(
        qb_compressed=not args.qb_uncompressed,
        qb_right_handed=not args.qb_left_handed,
        color_tolerance=args.color_tolerance,
    )
    if args.palette:
        format_config.default_palette = args.palette
    return ConvertOptions(
        input_files=args.input,
        output=args.output,
        force=args.force,
        filter=args.filter,
        dump=args.dump,
        export_layers=args.export_layers,
        export_palette=args.export_palette,
        merge=args.merge,
        scale=args.scale,
        resize=args.resize,
        mirror=args.mirror,
        rotate=args.rotate,
        translate=args.translate,
        crop=args.crop,
        split=args.split,
        palette=args.palette,
        format=format_config,
    )


def main(argv=None):
    """Main application entry point."""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s %(levelname)-7s %(name)s: %(message)s',
    )

    return VoxConvert(build_options(args)).run()


if __name__ == '__main__':
    sys.exit(main())
