"""
Palette - Color Palette Management
==================================

Ordered color tables for indexed voxel data and the color reconciliation
used to convert between RGB-per-voxel formats and indexed formats.

The index of a color is its insertion order. A palette holds at most
256 colors; lookups through :class:`PaletteLookup` grow a palette while
there is room and fall back to the nearest existing color once it is full.
"""

import colorsys
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

MAX_COLORS = 256
BUILT_IN_PREFIX = 'built-in:'

RGBA = Tuple[int, int, int, int]


@dataclass(frozen=True)
class PaletteColor:
    """Represents a single RGBA color of a palette."""
    r: int = 255
    g: int = 255
    b: int = 255
    a: int = 255

    def to_tuple(self) -> RGBA:
        """Return color as RGBA tuple."""
        return (self.r, self.g, self.b, self.a)

    def to_rgb(self) -> Tuple[int, int, int]:
        """Return color as RGB tuple."""
        return (self.r, self.g, self.b)

    def to_hex(self) -> str:
        """Return color as hex string (#rrggbbaa)."""
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}{self.a:02x}"

    def opaque(self) -> 'PaletteColor':
        """Return the same color with full opacity."""
        return PaletteColor(self.r, self.g, self.b, 255)

    @classmethod
    def from_hex(cls, hex_color: str) -> 'PaletteColor':
        """Create a color from a hex string."""
        hex_color = hex_color.lstrip('#')
        r = int(hex_color[0:2], 16)
        g = int(hex_color[2:4], 16)
        b = int(hex_color[4:6], 16)
        a = int(hex_color[6:8], 16) if len(hex_color) >= 8 else 255
        return cls(r=r, g=g, b=b, a=a)

    @classmethod
    def from_rgba(cls, r: int, g: int, b: int, a: int = 255) -> 'PaletteColor':
        """Create a color from RGBA values."""
        return cls(r=int(r), g=int(g), b=int(b), a=int(a))

    @classmethod
    def of(cls, value) -> 'PaletteColor':
        """Coerce a PaletteColor or an RGB(A) sequence into a PaletteColor."""
        if isinstance(value, PaletteColor):
            return value
        return cls.from_rgba(*value)

    def __str__(self) -> str:
        return self.to_hex()


class Palette:
    """
    Ordered set of up to 256 colors.

    Colors are addressed by index (0 .. color_count - 1), the index being the
    insertion order. Two palettes compare equal when the colors of their
    overlapping index range are equal.
    """

    def __init__(self, colors: Optional[Iterable] = None, name: str = ""):
        """
        Initialize a palette.

        Args:
            colors: Optional initial colors (PaletteColor or RGBA tuples)
            name: Palette name, e.g. the built-in name it was created from
        """
        self.name = name
        self._colors: List[PaletteColor] = []
        self._rgba: Optional[np.ndarray] = None
        if colors is not None:
            for color in colors:
                self.add_color(color)

    # ==================== Access ====================

    @property
    def color_count(self) -> int:
        return len(self._colors)

    @property
    def colors(self) -> Tuple[PaletteColor, ...]:
        return tuple(self._colors)

    def is_full(self) -> bool:
        return len(self._colors) >= MAX_COLORS

    def color(self, index: int) -> PaletteColor:
        """
        Get a color by index.

        Raises:
            IndexError: If the index is outside 0 .. color_count - 1
        """
        if not 0 <= index < len(self._colors):
            raise IndexError(f"Palette index {index} out of range (0..{len(self._colors) - 1})")
        return self._colors[index]

    def has_color(self, color) -> bool:
        """Unordered membership test on the full RGBA value."""
        return PaletteColor.of(color) in self._colors

    def index_of(self, color) -> int:
        """Index of the first entry equal to ``color`` or -1."""
        try:
            return self._colors.index(PaletteColor.of(color))
        except ValueError:
            return -1

    # ==================== Mutation ====================

    def add_color(self, color) -> int:
        """
        Append a color.

        Args:
            color: PaletteColor or RGBA tuple

        Returns:
            Index of the new entry

        Raises:
            ValueError: If the palette already holds 256 colors
        """
        if self.is_full():
            raise ValueError(f"Palette is full ({MAX_COLORS} colors)")
        self._colors.append(PaletteColor.of(color))
        self._rgba = None
        return len(self._colors) - 1

    def set_color(self, index: int, color):
        """Replace the color at an existing index."""
        self.color(index)
        self._colors[index] = PaletteColor.of(color)
        self._rgba = None

    def copy(self) -> 'Palette':
        palette = Palette(name=self.name)
        palette._colors = list(self._colors)
        return palette

    # ==================== Color queries ====================

    def rgba_array(self) -> np.ndarray:
        """Get the palette as a (color_count, 4) numpy array of RGBA values."""
        if self._rgba is None:
            self._rgba = np.array([c.to_tuple() for c in self._colors],
                                  dtype=np.int32).reshape(-1, 4)
        return self._rgba

    def find_nearest_color(self, color) -> Tuple[int, int]:
        """
        Find the palette entry closest to a color.

        Distance is the squared euclidean distance of the RGBA components.
        On equal distance the entry that was inserted first wins.

        Args:
            color: PaletteColor or RGBA tuple

        Returns:
            Tuple of (index, squared distance), index -1 for an empty palette
        """
        if not self._colors:
            return -1, -1
        target = np.asarray(PaletteColor.of(color).to_tuple(), dtype=np.int32)
        diff = self.rgba_array() - target
        dist = np.einsum('ij,ij->i', diff, diff)
        index = int(np.argmin(dist))
        return index, int(dist[index])

    def used_colors(self, indices: Iterable[int]) -> 'Palette':
        """New palette made of the given indices in ascending order."""
        return Palette([self._colors[i] for i in sorted(set(indices))])

    # ==================== Built-in palettes ====================

    @classmethod
    def built_in_names(cls) -> List[str]:
        return [BUILT_IN_PREFIX + name for name in _BUILT_IN]

    @classmethod
    def built_in(cls, name: str = 'built-in:default') -> 'Palette':
        """
        Create one of the named built-in palettes.

        Args:
            name: ``built-in:default``, ``built-in:magicavoxel`` or
                  ``built-in:minecraft`` (the prefix is optional)

        Raises:
            ValueError: For an unknown name
        """
        key = name[len(BUILT_IN_PREFIX):] if name.startswith(BUILT_IN_PREFIX) else name
        if key not in _BUILT_IN:
            raise ValueError(f"Unknown built-in palette: {name}")
        return cls(_BUILT_IN[key](), name=BUILT_IN_PREFIX + key)

    # ==================== Palette files ====================

    @classmethod
    def load(cls, filepath: str) -> 'Palette':
        """Load palette from a palette file or a built-in name."""
        if filepath.startswith(BUILT_IN_PREFIX):
            return cls.built_in(filepath)
        ext = Path(filepath).suffix.lower()

        if ext == '.pal':
            palette = cls._load_pal(filepath)
        elif ext == '.png':
            palette = cls._load_from_image(filepath)
        elif ext == '.gpl':
            palette = cls._load_gimp_palette(filepath)
        else:
            raise ValueError(f"Unsupported palette format: {ext}")
        palette.name = Path(filepath).stem
        logger.debug("Loaded %d colors from %s", palette.color_count, filepath)
        return palette

    @classmethod
    def _load_pal(cls, filepath: str) -> 'Palette':
        """Load a .pal file (RGB triplets)."""
        with open(filepath, 'rb') as f:
            data = f.read()

        palette = cls()
        for i in range(0, min(len(data) - len(data) % 3, MAX_COLORS * 3), 3):
            palette.add_color((data[i], data[i + 1], data[i + 2], 255))
        return palette

    @classmethod
    def _load_from_image(cls, filepath: str) -> 'Palette':
        """Load palette from an image file, unique colors in pixel order."""
        from PIL import Image

        with Image.open(filepath) as img:
            pixels = list(img.convert('RGBA').getdata())

        palette = cls()
        seen = set()
        for pixel in pixels:
            if pixel in seen:
                continue
            if palette.is_full():
                logger.warning("Image %s has more than %d colors", filepath, MAX_COLORS)
                break
            seen.add(pixel)
            palette.add_color(pixel)
        return palette

    @classmethod
    def _load_gimp_palette(cls, filepath: str) -> 'Palette':
        """Load a GIMP .gpl palette file."""
        palette = cls()

        with open(filepath, 'r') as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#') or line.startswith('GIMP') or line.startswith('Name:') or line.startswith('Columns:'):
                    continue

                parts = line.split()
                if len(parts) >= 3:
                    try:
                        r, g, b = int(parts[0]), int(parts[1]), int(parts[2])
                    except ValueError:
                        continue
                    palette.add_color((r, g, b, 255))
                    if palette.is_full():
                        break
        return palette

    def save(self, filepath: str):
        """Save palette to a .png, .gpl or .pal file."""
        ext = Path(filepath).suffix.lower()

        if ext == '.pal':
            self._save_pal(filepath)
        elif ext == '.png':
            self._save_as_image(filepath)
        elif ext == '.gpl':
            self._save_gimp_palette(filepath)
        else:
            raise ValueError(f"Unsupported palette format: {ext}")
        logger.debug("Saved %d colors to %s", self.color_count, filepath)

    def _save_pal(self, filepath: str):
        data = bytearray()
        for i in range(MAX_COLORS):
            if i < len(self._colors):
                data.extend(self._colors[i].to_rgb())
            else:
                data.extend([0, 0, 0])

        with open(filepath, 'wb') as f:
            f.write(data)

    def _save_as_image(self, filepath: str):
        """Save palette as a PNG image with one pixel per color."""
        from PIL import Image

        if not self._colors:
            raise ValueError("Can't save an empty palette as image")
        img = Image.new('RGBA', (len(self._colors), 1))
        img.putdata([c.to_tuple() for c in self._colors])
        img.save(filepath)

    def _save_gimp_palette(self, filepath: str):
        with open(filepath, 'w') as f:
            f.write("GIMP Palette\n")
            f.write(f"Name: {self.name or 'VoxConvert Palette'}\n")
            f.write("Columns: 16\n")
            f.write("#\n")

            for i, c in enumerate(self._colors):
                f.write(f"{c.r:3d} {c.g:3d} {c.b:3d}  Color {i}\n")

    # ==================== Protocols ====================

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[PaletteColor]:
        return iter(self._colors)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Palette):
            return NotImplemented
        overlap = min(len(self._colors), len(other._colors))
        return self._colors[:overlap] == other._colors[:overlap]

    __hash__ = None

    def __repr__(self) -> str:
        return f"Palette(name={self.name!r}, colors={len(self._colors)})"

    def __str__(self) -> str:
        lines = [f"Palette {self.name or '<unnamed>'} ({len(self._colors)} colors)"]
        for row in range(0, len(self._colors), 8):
            entries = self._colors[row:row + 8]
            lines.append(f"{row:03d}: " + ' '.join(c.to_hex() for c in entries))
        return '\n'.join(lines)


class PaletteLookup:
    """
    Map arbitrary RGBA colors to indices of a palette that grows on demand.

    A color is matched to the nearest palette entry. When that entry is
    further away than ``tolerance`` (squared RGBA distance) and the palette
    still has room, the color is appended instead. Once the palette holds
    256 colors every further color maps to its nearest entry, which is lossy
    but deterministic for a given color arrival order.
    """

    def __init__(self, palette: Optional[Palette] = None, tolerance: float = 0.0):
        self._palette = palette if palette is not None else Palette()
        self._tolerance = tolerance
        self._cache: Dict[RGBA, int] = {}

    @property
    def palette(self) -> Palette:
        return self._palette

    def find_color(self, color) -> int:
        """
        Resolve a color to a palette index, appending it if needed.

        Args:
            color: PaletteColor or RGBA tuple

        Returns:
            Palette index of the matching entry
        """
        color = PaletteColor.of(color)
        key = color.to_tuple()
        index = self._cache.get(key)
        if index is not None:
            return index

        index, dist = self._palette.find_nearest_color(color)
        if index == -1 or (dist > self._tolerance and not self._palette.is_full()):
            index = self._palette.add_color(color)
        elif dist > self._tolerance:
            logger.debug("Palette is full, mapping %s to index %d", color, index)
        self._cache[key] = index
        return index

    def find_rgba(self, r: int, g: int, b: int, a: int = 255) -> int:
        return self.find_color((r, g, b, a))


# ==================== Built-in palette data ====================

def _default_colors() -> List[RGBA]:
    """Generated palette with basic colors, gradients, earth tones and pastels."""
    colors: List[RGBA] = []

    basic_colors = [
        (255, 255, 255),  # White
        (255, 0, 0),      # Red
        (0, 255, 0),      # Green
        (0, 0, 255),      # Blue
        (255, 255, 0),    # Yellow
        (255, 0, 255),    # Magenta
        (0, 255, 255),    # Cyan
        (128, 128, 128),  # Gray
        (192, 192, 192),  # Light gray
        (128, 0, 0),      # Dark red
        (0, 128, 0),      # Dark green
        (0, 0, 128),      # Dark blue
        (128, 128, 0),    # Olive
        (128, 0, 128),    # Purple
        (0, 128, 128),    # Teal
        (0, 0, 0),        # Black
    ]
    colors.extend((r, g, b, 255) for r, g, b in basic_colors)

    # Gradients: reds, greens, blues, oranges, purples, cyans, grays
    for fr, fg, fb in [(1.0, 0.2, 0.2), (0.2, 1.0, 0.2), (0.2, 0.2, 1.0), (1.0, 0.7, 0.1),
                       (0.7, 0.2, 1.0), (0.2, 1.0, 1.0), (1.0, 1.0, 1.0)]:
        for i in range(16):
            shade = int(255 * (i + 1) / 16)
            colors.append((int(shade * fr), int(shade * fg), int(shade * fb), 255))

    earth_base = [(139, 90, 43), (160, 82, 45), (210, 180, 140), (188, 143, 143),
                  (205, 133, 63), (244, 164, 96), (222, 184, 135), (245, 222, 179),
                  (139, 119, 101), (160, 120, 90), (180, 140, 100), (200, 160, 120),
                  (140, 100, 70), (120, 80, 50), (100, 60, 30), (80, 40, 20)]
    colors.extend((r, g, b, 255) for r, g, b in earth_base)

    pastels = [(255, 182, 193), (255, 218, 185), (255, 250, 205), (144, 238, 144),
               (173, 216, 230), (221, 160, 221), (255, 228, 225), (240, 255, 255),
               (255, 240, 245), (255, 245, 238), (240, 255, 240), (245, 255, 250),
               (240, 248, 255), (248, 248, 255), (255, 250, 250), (253, 245, 230)]
    colors.extend((r, g, b, 255) for r, g, b in pastels)

    # Fill remaining slots with a rainbow gradient
    idx = 0
    while len(colors) < MAX_COLORS:
        hue = (idx * 3) % 360
        r, g, b = colorsys.hsv_to_rgb(hue / 360.0, 0.8, 0.9)
        colors.append((int(r * 255), int(g * 255), int(b * 255), 255))
        idx += 1
    return colors


# MagicaVoxel default palette, entry i is used by voxel color byte i + 1
_MAGICAVOXEL_COLORS: List[RGBA] = [
    (255, 255, 255, 255), (255, 255, 204, 255), (255, 255, 153, 255), (255, 255, 102, 255),
    (255, 255, 51, 255), (255, 255, 0, 255), (255, 204, 255, 255), (255, 204, 204, 255),
    (255, 204, 153, 255), (255, 204, 102, 255), (255, 204, 51, 255), (255, 204, 0, 255),
    (255, 153, 255, 255), (255, 153, 204, 255), (255, 153, 153, 255), (255, 153, 102, 255),
    (255, 153, 51, 255), (255, 153, 0, 255), (255, 102, 255, 255), (255, 102, 204, 255),
    (255, 102, 153, 255), (255, 102, 102, 255), (255, 102, 51, 255), (255, 102, 0, 255),
    (255, 51, 255, 255), (255, 51, 204, 255), (255, 51, 153, 255), (255, 51, 102, 255),
    (255, 51, 51, 255), (255, 51, 0, 255), (255, 0, 255, 255), (255, 0, 204, 255),
    (255, 0, 153, 255), (255, 0, 102, 255), (255, 0, 51, 255), (255, 0, 0, 255),
    (204, 255, 255, 255), (204, 255, 204, 255), (204, 255, 153, 255), (204, 255, 102, 255),
    (204, 255, 51, 255), (204, 255, 0, 255), (204, 204, 255, 255), (204, 204, 204, 255),
    (204, 204, 153, 255), (204, 204, 102, 255), (204, 204, 51, 255), (204, 204, 0, 255),
    (204, 153, 255, 255), (204, 153, 204, 255), (204, 153, 153, 255), (204, 153, 102, 255),
    (204, 153, 51, 255), (204, 153, 0, 255), (204, 102, 255, 255), (204, 102, 204, 255),
    (204, 102, 153, 255), (204, 102, 102, 255), (204, 102, 51, 255), (204, 102, 0, 255),
    (204, 51, 255, 255), (204, 51, 204, 255), (204, 51, 153, 255), (204, 51, 102, 255),
    (204, 51, 51, 255), (204, 51, 0, 255), (204, 0, 255, 255), (204, 0, 204, 255),
    (204, 0, 153, 255), (204, 0, 102, 255), (204, 0, 51, 255), (204, 0, 0, 255),
    (153, 255, 255, 255), (153, 255, 204, 255), (153, 255, 153, 255), (153, 255, 102, 255),
    (153, 255, 51, 255), (153, 255, 0, 255), (153, 204, 255, 255), (153, 204, 204, 255),
    (153, 204, 153, 255), (153, 204, 102, 255), (153, 204, 51, 255), (153, 204, 0, 255),
    (153, 153, 255, 255), (153, 153, 204, 255), (153, 153, 153, 255), (153, 153, 102, 255),
    (153, 153, 51, 255), (153, 153, 0, 255), (153, 102, 255, 255), (153, 102, 204, 255),
    (153, 102, 153, 255), (153, 102, 102, 255), (153, 102, 51, 255), (153, 102, 0, 255),
    (153, 51, 255, 255), (153, 51, 204, 255), (153, 51, 153, 255), (153, 51, 102, 255),
    (153, 51, 51, 255), (153, 51, 0, 255), (153, 0, 255, 255), (153, 0, 204, 255),
    (153, 0, 153, 255), (153, 0, 102, 255), (153, 0, 51, 255), (153, 0, 0, 255),
    (102, 255, 255, 255), (102, 255, 204, 255), (102, 255, 153, 255), (102, 255, 102, 255),
    (102, 255, 51, 255), (102, 255, 0, 255), (102, 204, 255, 255), (102, 204, 204, 255),
    (102, 204, 153, 255), (102, 204, 102, 255), (102, 204, 51, 255), (102, 204, 0, 255),
    (102, 153, 255, 255), (102, 153, 204, 255), (102, 153, 153, 255), (102, 153, 102, 255),
    (102, 153, 51, 255), (102, 153, 0, 255), (102, 102, 255, 255), (102, 102, 204, 255),
    (102, 102, 153, 255), (102, 102, 102, 255), (102, 102, 51, 255), (102, 102, 0, 255),
    (102, 51, 255, 255), (102, 51, 204, 255), (102, 51, 153, 255), (102, 51, 102, 255),
    (102, 51, 51, 255), (102, 51, 0, 255), (102, 0, 255, 255), (102, 0, 204, 255),
    (102, 0, 153, 255), (102, 0, 102, 255), (102, 0, 51, 255), (102, 0, 0, 255),
    (51, 255, 255, 255), (51, 255, 204, 255), (51, 255, 153, 255), (51, 255, 102, 255),
    (51, 255, 51, 255), (51, 255, 0, 255), (51, 204, 255, 255), (51, 204, 204, 255),
    (51, 204, 153, 255), (51, 204, 102, 255), (51, 204, 51, 255), (51, 204, 0, 255),
    (51, 153, 255, 255), (51, 153, 204, 255), (51, 153, 153, 255), (51, 153, 102, 255),
    (51, 153, 51, 255), (51, 153, 0, 255), (51, 102, 255, 255), (51, 102, 204, 255),
    (51, 102, 153, 255), (51, 102, 102, 255), (51, 102, 51, 255), (51, 102, 0, 255),
    (51, 51, 255, 255), (51, 51, 204, 255), (51, 51, 153, 255), (51, 51, 102, 255),
    (51, 51, 51, 255), (51, 51, 0, 255), (51, 0, 255, 255), (51, 0, 204, 255),
    (51, 0, 153, 255), (51, 0, 102, 255), (51, 0, 51, 255), (51, 0, 0, 255),
    (0, 255, 255, 255), (0, 255, 204, 255), (0, 255, 153, 255), (0, 255, 102, 255),
    (0, 255, 51, 255), (0, 255, 0, 255), (0, 204, 255, 255), (0, 204, 204, 255),
    (0, 204, 153, 255), (0, 204, 102, 255), (0, 204, 51, 255), (0, 204, 0, 255),
    (0, 153, 255, 255), (0, 153, 204, 255), (0, 153, 153, 255), (0, 153, 102, 255),
    (0, 153, 51, 255), (0, 153, 0, 255), (0, 102, 255, 255), (0, 102, 204, 255),
    (0, 102, 153, 255), (0, 102, 102, 255), (0, 102, 51, 255), (0, 102, 0, 255),
    (0, 51, 255, 255), (0, 51, 204, 255), (0, 51, 153, 255), (0, 51, 102, 255),
    (0, 51, 51, 255), (0, 51, 0, 255), (0, 0, 255, 255), (0, 0, 204, 255),
    (0, 0, 153, 255), (0, 0, 102, 255), (0, 0, 51, 255), (238, 0, 0, 255),
    (221, 0, 0, 255), (187, 0, 0, 255), (170, 0, 0, 255), (136, 0, 0, 255),
    (119, 0, 0, 255), (85, 0, 0, 255), (68, 0, 0, 255), (34, 0, 0, 255),
    (17, 0, 0, 255), (0, 238, 0, 255), (0, 221, 0, 255), (0, 187, 0, 255),
    (0, 170, 0, 255), (0, 136, 0, 255), (0, 119, 0, 255), (0, 85, 0, 255),
    (0, 68, 0, 255), (0, 34, 0, 255), (0, 17, 0, 255), (0, 0, 238, 255),
    (0, 0, 221, 255), (0, 0, 187, 255), (0, 0, 170, 255), (0, 0, 136, 255),
    (0, 0, 119, 255), (0, 0, 85, 255), (0, 0, 68, 255), (0, 0, 34, 255),
    (0, 0, 17, 255), (238, 238, 238, 255), (221, 221, 221, 255), (187, 187, 187, 255),
    (170, 170, 170, 255), (136, 136, 136, 255), (119, 119, 119, 255), (85, 85, 85, 255),
    (68, 68, 68, 255), (34, 34, 34, 255), (17, 17, 17, 255),
]


def _magicavoxel_colors() -> List[RGBA]:
    """MagicaVoxel's default palette (255 colors)."""
    return list(_MAGICAVOXEL_COLORS)


def _minecraft_colors() -> List[RGBA]:
    """Palette with Minecraft block colors (approximations)."""
    minecraft_colors = [
        (125, 125, 125),   # Stone
        (134, 96, 67),     # Dirt
        (118, 179, 76),    # Grass
        (162, 130, 79),    # Sand
        (103, 103, 103),   # Gravel
        (255, 216, 0),     # Gold ore
        (216, 216, 216),   # Iron ore
        (0, 0, 0),         # Coal ore
        (102, 81, 51),     # Oak log
        (60, 192, 41),     # Oak leaves
        (0, 0, 255),       # Lapis lazuli
        (29, 151, 45),     # Emerald
        (150, 67, 22),     # Red sandstone
        (170, 166, 157),   # Andesite
        (188, 152, 98),    # Birch planks
        (255, 255, 255),   # Snow
        (57, 41, 35),      # Soul sand
        (207, 213, 214),   # Quartz
        (119, 86, 59),     # Dark oak
        (208, 127, 93),    # Acacia
        (60, 31, 43),      # Crimson
        (43, 104, 99),     # Warped
        (0, 139, 139),     # Prismarine
        (87, 59, 12),      # Jungle log
        (156, 81, 36),     # Copper
        (47, 47, 47),      # Deepslate
        (106, 76, 54),     # Mud
        (222, 177, 144),   # Calcite
        (42, 42, 42),      # Tuff
        (89, 117, 89),     # Dripstone
        (194, 178, 128),   # Sandstone
        (155, 155, 155),   # Cobblestone
        (195, 195, 195),   # Smooth stone
        (97, 85, 85),      # Brick
        (80, 80, 80),      # Obsidian
        (138, 138, 138),   # Mossy cobblestone
        (204, 76, 76),     # Red wool
        (229, 144, 76),    # Orange wool
        (204, 204, 76),    # Yellow wool
        (76, 178, 76),     # Lime wool
        (76, 204, 204),    # Cyan wool
        (102, 127, 204),   # Light blue wool
        (127, 76, 204),    # Purple wool
        (229, 127, 204),   # Pink wool
        (76, 76, 204),     # Blue wool
        (102, 51, 0),      # Brown wool
        (76, 127, 76),     # Green wool
        (51, 51, 51),      # Black wool
    ]
    colors = [(r, g, b, 255) for r, g, b in minecraft_colors]

    # Fill rest with variations
    while len(colors) < MAX_COLORS:
        n = len(colors)
        colors.append((128 + (n % 128), 128 + ((n * 3) % 128), 128 + ((n * 7) % 128), 255))
    return colors


_BUILT_IN = {
    'default': _default_colors,
    'magicavoxel': _magicavoxel_colors,
    'minecraft': _minecraft_colors,
}
