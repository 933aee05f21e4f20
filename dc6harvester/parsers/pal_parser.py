# ==============================================================================
# PAL (PALETTE) FILE PARSER
# ==============================================================================
# This module reads the 256-color palettes used by DC6 sprites.
#
# PAL FILE FORMAT:
# ----------------
# A palette is a raw 768 byte blob: 256 colors * 3 bytes, no header.
# Each color is stored in (blue, green, red) order and is reordered to
# (red, green, blue) on load. There is no alpha channel: transparency in
# DC6 comes from the run-length stream, not from the palette.
#
# The same palette is shared read-only by every frame of every file in a
# run, so a PaletteTable is immutable once built.
#
# USAGE EXAMPLE:
# --------------
#   palette = PaletteTable.load("units_pal.dat")
#   r, g, b = palette.get_color(17)
#
#   # RGBA lookup array for numpy indexing
#   rgba = palette.rgba[indices]
#
#   # Fallback when no palette file is configured
#   palette = PaletteTable.grayscale()
# ==============================================================================

from typing import Iterable, Optional, Tuple

import numpy as np
from PIL import Image

from .errors import InvalidPaletteSize, IoFailure


# ==============================================================================
# CONSTANTS
# ==============================================================================

# Number of colors in a palette
PALETTE_COLOR_COUNT = 256

# Bytes per stored color (B, G, R)
PALETTE_COMPONENTS = 3

# Palette file size (always 768 bytes = 256 colors * 3 bytes each)
PALETTE_SIZE = PALETTE_COLOR_COUNT * PALETTE_COMPONENTS


RGB = Tuple[int, int, int]


# ==============================================================================
# PALETTE TABLE
# ==============================================================================

class PaletteTable:
    """
    Immutable 256-entry RGB color table.

    Attributes:
        colors (tuple):     256 (r, g, b) tuples
        rgba (ndarray):     (256, 4) uint8 lookup array, alpha always 255
        filename (str):     Path the palette was loaded from, if any
    """

    def __init__(self, colors: Iterable[RGB], filename: str = ""):
        colors = tuple(tuple(int(c) for c in color) for color in colors)
        if len(colors) != PALETTE_COLOR_COUNT:
            raise InvalidPaletteSize(
                f"palette must have {PALETTE_COLOR_COUNT} colors, got {len(colors)}",
                path=filename,
            )

        self.filename = filename
        self._colors = colors

        rgba = np.full((PALETTE_COLOR_COUNT, 4), 255, dtype=np.uint8)
        rgba[:, :3] = np.array(colors, dtype=np.uint8)
        rgba.setflags(write=False)
        self._rgba = rgba

    # ==========================================================================
    # LOADING
    # ==========================================================================

    @classmethod
    def from_bytes(cls, data: bytes, filename: str = "") -> 'PaletteTable':
        """
        Build a palette from a raw 768 byte BGR blob.

        Args:
            data: Raw palette bytes
            filename: Optional source name for error messages

        Returns:
            PaletteTable with colors reordered to RGB

        Raises:
            InvalidPaletteSize: if data is not exactly 768 bytes
        """
        if len(data) != PALETTE_SIZE:
            raise InvalidPaletteSize(
                f"palette file has wrong size: {len(data)} bytes (expected {PALETTE_SIZE})",
                path=filename,
            )

        bgr = np.frombuffer(bytes(data), dtype=np.uint8).reshape(PALETTE_COLOR_COUNT, 3)
        rgb = bgr[:, ::-1]
        return cls((tuple(row) for row in rgb.tolist()), filename=filename)

    @classmethod
    def load(cls, file_path: str) -> 'PaletteTable':
        """
        Load a palette file from disk.

        Raises:
            IoFailure: if the file cannot be read
            InvalidPaletteSize: if the file is not 768 bytes
        """
        try:
            with open(file_path, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise IoFailure(f"error opening palette file: {e}", path=file_path) from e

        return cls.from_bytes(data, filename=file_path)

    @classmethod
    def grayscale(cls) -> 'PaletteTable':
        """Create a 256-step grayscale palette (index i -> (i, i, i))."""
        return cls([(i, i, i) for i in range(PALETTE_COLOR_COUNT)], filename="<grayscale>")

    # ==========================================================================
    # ACCESS
    # ==========================================================================

    @property
    def colors(self) -> Tuple[RGB, ...]:
        return self._colors

    @property
    def rgba(self) -> np.ndarray:
        """Read-only (256, 4) uint8 RGBA lookup table."""
        return self._rgba

    def get_color(self, index: int) -> RGB:
        """
        Get a specific color from the palette.

        Args:
            index: Color index (0-255)

        Returns:
            RGB tuple
        """
        return self._colors[index]

    def __getitem__(self, index: int) -> RGB:
        return self._colors[index]

    def __len__(self):
        return PALETTE_COLOR_COUNT

    def to_bytes(self) -> bytes:
        """Serialize back to the on-disk BGR layout."""
        data = bytearray(PALETTE_SIZE)
        for i, (r, g, b) in enumerate(self._colors):
            offset = i * PALETTE_COMPONENTS
            data[offset] = b
            data[offset + 1] = g
            data[offset + 2] = r
        return bytes(data)

    def save(self, file_path: str):
        """
        Save the palette to a .dat file.

        Raises:
            IoFailure: if the file cannot be written
        """
        try:
            with open(file_path, 'wb') as f:
                f.write(self.to_bytes())
        except OSError as e:
            raise IoFailure(f"failed to save palette: {e}", path=file_path) from e

    # ==========================================================================
    # UTILITY METHODS
    # ==========================================================================

    def to_image(self, cell_size: int = 16) -> Image.Image:
        """
        Create a visual representation of the palette.

        Creates a 16x16 grid showing all 256 colors.

        Args:
            cell_size: Size of each color cell in pixels

        Returns:
            PIL.Image showing the palette
        """
        grid = np.array(self._colors, dtype=np.uint8).reshape(16, 16, 3)
        grid = grid.repeat(cell_size, axis=0).repeat(cell_size, axis=1)
        return Image.fromarray(grid, 'RGB')


def load_palette(file_path: Optional[str]) -> PaletteTable:
    """
    Load the run palette, falling back to grayscale when no path is set.

    Args:
        file_path: Palette path, or None/empty for the grayscale fallback

    Returns:
        PaletteTable
    """
    if not file_path:
        print("[WARN] No palette file configured, using grayscale palette")
        return PaletteTable.grayscale()

    return PaletteTable.load(file_path)


# ==============================================================================
# STANDALONE USAGE
# ==============================================================================
if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("Usage: python pal_parser.py <palette.dat> [output.png]")
        print("\nExamples:")
        print("  python pal_parser.py units_pal.dat")
        print("  python pal_parser.py units_pal.dat preview.png")
        sys.exit(1)

    try:
        palette = PaletteTable.load(sys.argv[1])
    except (InvalidPaletteSize, IoFailure) as e:
        print(f"[ERROR] {e}")
        sys.exit(1)

    print(f"Loaded palette: {sys.argv[1]}")

    print("\nFirst 10 colors:")
    for i in range(10):
        r, g, b = palette[i]
        print(f"  {i:3d}: R={r:3d} G={g:3d} B={b:3d}")

    if len(sys.argv) > 2:
        palette.to_image().save(sys.argv[2])
        print(f"\nSaved palette preview to: {sys.argv[2]}")
