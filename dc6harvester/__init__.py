# ==============================================================================
# DC6 HARVESTER - SOURCE PACKAGE
# ==============================================================================
# Main package for DC6 Harvester, a DC6 sprite decoder and exporter.
#
# Subpackages:
#   - core: Configuration and paths
#   - parsers: Palette and DC6 parsers, batch decoding, image output
#
# Entry points:
#   - main.py: launcher
#   - dc6harvester/cli.py: Command-line interface
# ==============================================================================

__version__ = "1.0.0"
__description__ = "DC6 sprite decoder and image exporter"

# Convenience imports
from .parsers import DC6Decoder, PaletteTable, BatchDecoder, ImageFileWriter

__all__ = [
    '__version__',
    '__description__',

    'DC6Decoder',
    'PaletteTable',
    'BatchDecoder',
    'ImageFileWriter',
]
