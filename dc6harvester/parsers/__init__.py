# ==============================================================================
# PARSERS MODULE
# ==============================================================================
# This module contains the file format parsers for DC6 sprite assets.
#
# Supported formats:
#   - DC6: Sprite containers (directions x frames, scan-line RLE pixels)
#   - PAL: 768 byte BGR palettes used to color DC6 frames
#
# Additional utilities:
#   - BatchDecoder: Decode many files, skipping bad files/frames
#   - ImageFileWriter: Save decoded frames with Pillow
# ==============================================================================

from .errors import (
    DC6Error, InvalidPaletteSize, InvalidHeader, TruncatedFrame,
    TruncatedRun, PixelOverrun, EmptyFrame, IoFailure,
)
from .pal_parser import PaletteTable, load_palette
from .dc6_parser import (
    DC6Decoder, DC6Header, DC6FrameHeader, DC6Frame, DecodeFailure, RunDecodeResult,
    read_container_header, read_frame_header, decode_scanlines,
    decode_frame_pixels, normalize_orientation,
)
from .batch_exporter import (
    BatchDecoder, BatchReport, FileReport, FrameContext, ImageFileWriter,
    find_dc6_files, supported_formats,
)

__all__ = [
    # Errors
    'DC6Error', 'InvalidPaletteSize', 'InvalidHeader', 'TruncatedFrame',
    'TruncatedRun', 'PixelOverrun', 'EmptyFrame', 'IoFailure',

    # PAL Parser
    'PaletteTable', 'load_palette',

    # DC6 Parser
    'DC6Decoder', 'DC6Header', 'DC6FrameHeader', 'DC6Frame', 'DecodeFailure',
    'RunDecodeResult', 'read_container_header', 'read_frame_header',
    'decode_scanlines', 'decode_frame_pixels', 'normalize_orientation',

    # Batch Exporter
    'BatchDecoder', 'BatchReport', 'FileReport', 'FrameContext',
    'ImageFileWriter', 'find_dc6_files', 'supported_formats',
]
