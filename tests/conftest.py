# ==============================================================================
# TEST FIXTURES
# ==============================================================================
# Builders for synthetic palettes and DC6 files.
# ==============================================================================

import struct
from typing import List, Optional, Sequence

import pytest

from dc6harvester.parsers.pal_parser import PaletteTable, PALETTE_COLOR_COUNT


def make_palette_bytes(colors) -> bytes:
    """Encode (r, g, b) colors as a 768 byte BGR blob, padded with black."""
    data = bytearray(PALETTE_COLOR_COUNT * 3)
    for i, (r, g, b) in enumerate(colors):
        data[i * 3:i * 3 + 3] = bytes((b, g, r))
    return bytes(data)


def sample_colors():
    return [(i, (i * 7) % 256, 255 - i) for i in range(PALETTE_COLOR_COUNT)]


def encode_rows(rows: Sequence[Sequence[Optional[int]]]) -> bytes:
    """
    RLE-encode rows of palette indices (None = transparent).

    Rows are encoded in the order given, each terminated by an end-of-line
    command. Trailing transparent pixels are left to the end-of-line jump.
    """
    out = bytearray()
    for row in rows:
        end = len(row)
        while end > 0 and row[end - 1] is None:
            end -= 1

        x = 0
        while x < end:
            if row[x] is None:
                run = 0
                while x < end and row[x] is None and run < 0x7F:
                    run += 1
                    x += 1
                out.append(0x80 | run)
            else:
                start = x
                while x < end and row[x] is not None and x - start < 0x7F:
                    x += 1
                out.append(x - start)
                out.extend(row[start:x])
        out.append(0x80)
    return bytes(out)


def build_frame(width: int, height: int, data: bytes, is_flipped: int = 0,
                offset_x: int = 0, offset_y: int = 0, length: Optional[int] = None) -> bytes:
    """Frame header + compressed data. length defaults to len(data)."""
    if length is None:
        length = len(data)
    header = struct.pack('<8I', is_flipped, width, height, offset_x, offset_y, 0, 0, length)
    return header + data


def build_dc6(frames: List[bytes], directions: int = 1, magic=(6, 1, 0),
              terminator: int = 0xEEEEEEEE) -> bytes:
    """Assemble a DC6 file from frame blobs (direction-major)."""
    frames_per_direction = len(frames) // directions if directions else 0
    header = struct.pack('<6I', magic[0], magic[1], magic[2], terminator,
                         directions, frames_per_direction)

    offset = len(header) + 4 * len(frames)
    offsets = []
    for blob in frames:
        offsets.append(offset)
        offset += len(blob)

    return header + struct.pack(f'<{len(frames)}I', *offsets) + b''.join(frames)


@pytest.fixture
def palette():
    return PaletteTable.from_bytes(make_palette_bytes(sample_colors()))


@pytest.fixture
def palette_file(tmp_path):
    path = tmp_path / "units_pal.dat"
    path.write_bytes(make_palette_bytes(sample_colors()))
    return path
