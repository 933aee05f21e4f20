# ==============================================================================
# DC6 PARSER MODULE
# ==============================================================================
# Parser for DC6 sprite containers.
# A DC6 file holds several DIRECTIONS, each with the same number of animation
# FRAMES. Every frame is a palette-indexed image compressed with a scan-line
# run-length encoding.
#
# DC6 FILE FORMAT (all integers are uint32 little-endian):
# ------------------------------------------------------
#   Header (24 bytes):
#       always_six, always_one, always_zero   magic, must be 6, 1, 0
#       terminator                            unused
#       directions
#       frames_per_direction
#   Frame offset table:
#       directions * frames_per_direction absolute file offsets,
#       direction-major (all frames of direction 0 first)
#   Frame (at each offset):
#       is_flipped, width, height, offset_x, offset_y,
#       always_zero, next_frame_index, length   (32 bytes)
#       length bytes of compressed pixel data
#
# RLE STREAM:
# -----------
# One control byte per command:
#   1nnnnnnn  n > 0: skip n pixels (left transparent)
#   10000000         end of scan line, jump to start of next row
#   0nnnnnnn         n literal palette indices follow
#
# Rows are stored bottom-to-top unless is_flipped is nonzero.
#
# USAGE EXAMPLE:
# --------------
#   palette = PaletteTable.load("units_pal.dat")
#   decoder = DC6Decoder(palette)
#
#   for item in decoder.decode_file("monster.dc6"):
#       if isinstance(item, DecodeFailure):
#           print(item)
#       else:
#           item.to_image().save(f"monster_{item.index}.png")
# ==============================================================================

import io
import os
import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, List, Optional, Tuple, Union

import numpy as np
from PIL import Image

from .errors import (
    DC6Error, EmptyFrame, InvalidHeader, IoFailure,
    PixelOverrun, TruncatedFrame, TruncatedRun,
)
from .pal_parser import PaletteTable


# ==============================================================================
# CONSTANTS
# ==============================================================================

DC6_MAGIC = (6, 1, 0)

HEADER_STRUCT = struct.Struct('<6I')
FRAME_HEADER_STRUCT = struct.Struct('<8I')
OFFSET_SIZE = 4

HEADER_SIZE = HEADER_STRUCT.size
FRAME_HEADER_SIZE = FRAME_HEADER_STRUCT.size

# Offsets are uint32, so no table can address more frames than this
MAX_FRAME_COUNT = (0xFFFFFFFF - HEADER_SIZE) // OFFSET_SIZE

# Largest frame decoded (1 GiB of RGBA)
MAX_FRAME_PIXELS = 1 << 28

# RLE control byte layout
TRANSPARENT_RUN_FLAG = 0x80
RUN_COUNT_MASK = 0x7F

# Fully transparent black
DEFAULT_TRANSPARENT_COLOR = (0, 0, 0, 0)


RGBA = Tuple[int, int, int, int]


# ==============================================================================
# DATA CLASSES
# ==============================================================================

@dataclass(frozen=True)
class DC6Header:
    """
    File-level DC6 header plus its frame offset table.

    Attributes:
        always_six, always_one, always_zero: Magic fields (6, 1, 0)
        terminator: Unused marker
        directions: Number of directions
        frames_per_direction: Frames in each direction
        frame_offsets: Absolute file offset of every frame, direction-major
    """
    always_six: int = 6
    always_one: int = 1
    always_zero: int = 0
    terminator: int = 0
    directions: int = 0
    frames_per_direction: int = 0
    frame_offsets: Tuple[int, ...] = ()

    @property
    def frame_count(self) -> int:
        """Total frames (directions * frames_per_direction)."""
        return self.directions * self.frames_per_direction

    def locate(self, frame_index: int) -> Tuple[int, int]:
        """Map a storage index to (direction, frame within direction)."""
        if self.frames_per_direction == 0:
            return 0, frame_index
        return divmod(frame_index, self.frames_per_direction)


@dataclass(frozen=True)
class DC6FrameHeader:
    """
    Per-frame DC6 header.

    offset_x, offset_y and next_frame_index are carried through but not
    used when decoding pixels.
    """
    is_flipped: int = 0
    width: int = 0
    height: int = 0
    offset_x: int = 0
    offset_y: int = 0
    always_zero: int = 0
    next_frame_index: int = 0
    length: int = 0

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass
class RunDecodeResult:
    """
    Output of the scan-line decoder before orientation is fixed.

    Attributes:
        pixels: Flat (width * height, 4) uint8 RGBA array
        cursor: Final pixel cursor
        consumed: Number of stream bytes consumed
    """
    pixels: np.ndarray
    cursor: int
    consumed: int


@dataclass
class DC6Frame:
    """
    A fully decoded frame, ready to hand to an image writer.

    Attributes:
        index: Storage index in the frame offset table
        direction: Direction this frame belongs to
        frame_in_direction: Frame number within its direction
        header: The frame header
        pixels: Read-only (height, width, 4) uint8 RGBA array, top row first
    """
    index: int
    direction: int
    frame_in_direction: int
    header: DC6FrameHeader
    pixels: np.ndarray = field(repr=False)

    @property
    def width(self) -> int:
        return self.header.width

    @property
    def height(self) -> int:
        return self.header.height

    def to_image(self) -> Image.Image:
        """Convert the frame to a PIL Image in RGBA mode."""
        return Image.fromarray(np.array(self.pixels, dtype=np.uint8))


@dataclass
class DecodeFailure:
    """
    A file or frame that could not be decoded.

    Attributes:
        path: Source file
        frame_index: Frame index, or None when the whole file was skipped
        kind: Fault name (InvalidHeader, PixelOverrun, ...)
        message: Human readable detail
    """
    path: str
    frame_index: Optional[int]
    kind: str
    message: str

    @classmethod
    def from_error(cls, error: DC6Error, path: str = "",
                   frame_index: Optional[int] = None) -> 'DecodeFailure':
        return cls(
            path=error.path or path,
            frame_index=error.frame_index if error.frame_index is not None else frame_index,
            kind=error.kind,
            message=error.message,
        )

    def __str__(self):
        where = self.path
        if self.frame_index is not None:
            where += f" frame {self.frame_index}"
        return f"{where}: {self.kind}: {self.message}"


# ==============================================================================
# STREAM HELPERS
# ==============================================================================

def _remaining(stream: BinaryIO) -> int:
    """Bytes left between the current position and the end of the stream."""
    try:
        pos = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(pos, io.SEEK_SET)
    except (OSError, ValueError) as e:
        raise IoFailure(f"seek failed: {e}") from e
    return max(0, end - pos)


def _read(stream: BinaryIO, size: int) -> bytes:
    try:
        return stream.read(size)
    except (OSError, ValueError) as e:
        raise IoFailure(f"read failed: {e}") from e


# ==============================================================================
# HEADER READERS
# ==============================================================================

def read_container_header(stream: BinaryIO) -> DC6Header:
    """
    Read the DC6 file header and frame offset table.

    The stream must be positioned at the start of the file.

    Raises:
        InvalidHeader: bad magic fields, truncated header or offset table
        IoFailure: underlying read failure
    """
    magic = _read(stream, 12)
    if len(magic) < 12:
        raise InvalidHeader("truncated header")

    always_six, always_one, always_zero = struct.unpack('<3I', magic)
    if (always_six, always_one, always_zero) != DC6_MAGIC:
        raise InvalidHeader(
            f"invalid header: magic ({always_six}, {always_one}, {always_zero}), "
            f"expected {DC6_MAGIC}"
        )

    rest = _read(stream, 12)
    if len(rest) < 12:
        raise InvalidHeader("truncated header")
    terminator, directions, frames_per_direction = struct.unpack('<3I', rest)

    frame_count = directions * frames_per_direction
    if frame_count > MAX_FRAME_COUNT:
        raise InvalidHeader(f"frame count {frame_count} exceeds addressable offset table")

    table_size = frame_count * OFFSET_SIZE
    if table_size > _remaining(stream):
        raise InvalidHeader(
            f"truncated frame offset table ({directions} directions x "
            f"{frames_per_direction} frames)"
        )

    table = _read(stream, table_size)
    if len(table) < table_size:
        raise InvalidHeader("truncated frame offset table")

    return DC6Header(
        always_six=always_six,
        always_one=always_one,
        always_zero=always_zero,
        terminator=terminator,
        directions=directions,
        frames_per_direction=frames_per_direction,
        frame_offsets=struct.unpack(f'<{frame_count}I', table),
    )


def read_frame_header(stream: BinaryIO, offset: int) -> DC6FrameHeader:
    """
    Seek to a frame and read its 32 byte header.

    On return the stream sits at the first byte of the compressed pixels.

    Raises:
        TruncatedFrame: header ran past the end of the stream
        IoFailure: seek or read failure
    """
    try:
        stream.seek(offset, io.SEEK_SET)
    except (OSError, ValueError, OverflowError) as e:
        raise IoFailure(f"cannot seek to frame offset {offset}: {e}") from e

    data = _read(stream, FRAME_HEADER_SIZE)
    if len(data) < FRAME_HEADER_SIZE:
        raise TruncatedFrame(
            f"frame header at offset {offset} truncated "
            f"({len(data)} of {FRAME_HEADER_SIZE} bytes)"
        )

    return DC6FrameHeader(*FRAME_HEADER_STRUCT.unpack(data))


# ==============================================================================
# SCAN-LINE RLE DECODER
# ==============================================================================

def decode_scanlines(data: bytes, width: int, height: int, palette: PaletteTable,
                     transparent_color: RGBA = DEFAULT_TRANSPARENT_COLOR) -> RunDecodeResult:
    """
    Decode one frame's compressed stream into a flat RGBA buffer.

    Every byte of data is consumed. Rows come out in storage order; use
    normalize_orientation() afterwards.

    Args:
        data: Exactly the frame's compressed bytes
        width, height: Frame size in pixels
        palette: Palette for literal runs
        transparent_color: Fill for pixels no command writes

    Returns:
        RunDecodeResult with the pixels, final cursor and bytes consumed

    Raises:
        TruncatedRun: a literal run needs more bytes than remain
        PixelOverrun: a literal run would write past width * height
        EmptyFrame: zero-sized frame with a non-empty stream
    """
    length = len(data)
    total = width * height

    if total == 0:
        if length:
            raise EmptyFrame(f"frame is {width}x{height} but has {length} bytes of pixel data")
        return RunDecodeResult(np.empty((0, 4), dtype=np.uint8), 0, 0)

    if total > MAX_FRAME_PIXELS:
        raise PixelOverrun(f"frame too large: {width}x{height}")
    try:
        pixels = np.empty((total, 4), dtype=np.uint8)
    except (MemoryError, ValueError) as e:
        raise PixelOverrun(f"frame too large: {width}x{height}") from e
    pixels[:] = transparent_color
    lut = palette.rgba

    pos = 0
    consumed = 0
    while consumed < length:
        control = data[consumed]
        consumed += 1
        count = control & RUN_COUNT_MASK

        if control & TRANSPARENT_RUN_FLAG:
            if count > 0:
                pos += count
            else:
                # end of scan line
                pos = (pos // width + 1) * width
            continue

        if consumed + count > length:
            raise TruncatedRun(
                f"literal run of {count} at byte {consumed - 1} exceeds stream length {length}"
            )
        if count:
            if pos + count > total:
                raise PixelOverrun(
                    f"literal run of {count} at pixel {pos} overruns {width}x{height} frame"
                )

            indices = np.frombuffer(data, dtype=np.uint8, count=count, offset=consumed)
            pixels[pos:pos + count] = lut[indices]
            pos += count
            consumed += count

        # A run that fills its row leaves the cursor on the row's last pixel,
        # since the end-of-line command that follows advances from the current row.
        if pos > 0 and pos % width == 0:
            pos -= 1

    return RunDecodeResult(pixels, pos, consumed)


def decode_frame_pixels(stream: BinaryIO, header: DC6FrameHeader, palette: PaletteTable,
                        transparent_color: RGBA = DEFAULT_TRANSPARENT_COLOR) -> np.ndarray:
    """
    Read header.length bytes from the stream and decode them.

    Returns:
        (height, width, 4) RGBA array in storage row order

    Raises:
        TruncatedRun: fewer than header.length bytes available
        PixelOverrun, EmptyFrame: see decode_scanlines()
    """
    if header.length > _remaining(stream):
        raise TruncatedRun(f"stream ends before {header.length} bytes of pixel data")

    data = _read(stream, header.length)
    if len(data) < header.length:
        raise TruncatedRun(f"read {len(data)} of {header.length} bytes of pixel data")

    result = decode_scanlines(data, header.width, header.height, palette, transparent_color)
    return result.pixels.reshape((header.height, header.width, 4))


def normalize_orientation(pixels: np.ndarray, is_flipped: int) -> np.ndarray:
    """
    Put rows in top-to-bottom order.

    Frames are stored bottom-to-top unless is_flipped is nonzero.

    Returns:
        Read-only (height, width, 4) array
    """
    if not is_flipped:
        pixels = np.flipud(pixels)
    pixels = np.ascontiguousarray(pixels)
    pixels.setflags(write=False)
    return pixels


# ==============================================================================
# DC6 DECODER
# ==============================================================================

class DC6Decoder:
    """
    Decoder for DC6 sprite files.

    Shares one read-only palette across every frame it decodes. Frames are
    produced lazily, one at a time, in offset table order.

    Usage:
        decoder = DC6Decoder(palette, transparent_color=(255, 0, 255, 255))
        header = decoder.read_header(stream)
        for item in decoder.iter_frames(stream, header, "sprite.dc6"):
            ...
    """

    def __init__(self, palette: PaletteTable,
                 transparent_color: RGBA = DEFAULT_TRANSPARENT_COLOR):
        self.palette = palette
        self.transparent_color = tuple(transparent_color)

    def read_header(self, stream: BinaryIO, path: str = "") -> DC6Header:
        """Read the container header, tagging errors with the file path."""
        try:
            return read_container_header(stream)
        except DC6Error as e:
            e.path = e.path or path
            raise

    def decode_frame(self, stream: BinaryIO, header: DC6Header, frame_index: int) -> DC6Frame:
        """
        Decode a single frame by storage index.

        Raises:
            DC6Error subclass describing the fault
        """
        offset = header.frame_offsets[frame_index]
        frame_header = read_frame_header(stream, offset)
        if frame_header.pixel_count == 0:
            raise EmptyFrame(f"frame is {frame_header.width}x{frame_header.height}, nothing to render")
        pixels = decode_frame_pixels(stream, frame_header, self.palette, self.transparent_color)
        pixels = normalize_orientation(pixels, frame_header.is_flipped)

        direction, frame_in_direction = header.locate(frame_index)
        return DC6Frame(
            index=frame_index,
            direction=direction,
            frame_in_direction=frame_in_direction,
            header=frame_header,
            pixels=pixels,
        )

    def iter_frames(self, stream: BinaryIO, header: DC6Header,
                    path: str = "") -> Iterator[Union[DC6Frame, DecodeFailure]]:
        """
        Yield every frame of a file in storage order.

        A frame that fails to decode is yielded as a DecodeFailure and the
        next frame is still attempted.
        """
        for frame_index in range(header.frame_count):
            try:
                yield self.decode_frame(stream, header, frame_index)
            except DC6Error as e:
                yield DecodeFailure.from_error(e, path, frame_index)

    def decode_stream(self, stream: BinaryIO,
                      path: str = "") -> Iterator[Union[DC6Frame, DecodeFailure]]:
        """
        Decode every frame of an open DC6 stream.

        Raises:
            InvalidHeader: on the first iteration, if the header is bad
        """
        header = self.read_header(stream, path)
        yield from self.iter_frames(stream, header, path)

    def decode_file(self, file_path: str) -> Iterator[Union[DC6Frame, DecodeFailure]]:
        """
        Decode every frame of a DC6 file on disk.

        Raises:
            IoFailure: if the file cannot be opened
            InvalidHeader: if the header is bad
        """
        try:
            f = open(file_path, 'rb')
        except OSError as e:
            raise IoFailure(f"error opening dc6 file: {e}", path=file_path) from e

        with f:
            yield from self.decode_stream(f, file_path)

    def decode_bytes(self, data: bytes,
                     path: str = "") -> List[Union[DC6Frame, DecodeFailure]]:
        """Decode an in-memory DC6 file."""
        return list(self.decode_stream(io.BytesIO(data), path))

    def inspect_file(self, file_path: str) -> Tuple[DC6Header, List[Union[DC6FrameHeader, DecodeFailure]]]:
        """
        Read the file header and every frame header without decoding pixels.

        Raises:
            IoFailure, InvalidHeader: file-level faults
        """
        try:
            f = open(file_path, 'rb')
        except OSError as e:
            raise IoFailure(f"error opening dc6 file: {e}", path=file_path) from e

        frames = []
        with f:
            header = self.read_header(f, file_path)
            for frame_index, offset in enumerate(header.frame_offsets):
                try:
                    frames.append(read_frame_header(f, offset))
                except DC6Error as e:
                    frames.append(DecodeFailure.from_error(e, file_path, frame_index))
        return header, frames


# ==============================================================================
# STANDALONE USAGE
# ==============================================================================
if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("Usage: python dc6_parser.py <file.dc6> [palette.dat]")
        sys.exit(1)

    palette = PaletteTable.load(sys.argv[2]) if len(sys.argv) > 2 else PaletteTable.grayscale()
    decoder = DC6Decoder(palette)

    try:
        header, frames = decoder.inspect_file(sys.argv[1])
    except DC6Error as e:
        print(f"[ERROR] {e}")
        sys.exit(1)

    print(f"File: {os.path.basename(sys.argv[1])}")
    print(f"Directions: {header.directions}")
    print(f"Frames per direction: {header.frames_per_direction}")
    print(f"Total frames: {header.frame_count}")
    for i, frame in enumerate(frames):
        if isinstance(frame, DecodeFailure):
            print(f"  [{i}] {frame.kind}: {frame.message}")
        else:
            print(f"  [{i}] {frame.width}x{frame.height} flipped={frame.is_flipped} "
                  f"length={frame.length}")
