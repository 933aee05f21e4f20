import io
import struct

import pytest

from dc6harvester.parsers.dc6_parser import (
    DC6Decoder, DC6Frame, DecodeFailure, read_container_header, read_frame_header,
)
from dc6harvester.parsers.errors import (
    EmptyFrame, InvalidHeader, IoFailure, PixelOverrun, TruncatedFrame,
)

from conftest import build_dc6, build_frame, encode_rows


def simple_frame(index=1, width=2, height=2, is_flipped=0):
    rows = [[index] * width for _ in range(height)]
    return build_frame(width, height, encode_rows(rows), is_flipped=is_flipped)


# ==============================================================================
# HEADER READERS
# ==============================================================================

def test_header_and_offset_table():
    frames = [simple_frame(i) for i in range(6)]
    data = build_dc6(frames, directions=2)

    header = read_container_header(io.BytesIO(data))

    assert header.directions == 2
    assert header.frames_per_direction == 3
    assert header.frame_count == len(header.frame_offsets) == 6
    assert header.terminator == 0xEEEEEEEE
    assert header.frame_offsets[0] == 24 + 4 * 6


def test_every_offset_yields_a_frame_header():
    frames = [simple_frame(i, width=i + 1, height=2) for i in range(4)]
    stream = io.BytesIO(build_dc6(frames, directions=4))
    header = read_container_header(stream)

    for i, offset in enumerate(header.frame_offsets):
        frame_header = read_frame_header(stream, offset)
        assert frame_header.width == i + 1
        assert frame_header.height == 2
        # positioned at the compressed data
        assert stream.tell() == offset + 32


@pytest.mark.parametrize("magic", [(5, 1, 0), (6, 0, 0), (6, 1, 1), (0, 0, 0)])
def test_bad_magic_is_rejected_before_frame_parsing(magic):
    stream = io.BytesIO(build_dc6([simple_frame()], magic=magic))

    with pytest.raises(InvalidHeader):
        read_container_header(stream)
    assert stream.tell() == 12


def test_truncated_header():
    with pytest.raises(InvalidHeader):
        read_container_header(io.BytesIO(struct.pack('<4I', 6, 1, 0, 0)))


def test_truncated_offset_table():
    data = struct.pack('<6I', 6, 1, 0, 0, 8, 8) + struct.pack('<3I', 1, 2, 3)

    with pytest.raises(InvalidHeader):
        read_container_header(io.BytesIO(data))


def test_frame_header_fields():
    blob = struct.pack('<8I', 1, 10, 20, 3, 4, 0, 7, 99)
    stream = io.BytesIO(b"\x00" * 5 + blob)

    header = read_frame_header(stream, 5)

    assert header.is_flipped == 1
    assert (header.width, header.height) == (10, 20)
    assert (header.offset_x, header.offset_y) == (3, 4)
    assert header.next_frame_index == 7
    assert header.length == 99


def test_frame_header_past_end_of_stream():
    stream = io.BytesIO(struct.pack('<4I', 0, 1, 1, 0))

    with pytest.raises(TruncatedFrame):
        read_frame_header(stream, 0)
    with pytest.raises(TruncatedFrame):
        read_frame_header(stream, 1000)


def test_locate_is_direction_major():
    frames = [simple_frame() for _ in range(6)]
    header = read_container_header(io.BytesIO(build_dc6(frames, directions=2)))

    assert header.locate(0) == (0, 0)
    assert header.locate(2) == (0, 2)
    assert header.locate(4) == (1, 1)


# ==============================================================================
# DECODER
# ==============================================================================

def test_decode_bytes_yields_frames_in_order(palette):
    frames = [simple_frame(i, is_flipped=1) for i in (3, 4, 5, 6)]
    decoder = DC6Decoder(palette)

    result = decoder.decode_bytes(build_dc6(frames, directions=2), "sprite.dc6")

    assert [f.index for f in result] == [0, 1, 2, 3]
    assert all(isinstance(f, DC6Frame) for f in result)
    assert [(f.direction, f.frame_in_direction) for f in result] == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert tuple(result[2].pixels[0, 0]) == tuple(palette.rgba[5])


def test_bad_frame_is_reported_and_next_frame_still_decodes(palette):
    overrun = build_frame(1, 1, bytes([0x02, 1, 1]))
    frames = [simple_frame(1), overrun, simple_frame(2)]
    decoder = DC6Decoder(palette)

    result = decoder.decode_bytes(build_dc6(frames), "sprite.dc6")

    assert isinstance(result[0], DC6Frame)
    assert isinstance(result[1], DecodeFailure)
    assert result[1].kind == PixelOverrun.__name__
    assert result[1].frame_index == 1
    assert result[1].path == "sprite.dc6"
    assert isinstance(result[2], DC6Frame)


def test_zero_sized_frame_is_skipped(palette):
    frames = [build_frame(0, 4, b""), simple_frame(1)]

    result = DC6Decoder(palette).decode_bytes(build_dc6(frames))

    assert result[0].kind == EmptyFrame.__name__
    assert isinstance(result[1], DC6Frame)


def test_frame_offset_outside_file(palette):
    data = bytearray(build_dc6([simple_frame(), simple_frame()]))
    struct.pack_into('<I', data, 24, 0xFFFFFF00)

    result = DC6Decoder(palette).decode_bytes(bytes(data))

    assert result[0].kind == TruncatedFrame.__name__
    assert isinstance(result[1], DC6Frame)


def test_invalid_header_raises_with_path(palette):
    data = build_dc6([simple_frame()], magic=(5, 1, 0))

    with pytest.raises(InvalidHeader) as exc:
        DC6Decoder(palette).decode_bytes(data, "bad.dc6")
    assert exc.value.path == "bad.dc6"


def test_decode_file_missing(palette, tmp_path):
    with pytest.raises(IoFailure):
        list(DC6Decoder(palette).decode_file(str(tmp_path / "missing.dc6")))


def test_decode_file_and_to_image(palette, tmp_path):
    path = tmp_path / "one.dc6"
    rows = [[7, None], [8, 9]]
    path.write_bytes(build_dc6([build_frame(2, 2, encode_rows(rows), is_flipped=0)]))

    [frame] = list(DC6Decoder(palette).decode_file(str(path)))
    image = frame.to_image()

    assert image.mode == "RGBA"
    assert image.size == (2, 2)
    # stored bottom-to-top: the first encoded row is the bottom row
    assert image.getpixel((0, 1)) == tuple(int(c) for c in palette.rgba[7])
    assert image.getpixel((1, 1)) == (0, 0, 0, 0)
    assert image.getpixel((1, 0)) == tuple(int(c) for c in palette.rgba[9])


def test_flip_flag_reverses_rows(palette):
    data = bytes([0x01, 0x05, 0x80, 0x01, 0x06])
    frames = [build_frame(1, 2, data, is_flipped=0), build_frame(1, 2, data, is_flipped=1)]

    stored_order, upright = DC6Decoder(palette).decode_bytes(build_dc6(frames))

    assert (stored_order.pixels[::-1] == upright.pixels).all()
    assert tuple(upright.pixels[0, 0]) == tuple(palette.rgba[5])


def test_inspect_file(palette, tmp_path):
    path = tmp_path / "info.dc6"
    path.write_bytes(build_dc6([simple_frame(width=3), simple_frame(width=4)], directions=2))

    header, frames = DC6Decoder(palette).inspect_file(str(path))

    assert header.directions == 2
    assert [f.width for f in frames] == [3, 4]
