import pytest

from dc6harvester.parsers.errors import InvalidPaletteSize, IoFailure
from dc6harvester.parsers.pal_parser import PaletteTable, PALETTE_SIZE, load_palette

from conftest import make_palette_bytes, sample_colors


def test_bgr_triples_are_reordered_to_rgb():
    data = bytes([0x00, 0x00, 0xFF, 0xFF, 0x00, 0x00]) + bytes(PALETTE_SIZE - 6)

    palette = PaletteTable.from_bytes(data)

    assert palette[0] == (255, 0, 0)
    assert palette[1] == (0, 0, 255)
    assert palette.get_color(2) == (0, 0, 0)
    assert len(palette.colors) == 256


@pytest.mark.parametrize("size", [0, 6, PALETTE_SIZE - 1, PALETTE_SIZE + 1, 1024])
def test_wrong_size_is_rejected(size):
    with pytest.raises(InvalidPaletteSize):
        PaletteTable.from_bytes(bytes(size))


def test_any_byte_values_are_accepted():
    palette = PaletteTable.from_bytes(bytes([0xFF]) * PALETTE_SIZE)
    assert all(color == (255, 255, 255) for color in palette.colors)


def test_rgba_lookup_is_opaque_and_read_only(palette):
    rgba = palette.rgba

    assert rgba.shape == (256, 4)
    assert (rgba[:, 3] == 255).all()
    assert tuple(rgba[10, :3]) == palette[10]
    with pytest.raises(ValueError):
        rgba[0, 0] = 1


def test_load_from_file(palette_file):
    palette = PaletteTable.load(str(palette_file))

    assert palette.filename == str(palette_file)
    assert list(palette.colors) == sample_colors()


def test_load_missing_file(tmp_path):
    with pytest.raises(IoFailure):
        PaletteTable.load(str(tmp_path / "missing.dat"))


def test_load_wrong_size_file(tmp_path):
    path = tmp_path / "short.dat"
    path.write_bytes(bytes(700))

    with pytest.raises(InvalidPaletteSize) as exc:
        PaletteTable.load(str(path))
    assert exc.value.path == str(path)


def test_save_writes_bgr_layout(tmp_path, palette):
    path = tmp_path / "copy.dat"
    palette.save(str(path))

    assert path.read_bytes() == make_palette_bytes(sample_colors())


def test_load_palette_without_path_falls_back_to_grayscale(capsys):
    palette = load_palette("")

    assert palette[0] == (0, 0, 0)
    assert palette[200] == (200, 200, 200)
    assert "[WARN]" in capsys.readouterr().out


def test_to_image_renders_grid(palette):
    image = palette.to_image(cell_size=2)

    assert image.size == (32, 32)
    assert image.getpixel((2, 0)) == palette[1]
