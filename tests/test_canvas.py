import pytest
from PIL import Image

from tilestitch.canvas import Canvas, ImageWriter
from tilestitch.dezoomer import Vec2d
from tilestitch.encoding import Tile


def _rgb_tile(position):
    image = Image.frombytes("RGB", (2, 2), bytes([1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12]))
    return Tile(image=image, position=position)


def test_size_is_the_requested_one(tmp_path):
    canvas = Canvas(tmp_path / "out.png", Vec2d(4, 4))
    assert canvas.size() == Vec2d(4, 4)


def test_tile_pixels_are_copied(tmp_path):
    destination = tmp_path / "out.png"
    canvas = Canvas(destination, Vec2d(4, 4))
    canvas.add_tile(_rgb_tile(Vec2d(1, 1)))
    canvas.finalize()
    with Image.open(destination) as result:
        result = result.convert("RGBA")
        assert result.size == (4, 4)
        assert result.getpixel((1, 1)) == (1, 2, 3, 255)
        assert result.getpixel((2, 2))[:3] == (10, 11, 12)
        assert result.getpixel((0, 0)) == (0, 0, 0, 0)


def test_overflowing_tile_is_cropped(tmp_path):
    destination = tmp_path / "out.png"
    canvas = Canvas(destination, Vec2d(3, 3))
    canvas.add_tile(_rgb_tile(Vec2d(2, 2)))
    canvas.finalize()
    with Image.open(destination) as result:
        assert result.size == (3, 3)
        assert result.convert("RGB").getpixel((2, 2)) == (1, 2, 3)


def test_tile_outside_canvas_is_rejected(tmp_path):
    canvas = Canvas(tmp_path / "out.png", Vec2d(2, 2))
    with pytest.raises(ValueError):
        canvas.add_tile(_rgb_tile(Vec2d(5, 0)))


def test_jpeg_writer(tmp_path):
    destination = tmp_path / "out.jpg"
    canvas = Canvas(destination, Vec2d(4, 4), ImageWriter(jpeg_quality=90))
    canvas.add_tile(_rgb_tile(Vec2d(0, 0)))
    canvas.finalize()
    with Image.open(destination) as result:
        assert result.format == "JPEG"
        assert result.size == (4, 4)


def test_generic_writer_unknown_extension(tmp_path):
    canvas = Canvas(tmp_path / "out.unknownext", Vec2d(2, 2))
    with pytest.raises(ValueError):
        canvas.finalize()