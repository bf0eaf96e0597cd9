import pytest
from PIL import Image

from tilestitch.dezoomer import Vec2d
from tilestitch.encoding import Encoder, Tile, crop_tile, max_size_in_rect


def _tile(width, height, position):
    image = Image.new("RGB", (width, height))
    for x in range(width):
        for y in range(height):
            image.putpixel((x, y), (x * 10, y * 10, 7))
    return Tile(image=image, position=position)


def test_tile_size_matches_image():
    tile = _tile(3, 5, Vec2d(2, 7))
    assert tile.size() == Vec2d(3, 5)


def test_bottom_right_is_position_plus_size():
    tile = _tile(3, 5, Vec2d(2, 7))
    assert tile.bottom_right() == tile.position + tile.size()


def test_max_size_inside_canvas_is_tile_size():
    assert max_size_in_rect(Vec2d(1, 1), Vec2d(2, 3), Vec2d(10, 10)) == Vec2d(2, 3)


def test_max_size_clipped_by_canvas():
    # A 2x2 tile at (0, 2) in a 1x3 canvas only shows a single pixel.
    assert max_size_in_rect(Vec2d(0, 2), Vec2d(2, 2), Vec2d(1, 3)) == Vec2d(1, 1)


def test_max_size_outside_canvas_is_empty():
    assert max_size_in_rect(Vec2d(5, 5), Vec2d(2, 2), Vec2d(4, 4)) == Vec2d(0, 0)


def test_crop_tile_keeps_fitting_tile_whole():
    tile = _tile(2, 2, Vec2d(0, 0))
    cropped = crop_tile(tile, Vec2d(4, 4))
    assert cropped.size == tile.image.size
    assert cropped.tobytes() == tile.image.tobytes()


def test_crop_tile_cuts_overflowing_tile():
    tile = _tile(4, 3, Vec2d(1, 1))
    canvas = Vec2d(3, 3)
    cropped = crop_tile(tile, canvas)
    expected = max_size_in_rect(tile.position, tile.size(), canvas)
    assert cropped.size == (expected.x, expected.y)
    assert cropped.getpixel((1, 1)) == tile.image.getpixel((1, 1))


def test_encoder_is_abstract():
    with pytest.raises(TypeError):
        Encoder()