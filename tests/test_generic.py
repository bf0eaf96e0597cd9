import pytest

from tilestitch.dezoomer import (
    DezoomerInput,
    TileFetchResult,
    TileReference,
    Vec2d,
    ZoomLevelIter,
)
from tilestitch.errors import WrongDezoomer
from tilestitch.generic import GenericDezoomer, GenericZoomLevel


def test_generic_dezoomer():
    levels = GenericDezoomer().zoom_levels(DezoomerInput("{{X}},{{Y}}"))
    lvl = levels[0]
    existing_tiles = {"0,0", "1,0", "2,0", "0,1", "1,1", "2,1"}
    all_tiles = set()
    it = ZoomLevelIter(lvl)
    tries = 0
    while (tiles := it.next_tile_references()) is not None:
        successes = [t for t in tiles if t.url in existing_tiles]
        it.set_fetch_result(
            TileFetchResult(
                count=len(tiles), successes=len(successes), tile_size=Vec2d(4, 5)
            )
        )
        all_tiles.update(successes)
        tries += 1
        assert tries <= 10
    assert all_tiles == {
        TileReference("0,0", Vec2d(0, 0)),
        TileReference("1,0", Vec2d(4, 0)),
        TileReference("2,0", Vec2d(8, 0)),
        TileReference("0,1", Vec2d(0, 5)),
        TileReference("1,1", Vec2d(4, 5)),
        TileReference("2,1", Vec2d(8, 5)),
    }
    assert lvl.size_hint() == Vec2d(12, 10)


def test_url_templating():
    lvl = GenericZoomLevel("http://x.com/{{x:05}}_{{y}}")
    assert lvl.tile_url_at(10, 11) == "http://x.com/00010_11"
    assert lvl.tile_url_at(123, 1) == "http://x.com/00123_1"


def test_rejects_uri_without_template():
    with pytest.raises(WrongDezoomer) as exc:
        GenericDezoomer().zoom_levels(DezoomerInput("http://x.com/tile.jpg"))
    assert exc.value.name == "generic"


def test_level_name_and_first_tile():
    lvl = GenericZoomLevel("t_{{x}}_{{y}}")
    assert lvl.name() == "Generic image with template t_{{x}}_{{y}}"
    assert lvl.next_tiles(None) == [TileReference("t_0_0", Vec2d(0, 0))]
    assert lvl.size_hint() is None
    assert lvl.tile_ref_at(2, 3) == TileReference("t_2_3", Vec2d(0, 0))