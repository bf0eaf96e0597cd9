import pytest

from tilestitch.dezoomer import (
    Dezoomer,
    DezoomerInput,
    TileFetchResult,
    TileReference,
    TilesRect,
    Vec2d,
    ZoomLevelIter,
    single_level,
)
from tilestitch.errors import DownloadError, MalformedTileStr, NeedsData, WrongDezoomer


class FakeLvl(TilesRect):
    def size(self):
        return Vec2d(100, 100)

    def tile_size(self):
        return Vec2d(60, 60)

    def tile_url(self, pos):
        return f"{pos.x},{pos.y}"

    def __repr__(self):
        return "Fake"


class FakeDezoomer(Dezoomer):
    name = "fake"

    def zoom_levels(self, data):
        self.check(data.uri.endswith(".fake"))
        return single_level(FakeLvl())


def test_assert_tiles():
    lvl = FakeLvl()
    all_tiles = []
    it = ZoomLevelIter(lvl)
    while (tiles := it.next_tile_references()) is not None:
        all_tiles.extend(tiles)
        it.set_fetch_result(TileFetchResult(count=0, successes=0, tile_size=None))
    assert all_tiles == [
        TileReference("0,0", Vec2d(0, 0)),
        TileReference("1,0", Vec2d(60, 0)),
        TileReference("0,1", Vec2d(0, 60)),
        TileReference("1,1", Vec2d(60, 60)),
    ]


def test_tiles_rect_metadata():
    lvl = FakeLvl()
    assert lvl.tile_count() == 4
    assert lvl.size_hint() == Vec2d(100, 100)
    assert lvl.http_headers() == {"Referer": "0,0"}
    assert lvl.name() == "Fake (  100 x   100 pixels,     4 tiles)"
    assert lvl.post_process(TileReference("0,0", Vec2d()), b"abc") == b"abc"


def test_zoom_level_iter_requires_result():
    it = ZoomLevelIter(FakeLvl())
    it.next_tile_references()
    with pytest.raises(RuntimeError):
        it.next_tile_references()
    assert it.size_hint() == Vec2d(100, 100)


def test_set_fetch_result_without_batch():
    it = ZoomLevelIter(FakeLvl())
    with pytest.raises(RuntimeError):
        it.set_fetch_result(TileFetchResult(0, 0))


def test_tile_reference_parse():
    ref = TileReference.parse("0 1 0/1")
    assert ref == TileReference("0/1", Vec2d(0, 1))
    assert str(ref) == "0/1"


@pytest.mark.parametrize("bad", ["", "1 2", "a 2 url", "1 -2 url", "1  2 url"])
def test_tile_reference_parse_errors(bad):
    with pytest.raises(MalformedTileStr):
        TileReference.parse(bad)


def test_vec2d_operations():
    a = Vec2d(5, 7)
    assert a.ceil_div(Vec2d.square(2)) == Vec2d(3, 4)
    assert a.ceil_div(5) == Vec2d(1, 2)
    assert a * Vec2d(2, 3) == Vec2d(10, 21)
    assert a * 2 == Vec2d(10, 14)
    assert a // 2 == Vec2d(2, 3)
    assert a + Vec2d(1, 1) - Vec2d(2, 3) == Vec2d(4, 5)
    assert a.area() == 35
    assert a.max(Vec2d(6, 1)) == Vec2d(6, 7)
    assert a.min(Vec2d(6, 1)) == Vec2d(5, 1)
    assert a.fits_inside(Vec2d(5, 7))
    assert not a.fits_inside(Vec2d(4, 8))


def test_fetch_result_success():
    assert TileFetchResult(1, 1, Vec2d(4, 5)).is_success()
    assert not TileFetchResult(1, 0, Vec2d(4, 5)).is_success()
    assert not TileFetchResult(1, 1, None).is_success()
    assert not TileFetchResult(1, 1, Vec2d(0, 5)).is_success()


def test_with_contents():
    assert DezoomerInput("u", b"data").with_contents() == b"data"
    with pytest.raises(NeedsData) as exc:
        DezoomerInput("http://example.com/x").with_contents()
    assert exc.value.uri == "http://example.com/x"
    with pytest.raises(DownloadError) as exc2:
        DezoomerInput("u", OSError("broken")).with_contents()
    assert exc2.value.msg == "broken"


def test_dezoomer_check():
    d = FakeDezoomer()
    levels = d.zoom_levels(DezoomerInput("a.fake"))
    assert len(levels) == 1
    with pytest.raises(WrongDezoomer) as exc:
        d.zoom_levels(DezoomerInput("a.other"))
    assert exc.value.name == "fake"