import pytest

from tilestitch.gap_page import PageInfo, PageParseError, PyramidLevel, TileInfo

TILE_INFO_XML = """
            <?xml version="1.0" encoding="UTF-8"?>
            <TileInfo tile_width="512" tile_height="512" full_pyramid_depth="5" origin="TOP_LEFT" timestamp="1564671682" tiler_version_number="2" image_width="5436" image_height="4080">
                <pyramid_level num_tiles_x="1" num_tiles_y="1" inverse_scale="16" empty_pels_x="173" empty_pels_y="257"/>
                <pyramid_level num_tiles_x="2" num_tiles_y="1" inverse_scale="8" empty_pels_x="345" empty_pels_y="2"/>
                <pyramid_level num_tiles_x="3" num_tiles_y="2" inverse_scale="4" empty_pels_x="177" empty_pels_y="4"/>
                <pyramid_level num_tiles_x="6" num_tiles_y="4" inverse_scale="2" empty_pels_x="354" empty_pels_y="8"/>
                <pyramid_level num_tiles_x="11" num_tiles_y="8" inverse_scale="1" empty_pels_x="196" empty_pels_y="16"/>
             </TileInfo>
         """


def test_xml_parse():
    infos = TileInfo.from_xml(TILE_INFO_XML)
    assert infos.tile_width == 512
    assert infos.tile_height == 512
    assert len(infos.pyramid_level) == 5
    assert infos.pyramid_level[4].num_tiles_x == 11
    assert infos.pyramid_level[0] == PyramidLevel(1, 1, 173, 257)


def test_xml_parse_invalid():
    with pytest.raises(ValueError):
        TileInfo.from_xml("<TileInfo tile_width='x' tile_height='1'/>")


def test_parse_html():
    page = 'var x = [1,2]\n,"//lh5.example.com/AbCdEf_123","token",[3]; {"name":"The Sample Artwork"}'
    info = PageInfo.parse(page)
    assert info.base_url == "https://lh5.example.com/AbCdEf_123"
    assert info.token == "token"
    assert info.name == "The Sample Artwork"
    assert info.tile_info_url() == "https://lh5.example.com/AbCdEf_123=g"
    assert info.path() == "AbCdEf_123"


def test_parse_html_crlf():
    page = ']\r\n,"//lh3.example.com/Xyz-Path","token"'
    info = PageInfo.parse(page)
    assert info.base_url == "https://lh3.example.com/Xyz-Path"
    assert info.token == "token"


def test_parse_html_null():
    page = '[0],"//lh6.example.com/NullTokenPath",null,5'
    info = PageInfo.parse(page)
    assert info.base_url == "https://lh6.example.com/NullTokenPath"
    assert info.token == ""
    assert info.name == "Google Arts and culture image"


def test_parse_html_no_token():
    with pytest.raises(PageParseError, match="token"):
        PageInfo.parse("<html>nothing here</html>")