import pytest
import yaml

from tilestitch.dezoomer import TileReference
from tilestitch.tile_set import (
    IntTemplate,
    TileSet,
    UrlTemplate,
    UrlTemplateError,
    evaluate_int,
)
from tilestitch.variables import Variables, make_variable


def test_url_template_evaluation():
    tpl = UrlTemplate.parse("a {{x}} b {{y}} c")
    assert tpl.eval({"x": 0, "y": 10}) == "a 0 b 10 c"


def test_url_template_evaluation_leading_zeroes():
    tpl = UrlTemplate.parse("{{x:03}} {{ x + y/2 :02}}")
    assert tpl.eval({"x": 0, "y": 10}) == "000 05"


def test_url_template_without_expressions():
    assert UrlTemplate.parse("plain/text").eval({}) == "plain/text"


def test_tile_iteration():
    ts = TileSet(
        variables=Variables((make_variable("x", 0, 1, 1), make_variable("y", 0, 1, 1))),
        url_template=UrlTemplate.parse("{{x}}/{{y}}"),
        x_template=IntTemplate("x"),
        y_template=IntTemplate("y"),
    )
    expected = [
        TileReference.parse(s) for s in ["0 0 0/0", "0 1 0/1", "1 0 1/0", "1 1 1/1"]
    ]
    assert list(ts) == expected


def test_tileset_from_yaml():
    serialized = """
variables:
    - name: x
      from: 0
      to: 1
    - name: y
      from: 0
      to: 1
    - name: tile_size
      value: 100
url_template: "{{x*tile_size}}/{{y*tile_size}}"
"""
    ts = TileSet.from_dict(yaml.safe_load(serialized))
    expected = [
        TileReference.parse(s)
        for s in ["0 0 0/0", "0 1 0/100", "1 0 100/0", "1 1 100/100"]
    ]
    assert list(ts) == expected


def test_tileset_missing_url_template():
    with pytest.raises(ValueError, match="url_template"):
        TileSet.from_dict({"variables": []})


def test_unbound_variable():
    with pytest.raises(UrlTemplateError, match="not bound"):
        UrlTemplate.parse("{{z}}").eval({"x": 1})


def test_bad_expression():
    with pytest.raises(UrlTemplateError, match="not a valid expression"):
        IntTemplate("1 +").eval({})


def test_negative_result_rejected():
    with pytest.raises(UrlTemplateError, match="Number too large"):
        IntTemplate("x - 5").eval({"x": 1})


def test_division_by_zero():
    with pytest.raises(UrlTemplateError, match="Division by zero"):
        evaluate_int("x / 0", {"x": 3})


def test_truncating_arithmetic():
    assert evaluate_int("-7 / 2", {}) == -3
    assert evaluate_int("-7 % 2", {}) == -1
    assert evaluate_int("(x + 1) * 3", {"x": 2}) == 9