import pytest

from tilestitch.variables import (
    BadVariableError,
    Constant,
    Variable,
    Variables,
    make_variable,
)


def test_variable_iteration():
    var = Variable(name="hello", start=3, end=-3, step=-3)
    assert list(var) == [3, 0, -3]


def test_variable_iteration_inclusive_end():
    assert list(Variable(name="x", start=0, end=4, step=2)) == [0, 2, 4]


def test_variable_validity_check_name():
    var = Variable(name="hello world", start=0, end=1, step=1)
    with pytest.raises(BadVariableError, match="invalid variable name"):
        var.check()


def test_make_variable_infinite():
    with pytest.raises(BadVariableError, match="is incorrect"):
        make_variable("x", 0, 10, -1)


def test_make_variable_too_many_values():
    with pytest.raises(BadVariableError, match="too wide"):
        make_variable("x", 0, 2**33, 1)


def test_make_variable_valid():
    assert list(make_variable("x", 0, 1, 1)) == [0, 1]


def test_constant_iteration():
    assert list(Constant(name="c", value=7)) == [7]


def test_iter_contexts():
    vars_ = Variables((make_variable("x", 0, 1, 1), make_variable("y", 8, 9, 1)))
    ctxs = list(vars_.iter_contexts())
    assert len(ctxs) == 4
    assert ctxs[0] == {"x": 0, "y": 8}
    assert ctxs[1] == {"x": 0, "y": 9}
    assert ctxs[2] == {"x": 1, "y": 8}
    assert ctxs[3] == {"x": 1, "y": 9}


def test_from_list_variables_and_constants():
    vars_ = Variables.from_list(
        [
            {"name": "x", "from": 0, "to": 4, "step": 2},
            {"name": "size", "value": 100},
        ]
    )
    assert vars_.items == (
        Variable(name="x", start=0, end=4, step=2),
        Constant(name="size", value=100),
    )


def test_from_list_default_step():
    vars_ = Variables.from_list([{"name": "x", "from": 0, "to": 2}])
    assert vars_.items[0].step == 1


def test_from_list_rejects_unknown_shape():
    with pytest.raises(BadVariableError):
        Variables.from_list([{"name": "x"}])