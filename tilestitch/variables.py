"""Variables of a tiles description file and the combinations of their values."""

from __future__ import annotations

import itertools
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Union

_NAME_RE = re.compile(r"\w+")
_U32_MAX = 2**32 - 1


class BadVariableError(ValueError):
    """A variable definition is invalid."""


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


@dataclass(frozen=True)
class Variable:
    """A named integer ranging from ``start`` to ``end`` (inclusive) by ``step``."""

    name: str
    start: int
    end: int
    step: int = 1

    def check(self) -> None:
        """Raise BadVariableError if the name or the range is invalid."""
        if not _NAME_RE.fullmatch(self.name):
            raise BadVariableError(f"invalid variable name: '{self.name}'")
        if self.step == 0:
            raise BadVariableError(
                f"the range of values for {self.name} is incorrect"
            )
        steps = _trunc_div(self.end - self.start, self.step)
        if steps < 0:
            raise BadVariableError(
                f"the range of values for {self.name} is incorrect"
            )
        if steps > _U32_MAX:
            raise BadVariableError(
                f"the range of values for {self.name} is too wide: {steps} steps"
            )

    def _in_range(self, value: int) -> bool:
        return self.start <= value <= self.end or self.end <= value <= self.start

    def __iter__(self) -> Iterator[int]:
        current = self.start
        while self._in_range(current):
            yield current
            current += self.step


@dataclass(frozen=True)
class Constant:
    """A named variable with a single value."""

    name: str
    value: int

    def __iter__(self) -> Iterator[int]:
        yield self.value


VarOrConst = Union[Variable, Constant]


def make_variable(name: str, start: int, end: int, step: int) -> Variable:
    """Create a variable, checking that it is valid."""
    variable = Variable(name=name, start=start, end=end, step=step)
    variable.check()
    return variable


def _from_mapping(item: Any) -> VarOrConst:
    if isinstance(item, Mapping) and isinstance(item.get("name"), str):
        name = item["name"]
        step = item.get("step", 1)
        if _is_int(item.get("from")) and _is_int(item.get("to")) and _is_int(step):
            return Variable(name=name, start=item["from"], end=item["to"], step=step)
        if _is_int(item.get("value")):
            return Constant(name=name, value=item["value"])
    raise BadVariableError(
        f"data did not match any variable or constant definition: {item!r}"
    )


@dataclass(frozen=True)
class Variables:
    """An ordered collection of variables and constants."""

    items: tuple[VarOrConst, ...]

    @classmethod
    def from_list(cls, items: Any) -> "Variables":
        """Build from a list of mappings, as found in a tiles description file."""
        if not isinstance(items, list):
            raise BadVariableError("variables must be given as a list")
        return cls(tuple(_from_mapping(item) for item in items))

    def iter_contexts(self) -> Iterator[dict[str, int]]:
        """Yield every combination of values, the last variable varying fastest."""
        if not self.items:
            return
        names = [item.name for item in self.items]
        for values in itertools.product(*self.items):
            yield dict(zip(names, values))