"""URL and integer templates, and the set of tiles they describe."""

from __future__ import annotations

import ast
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from tilestitch.dezoomer import TileReference, Vec2d
from tilestitch.variables import Variables

_EXPR_RE = re.compile(r"\{\{.*?}}")
_ZERO_RE = re.compile(r":0(\d+)\Z")
_U32_MAX = 2**32 - 1
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1

_ALLOWED_NODES = (
    ast.Expression,
    ast.BinOp,
    ast.UnaryOp,
    ast.Name,
    ast.Load,
    ast.Add,
    ast.Sub,
    ast.Mult,
    ast.Div,
    ast.Mod,
    ast.UAdd,
    ast.USub,
)


class UrlTemplateError(ValueError):
    """A template could not be parsed or evaluated."""


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def _checked(value: int, expression: str) -> int:
    if not _I64_MIN <= value <= _I64_MAX:
        raise UrlTemplateError(f"Integer overflow while evaluating '{expression}'")
    return value


def _unsupported_node(tree: ast.AST) -> ast.AST | None:
    for node in ast.walk(tree):
        if isinstance(node, _ALLOWED_NODES):
            continue
        if isinstance(node, ast.Constant) and type(node.value) is int:
            continue
        return node
    return None


def _evaluate(node: ast.AST, context: Mapping[str, int], expression: str) -> int:
    if isinstance(node, ast.Constant):
        return _checked(node.value, expression)
    if isinstance(node, ast.Name):
        if node.id not in context:
            raise UrlTemplateError(
                f'Variable identifier is not bound to anything by context: "{node.id}"'
            )
        return context[node.id]
    if isinstance(node, ast.UnaryOp):
        operand = _evaluate(node.operand, context, expression)
        value = -operand if isinstance(node.op, ast.USub) else operand
        return _checked(value, expression)
    assert isinstance(node, ast.BinOp)
    left = _evaluate(node.left, context, expression)
    right = _evaluate(node.right, context, expression)
    op = node.op
    if isinstance(op, ast.Add):
        return _checked(left + right, expression)
    if isinstance(op, ast.Sub):
        return _checked(left - right, expression)
    if isinstance(op, ast.Mult):
        return _checked(left * right, expression)
    if right == 0:
        raise UrlTemplateError(f"Division by zero: {left} / {right}")
    quotient = _trunc_div(left, right)
    if isinstance(op, ast.Div):
        return _checked(quotient, expression)
    return _checked(left - right * quotient, expression)


def evaluate_int(expression: str, context: Mapping[str, int]) -> int:
    """Evaluate an integer arithmetic expression over the given variables.

    Supports integer literals, variable names, parentheses, unary signs and
    the operators + - * / %, where division truncates towards zero.
    """
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as err:
        raise UrlTemplateError(
            f"'{expression}' is not a valid expression: {err.msg}"
        ) from None
    bad = _unsupported_node(tree)
    if bad is not None:
        raise UrlTemplateError(
            f"'{expression}' is not a valid expression: "
            f"unsupported {type(bad).__name__}"
        )
    return _evaluate(tree.body, context, expression)


@dataclass(frozen=True)
class IntTemplate:
    """An expression evaluating to a non-negative 32-bit integer."""

    expression: str

    def eval(self, context: Mapping[str, int]) -> int:
        value = evaluate_int(self.expression, context)
        if not 0 <= value <= _U32_MAX:
            raise UrlTemplateError(
                "Number too large: out of range integral type conversion attempted"
            )
        return value


@dataclass(frozen=True)
class _Expression:
    template: IntTemplate
    min_width: int = 0

    def eval(self, context: Mapping[str, int]) -> str:
        return str(self.template.eval(context)).zfill(self.min_width)


_UrlPart = Union[str, _Expression]


@dataclass(frozen=True)
class UrlTemplate:
    """Text with embedded ``{{expression}}`` or ``{{expression:0width}}`` parts."""

    parts: tuple[_UrlPart, ...]

    @classmethod
    def parse(cls, template: str) -> "UrlTemplate":
        parts: list[_UrlPart] = []
        cursor = 0
        for match in _EXPR_RE.finditer(template):
            parts.append(template[cursor : match.start()])
            expression = template[match.start() + 2 : match.end() - 2]
            min_width = 0
            zeroes = _ZERO_RE.search(expression)
            if zeroes:
                expression = expression[: zeroes.start()]
                min_width = int(zeroes.group(1))
            parts.append(_Expression(IntTemplate(expression), min_width))
            cursor = match.end()
        parts.append(template[cursor:])
        return cls(tuple(parts))

    def eval(self, context: Mapping[str, int]) -> str:
        return "".join(
            part if isinstance(part, str) else part.eval(context) for part in self.parts
        )


def _template_string(data: Mapping[str, Any], key: str, default: str | None = None) -> str:
    if key not in data:
        if default is None:
            raise ValueError(f"missing field `{key}`")
        return default
    value = data[key]
    if not isinstance(value, str):
        raise UrlTemplateError(f"`{key}` must be a string, not {value!r}")
    return value


@dataclass(frozen=True)
class TileSet:
    """Tiles obtained by evaluating templates over every combination of variables."""

    variables: Variables
    url_template: UrlTemplate
    x_template: IntTemplate = field(default_factory=lambda: IntTemplate("x"))
    y_template: IntTemplate = field(default_factory=lambda: IntTemplate("y"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TileSet":
        """Build from the mapping read from a tiles description file."""
        if "variables" not in data:
            raise ValueError("missing field `variables`")
        return cls(
            variables=Variables.from_list(data["variables"]),
            url_template=UrlTemplate.parse(_template_string(data, "url_template")),
            x_template=IntTemplate(_template_string(data, "x_template", "x")),
            y_template=IntTemplate(_template_string(data, "y_template", "y")),
        )

    def __iter__(self) -> Iterator[TileReference]:
        for context in self.variables.iter_contexts():
            yield TileReference(
                url=self.url_template.eval(context),
                position=Vec2d(
                    self.x_template.eval(context), self.y_template.eval(context)
                ),
            )