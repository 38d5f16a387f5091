"""Channel expression language: parse once, evaluate for every pixel.

Source text is ordinary infix arithmetic over the pixel coordinates ``x`` and
``y``::

    255
    sin(x / 10) * 127 + 128
    (x * y) % 256
    hypot(x - 320, y - 240)

Text goes through :func:`ast.parse` and is lowered to a small immutable tree;
anything beyond numbers, names, ``+ - * / % **``, unary signs and plain
function calls is rejected at parse time. Evaluation works on scalars or on
whole numpy coordinate grids, so one call can cover a full frame.
"""

from __future__ import annotations

import ast
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Mapping, Union

import numpy as np

from imgverb.config import ChannelExpressions
from imgverb.errors import EvaluationError, ParseError

CHANNELS = ("red", "green", "blue", "alpha")

CONSTANTS = {"pi": math.pi, "e": math.e}

# Deepest tree parse() accepts; a flat sum of n terms is n - 1 levels deep
MAX_DEPTH = 200

UNARY_FUNCTIONS: dict[str, Callable] = {
    "sin": np.sin,
    "cos": np.cos,
    "tan": np.tan,
    "asin": np.arcsin,
    "acos": np.arccos,
    "atan": np.arctan,
    "sinh": np.sinh,
    "cosh": np.cosh,
    "tanh": np.tanh,
    "exp": np.exp,
    "log": np.log,
    "log2": np.log2,
    "log10": np.log10,
    "sqrt": np.sqrt,
    "abs": np.abs,
    "floor": np.floor,
    "ceil": np.ceil,
    "trunc": np.trunc,
}

BINARY_FUNCTIONS: dict[str, Callable] = {
    "atan2": np.arctan2,
    "hypot": np.hypot,
    "pow": np.power,
    "min": np.minimum,
    "max": np.maximum,
    "mod": np.fmod,
}

_OPERATORS: dict[str, Callable] = {
    "+": np.add,
    "-": np.subtract,
    "*": np.multiply,
    "/": np.true_divide,
    "%": np.fmod,
    "**": np.power,
}

_AST_BINARY = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
    ast.Mod: "%",
    ast.Pow: "**",
}

_AST_UNARY = {ast.UAdd: "+", ast.USub: "-"}

Value = Union[float, np.ndarray]


# --- Tree ---

@dataclass(frozen=True)
class Literal:
    value: float

    def __str__(self) -> str:
        return f"{self.value:g}"


@dataclass(frozen=True)
class Variable:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: Expression

    def __str__(self) -> str:
        if isinstance(self.operand, BinaryOp):
            return f"{self.op}({self.operand})"
        return f"{self.op}{self.operand}"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Expression
    right: Expression

    def __str__(self) -> str:
        return f"{_wrap(self.left)} {self.op} {_wrap(self.right)}"


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple[Expression, ...]

    def __str__(self) -> str:
        return f"{self.name}({', '.join(str(a) for a in self.args)})"


Expression = Union[Literal, Variable, UnaryOp, BinaryOp, Call]


def _wrap(node: Expression) -> str:
    return f"({node})" if isinstance(node, BinaryOp) else str(node)


@dataclass(frozen=True)
class Program:
    """A parsed channel expression together with the text it came from."""
    source: str
    tree: Expression

    def evaluate(self, bindings: Mapping[str, object]) -> Value:
        return evaluate(self.tree, bindings)


# --- Parsing ---

def parse(text: str) -> Expression:
    """Parse expression source text into an immutable tree.

    Raises:
        ParseError: the text is empty or is not valid syntax. Also raised
            for syntax outside the expression language and for trees
            nested deeper than ``MAX_DEPTH``.
    """
    if not isinstance(text, str) or not text.strip():
        raise ParseError(f"empty expression {text!r}", text=str(text))
    source = text.strip()
    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as e:
        raise ParseError(f"cannot parse expression '{source}': {e.msg}", text=source) from e
    except (RecursionError, MemoryError) as e:
        raise ParseError(f"expression too deeply nested: '{_abbreviate(source)}'", text=source) from e
    return _lower(tree.body, source, 0)


def _abbreviate(source: str, limit: int = 60) -> str:
    return source if len(source) <= limit else source[:limit] + "..."


def _lower(node: ast.AST, source: str, depth: int) -> Expression:
    if depth > MAX_DEPTH:
        raise ParseError(
            f"expression too deeply nested (more than {MAX_DEPTH} levels): '{_abbreviate(source)}'",
            text=source,
        )

    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        try:
            return Literal(float(node.value))
        except OverflowError as e:
            raise ParseError(f"literal too large in expression '{source}'", text=source) from e

    if isinstance(node, ast.Name):
        return Variable(node.id)

    if isinstance(node, ast.UnaryOp) and type(node.op) in _AST_UNARY:
        return UnaryOp(_AST_UNARY[type(node.op)], _lower(node.operand, source, depth + 1))

    if isinstance(node, ast.BinOp) and type(node.op) in _AST_BINARY:
        return BinaryOp(
            _AST_BINARY[type(node.op)],
            _lower(node.left, source, depth + 1),
            _lower(node.right, source, depth + 1),
        )

    if isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and not node.keywords:
        return Call(node.func.id, tuple(_lower(arg, source, depth + 1) for arg in node.args))

    fragment = ast.get_source_segment(source, node) or type(node).__name__
    raise ParseError(f"unsupported syntax '{fragment}' in expression '{source}'", text=source)


def parse_channels(expressions: ChannelExpressions) -> dict[str, Program]:
    """Parse the four channel expressions concurrently.

    Returns programs keyed by channel name in red, green, blue, alpha order.
    The first channel (in that order) that fails is reported.
    """
    sources = expressions.as_dict()
    with ThreadPoolExecutor(max_workers=len(CHANNELS)) as pool:
        futures = {channel: pool.submit(parse, sources[channel]) for channel in CHANNELS}

    programs = {}
    for channel in CHANNELS:
        try:
            programs[channel] = Program(sources[channel], futures[channel].result())
        except ParseError as err:
            raise ParseError(f"{channel} channel: {err}", text=err.text, channel=channel) from err
    return programs


# --- Evaluation ---

def evaluate(expression: Expression, bindings: Mapping[str, object]) -> Value:
    """Evaluate a tree against variable bindings.

    Bindings may be plain numbers or numpy arrays (broadcast together). A
    scalar result comes back as a float, an array result as float64 array.
    Domain errors (``sqrt(-1)``, ``log(0)``) produce nan/inf rather than
    raising; narrowing maps those to 0.

    Raises:
        EvaluationError: undefined variable, unsupported function, wrong
            argument count, or a zero divisor. Also raised for a tree too
            deep to walk, which parse() never produces.
    """
    try:
        with np.errstate(all="ignore"):
            result = _eval(expression, bindings)
    except RecursionError as e:
        raise EvaluationError("expression too deeply nested", type(expression).__name__) from e
    if np.ndim(result) == 0:
        return float(result)
    return result


def _eval(node: Expression, bindings: Mapping[str, object]) -> np.ndarray:
    if isinstance(node, Literal):
        return np.float64(node.value)

    if isinstance(node, Variable):
        if node.name in bindings:
            return np.asarray(bindings[node.name], dtype=np.float64)
        if node.name in CONSTANTS:
            return np.float64(CONSTANTS[node.name])
        raise EvaluationError(f"undefined variable '{node.name}'", str(node))

    if isinstance(node, UnaryOp):
        operand = _eval(node.operand, bindings)
        return np.negative(operand) if node.op == "-" else operand

    if isinstance(node, BinaryOp):
        left = _eval(node.left, bindings)
        right = _eval(node.right, bindings)
        if node.op in ("/", "%"):
            _check_divisor(node, left, right)
        return _OPERATORS[node.op](left, right)

    if isinstance(node, Call):
        return _call(node, bindings)

    raise EvaluationError(f"unknown node type {type(node).__name__}", repr(node))


def _call(node: Call, bindings: Mapping[str, object]) -> np.ndarray:
    if node.name in UNARY_FUNCTIONS:
        func, arity = UNARY_FUNCTIONS[node.name], 1
    elif node.name in BINARY_FUNCTIONS:
        func, arity = BINARY_FUNCTIONS[node.name], 2
    else:
        raise EvaluationError(f"unsupported function '{node.name}'", str(node))

    if len(node.args) != arity:
        raise EvaluationError(
            f"{node.name}() takes {arity} argument(s), got {len(node.args)}", str(node)
        )

    args = [_eval(arg, bindings) for arg in node.args]
    if node.name == "mod":
        _check_divisor(node, *args)
    return func(*args)


def _check_divisor(node: Expression, left: np.ndarray, right: np.ndarray) -> None:
    zero = np.asarray(right) == 0
    if not np.any(zero):
        return
    shape = np.broadcast_shapes(np.shape(left), np.shape(right))
    index = None
    if shape:
        first = np.argwhere(np.broadcast_to(zero, shape))[0]
        index = tuple(int(i) for i in first)
    raise EvaluationError("division by zero", str(node), index=index)
