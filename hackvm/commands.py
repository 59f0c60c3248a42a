"""VM command model and the single-line command parser."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Union

from .errors import InvalidOperand, InvalidSegment, MalformedCommand

SYMBOL_RE = re.compile(r"[A-Za-z_.$:][A-Za-z0-9_.$:]*")
INTEGER_RE = re.compile(r"[0-9]+")

ARITHMETIC_OPS = ("add", "sub", "and", "or")
UNARY_OPS = ("neg", "not")
COMPARISON_OPS = ("eq", "gt", "lt")


class Segment(Enum):
    LOCAL = "local"
    ARGUMENT = "argument"
    THIS = "this"
    THAT = "that"
    CONSTANT = "constant"
    STATIC = "static"
    POINTER = "pointer"
    TEMP = "temp"


@dataclass(frozen=True)
class Push:
    segment: Segment
    index: int

    def __str__(self) -> str:
        return f"push {self.segment.value} {self.index}"


@dataclass(frozen=True)
class Pop:
    segment: Segment
    index: int

    def __str__(self) -> str:
        return f"pop {self.segment.value} {self.index}"


@dataclass(frozen=True)
class Arithmetic:
    op: str

    def __str__(self) -> str:
        return self.op


@dataclass(frozen=True)
class Unary:
    op: str

    def __str__(self) -> str:
        return self.op


@dataclass(frozen=True)
class Comparison:
    op: str

    def __str__(self) -> str:
        return self.op


@dataclass(frozen=True)
class Label:
    name: str

    def __str__(self) -> str:
        return f"label {self.name}"


@dataclass(frozen=True)
class Goto:
    name: str

    def __str__(self) -> str:
        return f"goto {self.name}"


@dataclass(frozen=True)
class IfGoto:
    name: str

    def __str__(self) -> str:
        return f"if-goto {self.name}"


@dataclass(frozen=True)
class Call:
    name: str
    n_args: int

    def __str__(self) -> str:
        return f"call {self.name} {self.n_args}"


@dataclass(frozen=True)
class Function:
    name: str
    n_vars: int

    def __str__(self) -> str:
        return f"function {self.name} {self.n_vars}"


@dataclass(frozen=True)
class Return:
    def __str__(self) -> str:
        return "return"


VMCommand = Union[Push, Pop, Arithmetic, Unary, Comparison, Label, Goto, IfGoto, Call, Function, Return]

KEYWORDS = (
    "push", "pop",
    *ARITHMETIC_OPS, *UNARY_OPS, *COMPARISON_OPS,
    "label", "goto", "if-goto",
    "call", "function", "return",
)
SEGMENT_NAMES = tuple(seg.value for seg in Segment)


def parse_segment(token: str) -> Segment:
    try:
        return Segment(token)
    except ValueError:
        raise InvalidSegment(f"unknown segment '{token}'") from None


def parse_count(token: str, what: str) -> int:
    if not INTEGER_RE.fullmatch(token):
        raise InvalidOperand(f"{what} must be a non-negative integer, got '{token}'")
    return int(token, 10)


def parse_name(token: str, what: str) -> str:
    if not SYMBOL_RE.fullmatch(token):
        raise MalformedCommand(f"invalid {what} '{token}'")
    return token


def _stack_op(ctor) -> Callable[[List[str]], VMCommand]:
    def build(operands: List[str]) -> VMCommand:
        segment = parse_segment(operands[0])
        return ctor(segment, parse_count(operands[1], "segment index"))
    return build


def _flow_op(ctor) -> Callable[[List[str]], VMCommand]:
    def build(operands: List[str]) -> VMCommand:
        return ctor(parse_name(operands[0], "label name"))
    return build


def _build_call(operands: List[str]) -> VMCommand:
    return Call(parse_name(operands[0], "function name"), parse_count(operands[1], "argument count"))


def _build_function(operands: List[str]) -> VMCommand:
    return Function(parse_name(operands[0], "function name"), parse_count(operands[1], "local variable count"))


# keyword -> (operand count, builder)
_PARSERS: Dict[str, tuple] = {
    "push": (2, _stack_op(Push)),
    "pop": (2, _stack_op(Pop)),
    "label": (1, _flow_op(Label)),
    "goto": (1, _flow_op(Goto)),
    "if-goto": (1, _flow_op(IfGoto)),
    "call": (2, _build_call),
    "function": (2, _build_function),
    "return": (0, lambda _operands: Return()),
}
for _op in ARITHMETIC_OPS:
    _PARSERS[_op] = (0, lambda _operands, op=_op: Arithmetic(op))
for _op in UNARY_OPS:
    _PARSERS[_op] = (0, lambda _operands, op=_op: Unary(op))
for _op in COMPARISON_OPS:
    _PARSERS[_op] = (0, lambda _operands, op=_op: Comparison(op))


def parse_command(line: str) -> VMCommand:
    """Parse one trimmed, comment-free VM source line."""
    tokens = line.split()
    if not tokens:
        raise MalformedCommand("empty command", line=line)
    keyword, operands = tokens[0], tokens[1:]
    entry = _PARSERS.get(keyword)
    if entry is None:
        raise MalformedCommand(f"unknown command '{keyword}'", line=line)
    arity, build = entry
    if len(operands) != arity:
        raise MalformedCommand(
            f"'{keyword}' expects {arity} operand{'s' if arity != 1 else ''}, got {len(operands)}",
            line=line,
        )
    try:
        return build(operands)
    except (MalformedCommand, InvalidSegment, InvalidOperand) as exc:
        exc.locate(line=line)
        raise
