from __future__ import annotations

import pytest

from hackvm.commands import (
    Arithmetic,
    Call,
    Comparison,
    Function,
    Goto,
    IfGoto,
    Label,
    Pop,
    Push,
    Return,
    Segment,
    Unary,
    parse_command,
)
from hackvm.errors import InvalidOperand, InvalidSegment, MalformedCommand


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("push constant 7", Push(Segment.CONSTANT, 7)),
        ("pop local 3", Pop(Segment.LOCAL, 3)),
        ("push pointer 1", Push(Segment.POINTER, 1)),
        ("pop static 12", Pop(Segment.STATIC, 12)),
        ("add", Arithmetic("add")),
        ("or", Arithmetic("or")),
        ("neg", Unary("neg")),
        ("not", Unary("not")),
        ("eq", Comparison("eq")),
        ("lt", Comparison("lt")),
        ("label LOOP_START", Label("LOOP_START")),
        ("goto Main.end$1", Goto("Main.end$1")),
        ("if-goto IF_TRUE0", IfGoto("IF_TRUE0")),
        ("call Math.multiply 2", Call("Math.multiply", 2)),
        ("function Main.main 0", Function("Main.main", 0)),
        ("return", Return()),
    ],
)
def test_parse_command(line: str, expected) -> None:
    assert parse_command(line) == expected


def test_parse_tolerates_extra_whitespace() -> None:
    assert parse_command("push   argument\t2") == Push(Segment.ARGUMENT, 2)


def test_canonical_text_is_reproduced() -> None:
    for line in ("push that 5", "call Foo.bar 3", "if-goto X", "return", "gt"):
        assert str(parse_command(line)) == line


@pytest.mark.parametrize(
    ("line", "error"),
    [
        ("", MalformedCommand),
        ("jump LOOP", MalformedCommand),
        ("Push constant 1", MalformedCommand),
        ("push constant", MalformedCommand),
        ("push constant 1 2", MalformedCommand),
        ("add 1", MalformedCommand),
        ("return 0", MalformedCommand),
        ("call Foo.bar", MalformedCommand),
        ("label 1abc", MalformedCommand),
        ("push heap 1", InvalidSegment),
        ("pop Local 0", InvalidSegment),
        ("push local x", InvalidOperand),
        ("push local -1", InvalidOperand),
        ("call Foo.bar 1.5", InvalidOperand),
        ("function Foo.bar two", InvalidOperand),
    ],
)
def test_parse_errors(line: str, error) -> None:
    with pytest.raises(error):
        parse_command(line)


def test_parse_error_carries_line() -> None:
    with pytest.raises(InvalidOperand) as excinfo:
        parse_command("push local x")
    assert excinfo.value.line == "push local x"
    assert "segment index" in str(excinfo.value)


def test_commands_are_immutable() -> None:
    cmd = parse_command("push local 1")
    with pytest.raises(AttributeError):
        cmd.index = 2  # type: ignore[misc]
