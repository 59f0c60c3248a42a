from __future__ import annotations

import pytest

from hackvm.instructions import LabelDecl
from hackvm.translator import translate_text


@pytest.mark.parametrize(
    ("op", "expected"),
    [
        ("add", 88),
        ("sub", 26),
        ("and", 25),
        ("or", 63),
    ],
)
def test_binary_ops(run_vm, op: str, expected: int) -> None:
    run = run_vm(
        f"""
        push constant 57
        push constant 31
        {op}
        """
    )
    assert run.stack == [expected]


def test_sub_goes_negative(run_vm) -> None:
    run = run_vm("push constant 3\npush constant 10\nsub")
    assert run.stack == [-7]


def test_add_wraps_at_16_bits(run_vm) -> None:
    run = run_vm("push constant 32767\npush constant 1\nadd")
    assert run.stack == [-32768]


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("push constant 5\nneg", -5),
        ("push constant 0\nneg", 0),
        ("push constant 0\nnot", -1),
        ("push constant 21\nnot", -22),
    ],
)
def test_unary_ops(run_vm, source: str, expected: int) -> None:
    run = run_vm(source)
    assert run.stack == [expected]
    assert run.cpu.sp == 257


@pytest.mark.parametrize(
    ("a", "b", "op", "expected"),
    [
        (5, 5, "eq", -1),
        (5, 6, "eq", 0),
        (7, 3, "gt", -1),
        (3, 7, "gt", 0),
        (5, 5, "gt", 0),
        (3, 7, "lt", -1),
        (7, 3, "lt", 0),
        (5, 5, "lt", 0),
    ],
)
def test_comparisons(run_vm, a: int, b: int, op: str, expected: int) -> None:
    run = run_vm(f"push constant {a}\npush constant {b}\n{op}")
    assert run.stack == [expected]


def test_comparisons_are_signed(run_vm) -> None:
    run = run_vm(
        """
        push constant 2
        neg
        push constant 1
        lt
        push constant 1
        push constant 3
        neg
        gt
        """
    )
    assert run.stack == [-1, -1]


def test_comparison_leaves_other_stack_entries(run_vm) -> None:
    run = run_vm(
        """
        push constant 100
        push constant 4
        push constant 4
        eq
        push constant 1
        add
        """
    )
    assert run.stack == [100, 0]


def test_comparison_labels_are_unique() -> None:
    result = translate_text("push constant 1\npush constant 2\neq\npush constant 3\ngt\npush constant 4\nlt")
    names = [instr.name for instr in result.instructions if isinstance(instr, LabelDecl)]
    assert [name for name in names if name.startswith(("EQUAL", "END"))] == [
        "EQUAL0", "END0", "EQUAL1", "END1", "EQUAL2", "END2",
    ]
    assert len(names) == len(set(names)) == 15
    assert result.context.counter == 3


def test_comparison_branches_on_difference_of_same_sign_operands() -> None:
    lines = translate_text("push constant 1\npush constant 2\ngt").lines()
    assert lines[lines.index("(SAMESIGN0)") + 1 : lines.index("(TEST0)")] == ["@SP", "A=M-1", "D=M", "@R13", "D=D-M"]
    assert lines[lines.index("@EQUAL0") + 1] == "D;JGT"
    assert lines[lines.index("@END0") + 1] == "0;JEQ"


@pytest.mark.parametrize(
    ("a", "b", "op", "expected"),
    [
        (-20000, 20000, "gt", 0),
        (-20000, 20000, "lt", -1),
        (20000, -20000, "gt", -1),
        (20000, -20000, "lt", 0),
        (32767, -32767, "gt", -1),
        (-32767, 32767, "lt", -1),
        (-32768, 1, "lt", -1),
        (-32768, 1, "gt", 0),
        (-32768, 1, "eq", 0),
        (0, -32768, "gt", -1),
        (-32768, -32768, "eq", -1),
        (-1, -2, "gt", -1),
    ],
)
def test_comparisons_do_not_overflow(run_vm, a: int, b: int, op: str, expected: int) -> None:
    run = run_vm(f"{_push(a)}\n{_push(b)}\n{op}")
    assert run.stack == [expected]
    assert run.cpu.sp == 257


def _push(value: int) -> str:
    """VM source leaving ``value`` (any 16-bit signed number) on the stack."""
    if value >= 0:
        return f"push constant {value}"
    if value == -32768:
        return "push constant 32767\nnot"
    return f"push constant {-value}\nneg"
