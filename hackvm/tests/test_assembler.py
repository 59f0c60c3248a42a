import textwrap

import pytest

from hackvm.assembler import PREDEFINED_SYMBOLS, VARIABLE_BASE, assemble, parse_hack_text, to_hack_text
from hackvm.errors import AssemblerError
from hackvm.instructions import AInstruction, CInstruction, LabelDecl, parse_instruction


@pytest.mark.parametrize(
    ("line", "bits"),
    [
        ("@2", "0000000000000010"),
        ("D=A", "1110110000010000"),
        ("M=A", "1110110000001000"),
        ("MD=M+1;JGE", "1111110111011011"),
        ("0;JMP", "1110101010000111"),
        ("0;JEQ", "1110101010000010"),
        ("AM=M-1", "1111110010101000"),
        ("D;JNE", "1110001100000101"),
        ("M=D|M", "1111010101001000"),
        ("M=!M", "1111110001001000"),
    ],
)
def test_instruction_encoding(line, bits):
    assert to_hack_text(assemble([line]).words) == bits + "\n"


def test_labels_bind_to_next_instruction():
    source = textwrap.dedent(
        """
        // loop forever
        @0
        (LOOP)
        D=D+1
        @LOOP
        0;JMP
        (END)
        """
    ).splitlines()
    program = assemble(source)
    assert program.symbols["LOOP"] == 1
    assert program.symbols["END"] == 4
    assert program.words[2] == 1


def test_variables_allocated_from_16():
    program = assemble(["@i", "@sum", "@i", "@R3", "@SCREEN", "@KBD"])
    assert program.words == [VARIABLE_BASE, VARIABLE_BASE + 1, VARIABLE_BASE, 3, 16384, 24576]
    assert program.variables == {"i": 16, "sum": 17}


def test_forward_label_is_not_a_variable():
    program = assemble(["@END", "0;JMP", "(END)"])
    assert program.words[0] == 2
    assert program.variables == {}


def test_predefined_symbols():
    assert PREDEFINED_SYMBOLS["SP"] == 0
    assert PREDEFINED_SYMBOLS["THAT"] == 4
    assert PREDEFINED_SYMBOLS["R15"] == 15


def test_whitespace_and_comments_are_ignored():
    program = assemble(["  D = M ; JGT   // trailing", "", "// nothing"])
    assert program.words == [int("1111110000010001", 2)]


def test_duplicate_label_raises_clear_error():
    with pytest.raises(AssemblerError) as excinfo:
        assemble(["(X)", "@X", "(X)"])
    assert "Duplicate label: X" in str(excinfo.value)
    assert excinfo.value.lineno == 3


@pytest.mark.parametrize("line", ["D=Q", "X=D", "D;JXX", "@32768", "(unterminated", "@9abc", "D", "=D"])
def test_invalid_instructions(line):
    with pytest.raises(AssemblerError) as excinfo:
        assemble(["@0", line])
    assert str(excinfo.value).startswith("line 2: ")
    assert excinfo.value.line == line


def test_parse_instruction_records():
    assert parse_instruction("@007") == AInstruction("7")
    assert parse_instruction("AM=M-1") == CInstruction("AM", "M-1")
    assert parse_instruction("(Foo.bar$x)") == LabelDecl("Foo.bar$x")


def test_hack_text_round_trip():
    words = [0, 1, 0x7FFF, 0xFC10]
    assert parse_hack_text(to_hack_text(words)) == words


def test_parse_hack_text_rejects_garbage():
    with pytest.raises(AssemblerError, match="line 2"):
        parse_hack_text("0000000000000000\n0101\n")
