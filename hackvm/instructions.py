"""Symbolic assembly records and the Hack instruction tables.

The emitters never build assembly by string concatenation; they build
``AInstruction``/``CInstruction``/``LabelDecl`` records from fixed templates
that are checked against these tables, so every rendered line is one the
assembler accepts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple, Union

from .errors import AssemblerError

SYMBOL_RE = re.compile(r"[A-Za-z_.$:][A-Za-z0-9_.$:]*")
MAX_LITERAL = 0x7FFF

# comp mnemonic -> a + c1..c6
COMP_CODES = {
    "0": 0b0101010,
    "1": 0b0111111,
    "-1": 0b0111010,
    "D": 0b0001100,
    "A": 0b0110000,
    "!D": 0b0001101,
    "!A": 0b0110001,
    "-D": 0b0001111,
    "-A": 0b0110011,
    "D+1": 0b0011111,
    "A+1": 0b0110111,
    "D-1": 0b0001110,
    "A-1": 0b0110010,
    "D+A": 0b0000010,
    "D-A": 0b0010011,
    "A-D": 0b0000111,
    "D&A": 0b0000000,
    "D|A": 0b0010101,
    "M": 0b1110000,
    "!M": 0b1110001,
    "-M": 0b1110011,
    "M+1": 0b1110111,
    "M-1": 0b1110010,
    "D+M": 0b1000010,
    "D-M": 0b1010011,
    "M-D": 0b1000111,
    "D&M": 0b1000000,
    "D|M": 0b1010101,
}

JUMP_CODES = {
    "": 0b000,
    "JGT": 0b001,
    "JEQ": 0b010,
    "JGE": 0b011,
    "JLT": 0b100,
    "JNE": 0b101,
    "JLE": 0b110,
    "JMP": 0b111,
}


def dest_bits(dest: str) -> int:
    """Encode a destination such as ``AM`` as the d1 d2 d3 bits."""
    if len(set(dest)) != len(dest) or any(ch not in "ADM" for ch in dest):
        raise AssemblerError(f"invalid destination '{dest}'")
    return (4 if "A" in dest else 0) | (2 if "D" in dest else 0) | (1 if "M" in dest else 0)


@dataclass(frozen=True)
class AInstruction:
    symbol: str

    @property
    def is_literal(self) -> bool:
        return self.symbol.isdigit()

    def render(self) -> str:
        return f"@{self.symbol}"


@dataclass(frozen=True)
class CInstruction:
    dest: str
    comp: str
    jump: str = ""

    def render(self) -> str:
        text = f"{self.dest}={self.comp}" if self.dest else self.comp
        if self.jump:
            text += f";{self.jump}"
        return text


@dataclass(frozen=True)
class LabelDecl:
    name: str

    def render(self) -> str:
        return f"({self.name})"


@dataclass(frozen=True)
class Comment:
    text: str

    def render(self) -> str:
        return f"// {self.text}"


Instruction = Union[AInstruction, CInstruction, LabelDecl, Comment]


def _check_symbol(name: str) -> str:
    if not SYMBOL_RE.fullmatch(name):
        raise AssemblerError(f"invalid symbol '{name}'")
    return name


def parse_instruction(text: str) -> Instruction:
    """Parse one comment-free, whitespace-free line of symbolic assembly."""
    if not text:
        raise AssemblerError("empty instruction")
    if text.startswith("@"):
        value = text[1:]
        if value.isdigit():
            if int(value) > MAX_LITERAL:
                raise AssemblerError(f"literal out of range 0..{MAX_LITERAL}: {value}")
            return AInstruction(str(int(value)))
        return AInstruction(_check_symbol(value))
    if text.startswith("("):
        if not text.endswith(")"):
            raise AssemblerError(f"unterminated label declaration '{text}'")
        return LabelDecl(_check_symbol(text[1:-1]))
    dest, comp, jump = "", text, ""
    if "=" in comp:
        dest, comp = comp.split("=", 1)
        if not dest:
            raise AssemblerError(f"missing destination in '{text}'")
        dest_bits(dest)
    if ";" in comp:
        comp, jump = comp.split(";", 1)
        if not jump or jump not in JUMP_CODES:
            raise AssemblerError(f"invalid jump '{jump}'")
    if comp not in COMP_CODES:
        raise AssemblerError(f"invalid computation '{comp}'")
    if not dest and not jump:
        raise AssemblerError(f"instruction '{text}' has no effect")
    return CInstruction(dest, comp, jump)


def asm(*lines: str) -> Tuple[Instruction, ...]:
    """Build a fixed instruction template from literal assembly lines."""
    return tuple(parse_instruction(line) for line in lines)
