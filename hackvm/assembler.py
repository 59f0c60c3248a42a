"""Two-pass Hack assembler: symbolic assembly -> 16-bit instruction words."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from .errors import AssemblerError
from .instructions import (
    COMP_CODES,
    JUMP_CODES,
    AInstruction,
    CInstruction,
    Instruction,
    LabelDecl,
    dest_bits,
    parse_instruction,
)

LOGGER = logging.getLogger("hackvm.assembler")

VARIABLE_BASE = 16
SCREEN = 0x4000
KBD = 0x6000
ROM_SIZE = 0x8000

PREDEFINED_SYMBOLS: Dict[str, int] = {f"R{n}": n for n in range(16)}
PREDEFINED_SYMBOLS.update(
    {
        "SP": 0,
        "LCL": 1,
        "ARG": 2,
        "THIS": 3,
        "THAT": 4,
        "SCREEN": SCREEN,
        "KBD": KBD,
    }
)

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class AssembledProgram:
    words: List[int]
    symbols: Dict[str, int] = field(default_factory=dict)
    variables: Dict[str, int] = field(default_factory=dict)

    def to_hack(self) -> str:
        return to_hack_text(self.words)


def parse_source(lines: Iterable[str]) -> List[Tuple[int, Instruction]]:
    program: List[Tuple[int, Instruction]] = []
    for lineno, raw in enumerate(lines, start=1):
        text = _WHITESPACE_RE.sub("", raw.split("//", 1)[0])
        if not text:
            continue
        try:
            program.append((lineno, parse_instruction(text)))
        except AssemblerError as exc:
            raise AssemblerError(exc.message, lineno=lineno, line=raw.rstrip("\n")) from None
    return program


def encode_c(instr: CInstruction) -> int:
    return (
        0b111 << 13
        | COMP_CODES[instr.comp] << 6
        | (dest_bits(instr.dest) if instr.dest else 0) << 3
        | JUMP_CODES[instr.jump]
    )


def assemble(lines: Iterable[str]) -> AssembledProgram:
    program = parse_source(lines)

    # pass 1: labels bind to the address of the next instruction
    symbols = dict(PREDEFINED_SYMBOLS)
    labels: Dict[str, int] = {}
    pc = 0
    for lineno, instr in program:
        if isinstance(instr, LabelDecl):
            if instr.name in labels or instr.name in PREDEFINED_SYMBOLS:
                raise AssemblerError(f"Duplicate label: {instr.name}", lineno=lineno)
            labels[instr.name] = pc
        else:
            pc += 1
    if pc > ROM_SIZE:
        raise AssemblerError(f"program of {pc} instructions does not fit in ROM ({ROM_SIZE} words)")
    symbols.update(labels)

    # pass 2: encode, allocating unknown symbols as variables
    words: List[int] = []
    variables: Dict[str, int] = {}
    next_var = VARIABLE_BASE
    for lineno, instr in program:
        if isinstance(instr, LabelDecl):
            continue
        if isinstance(instr, AInstruction):
            if instr.is_literal:
                words.append(int(instr.symbol))
                continue
            address = symbols.get(instr.symbol)
            if address is None:
                address = next_var
                if address >= SCREEN:
                    raise AssemblerError(f"out of variable space allocating '{instr.symbol}'", lineno=lineno)
                symbols[instr.symbol] = variables[instr.symbol] = address
                LOGGER.debug("variable %s -> %d", instr.symbol, address)
                next_var += 1
            words.append(address)
        else:
            words.append(encode_c(instr))
    LOGGER.debug("assembled %d words, %d labels, %d variables", len(words), len(labels), len(variables))
    return AssembledProgram(words, symbols, variables)


def to_hack_text(words: Iterable[int]) -> str:
    return "".join(f"{word & 0xFFFF:016b}\n" for word in words)


def parse_hack_text(text: str) -> List[int]:
    words: List[int] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        if len(line) != 16 or set(line) - {"0", "1"}:
            raise AssemblerError(f"not a 16-bit binary word: '{line}'", lineno=lineno)
        words.append(int(line, 2))
    return words
