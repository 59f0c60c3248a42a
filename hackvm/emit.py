"""Stack primitives shared by every emitter.

Every block that touches the stack is built from ``push_d``/``pop_d`` (or the
in-place top-of-stack variants below) so each VM command leaves SP exactly
one word above or below where it started.
"""

from __future__ import annotations

from typing import List

from .errors import UnsupportedOperation
from .instructions import AInstruction, CInstruction, Instruction, asm
from .segments import ADDR_SCRATCH, Address, AddressingMode

PUSH_D = asm("@SP", "A=M", "M=D", "@SP", "M=M+1")
POP_D = asm("@SP", "AM=M-1", "D=M")
# leave A pointing at the (popped) top cell; SP is one below
DEC_SP_TO_TOP = asm("@SP", "AM=M-1")
INC_SP = asm("@SP", "M=M+1")
STORE_VIA_SCRATCH = asm(f"@{ADDR_SCRATCH}", "A=M", "M=D")


def push_d() -> List[Instruction]:
    return list(PUSH_D)


def pop_d() -> List[Instruction]:
    return list(POP_D)


def load_d(address: Address) -> List[Instruction]:
    """D = value at ``address``."""
    if address.mode is AddressingMode.IMMEDIATE:
        return [AInstruction(address.symbol), CInstruction("D", "A")]
    if address.mode is AddressingMode.DIRECT:
        return [AInstruction(address.symbol), CInstruction("D", "M")]
    return [
        AInstruction(str(address.offset)),
        CInstruction("D", "A"),
        AInstruction(address.symbol),
        CInstruction("A", "D+M"),
        CInstruction("D", "M"),
    ]


def push_value(address: Address) -> List[Instruction]:
    return load_d(address) + push_d()


def pop_to(address: Address) -> List[Instruction]:
    if address.mode is AddressingMode.IMMEDIATE:
        raise UnsupportedOperation("cannot pop into the constant segment")
    if address.mode is AddressingMode.DIRECT:
        return pop_d() + [AInstruction(address.symbol), CInstruction("M", "D")]
    # the target address is cached before SP moves
    cache = [
        AInstruction(str(address.offset)),
        CInstruction("D", "A"),
        AInstruction(address.symbol),
        CInstruction("D", "D+M"),
        AInstruction(ADDR_SCRATCH),
        CInstruction("M", "D"),
    ]
    return cache + pop_d() + list(STORE_VIA_SCRATCH)


def push_register(name: str) -> List[Instruction]:
    """Push the contents of a named register (not memory through it)."""
    return [AInstruction(name), CInstruction("D", "M")] + push_d()


def push_address_of(symbol: str) -> List[Instruction]:
    return [AInstruction(symbol), CInstruction("D", "A")] + push_d()


def rewrite_top(*body: Instruction) -> List[Instruction]:
    """Pop the top cell and push it back after ``body`` updates it in place.

    ``body`` runs with A addressing the top cell.
    """
    return list(DEC_SP_TO_TOP) + list(body) + list(INC_SP)
