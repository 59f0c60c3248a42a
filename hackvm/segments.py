"""Memory segment addressing for the Hack VM mapping."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .commands import Segment
from .errors import InvalidOperand

SP = "SP"
LCL = "LCL"
ARG = "ARG"
THIS = "THIS"
THAT = "THAT"

STACK_BASE = 256
TEMP_BASE = 5
TEMP_SIZE = 8
MAX_CONSTANT = 32767

# R13 caches pop destinations; R14/R15 hold frameEnd/retAddr during return.
ADDR_SCRATCH = "R13"
FRAME_SCRATCH = "R14"
RETURN_SCRATCH = "R15"

BASE_REGISTERS = {
    Segment.LOCAL: LCL,
    Segment.ARGUMENT: ARG,
    Segment.THIS: THIS,
    Segment.THAT: THAT,
}
POINTER_REGISTERS = (THIS, THAT)


class AddressingMode(Enum):
    INDIRECT = "indirect"    # *base + offset
    DIRECT = "direct"        # a named or fixed cell
    IMMEDIATE = "immediate"  # the value itself


@dataclass(frozen=True)
class Address:
    mode: AddressingMode
    symbol: str
    offset: int = 0


def resolve(segment: Segment, index: int, unit: str) -> Address:
    """Return the effective address of ``segment[index]`` within ``unit``."""
    if index > MAX_CONSTANT:
        raise InvalidOperand(f"{segment.value} index {index} out of range 0..{MAX_CONSTANT}")
    base = BASE_REGISTERS.get(segment)
    if base is not None:
        return Address(AddressingMode.INDIRECT, base, index)
    if segment is Segment.TEMP:
        if index >= TEMP_SIZE:
            raise InvalidOperand(f"temp index {index} out of range 0..{TEMP_SIZE - 1}")
        return Address(AddressingMode.DIRECT, str(TEMP_BASE + index))
    if segment is Segment.POINTER:
        if index >= len(POINTER_REGISTERS):
            raise InvalidOperand(f"pointer index {index} must be 0 or 1")
        return Address(AddressingMode.DIRECT, POINTER_REGISTERS[index])
    if segment is Segment.STATIC:
        if not unit:
            raise InvalidOperand("static segment used outside a named source unit")
        return Address(AddressingMode.DIRECT, f"{unit}.{index}")
    return Address(AddressingMode.IMMEDIATE, str(index))
