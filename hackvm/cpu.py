"""Hack CPU emulator used to execute assembled programs."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from .assembler import KBD
from .errors import CPUFault

LOGGER = logging.getLogger("hackvm.cpu")

RAM_SIZE = KBD + 1
ROM_SIZE = 0x8000
WORD_MASK = 0xFFFF
DEFAULT_MAX_STEPS = 1_000_000

SP_ADDR = 0
STACK_BASE = 256

# comp bits whose result does not depend on any register
_CONSTANT_COMPS = {0b0101010, 0b0111111, 0b0111010}


def to_signed(value: int) -> int:
    value &= WORD_MASK
    return value - 0x10000 if value & 0x8000 else value


def alu(x: int, y: int, control: int) -> int:
    """Hack ALU over the six control bits ``zx nx zy ny f no``."""
    if control & 0b100000:
        x = 0
    if control & 0b010000:
        x = ~x & WORD_MASK
    if control & 0b001000:
        y = 0
    if control & 0b000100:
        y = ~y & WORD_MASK
    out = (x + y) & WORD_MASK if control & 0b000010 else x & y
    if control & 0b000001:
        out = ~out & WORD_MASK
    return out


class HackCPU:
    def __init__(self, rom: Sequence[int], *, ram_size: int = RAM_SIZE, trace: bool = False) -> None:
        if len(rom) > ROM_SIZE:
            raise CPUFault(f"program of {len(rom)} words exceeds ROM size {ROM_SIZE}")
        self.rom: List[int] = [word & WORD_MASK for word in rom]
        self.ram: List[int] = [0] * ram_size
        self.a = 0
        self.d = 0
        self.pc = 0
        self.steps = 0
        self.halted = False
        self.trace = trace

    @property
    def running(self) -> bool:
        return not self.halted

    def _check_address(self, address: int) -> int:
        if not 0 <= address < len(self.ram):
            raise CPUFault(f"memory access at 0x{address:04X} outside RAM (pc={self.pc})")
        return address

    def peek(self, address: int, *, signed: bool = True) -> int:
        value = self.ram[self._check_address(address)]
        return to_signed(value) if signed else value

    def poke(self, address: int, value: int) -> None:
        self.ram[self._check_address(address)] = value & WORD_MASK

    def load_ram(self, values: Dict[int, int]) -> None:
        for address, value in values.items():
            self.poke(address, value)

    @property
    def sp(self) -> int:
        return self.ram[SP_ADDR]

    def stack(self, base: int = STACK_BASE) -> List[int]:
        return [to_signed(v) for v in self.ram[base:self.sp]]

    def top(self) -> int:
        return self.peek(self.sp - 1)

    def step(self) -> None:
        if self.halted:
            return
        if not 0 <= self.pc < len(self.rom):
            self.halted = True
            return
        pc = self.pc
        word = self.rom[pc]
        self.steps += 1
        if not word & 0x8000:
            self.a = word
            self.pc = pc + 1
            if self.trace:
                LOGGER.debug("%05d @%d", pc, word)
            return

        a_bit = (word >> 12) & 1
        control = (word >> 6) & 0x3F
        dest = (word >> 3) & 0b111
        jump = word & 0b111

        y = self.ram[self._check_address(self.a)] if a_bit else self.a
        out = alu(self.d, y, control)
        address = self.a
        if dest & 0b001:
            self.ram[self._check_address(address)] = out
        if dest & 0b100:
            self.a = out
        if dest & 0b010:
            self.d = out

        signed = to_signed(out)
        taken = (
            (jump & 0b100 and signed < 0)
            or (jump & 0b010 and signed == 0)
            or (jump & 0b001 and signed > 0)
        )
        if self.trace:
            LOGGER.debug("%05d C a=%d c=%s d=%s j=%s out=%d A=%d D=%d", pc, a_bit,
                         format(control, "06b"), format(dest, "03b"), format(jump, "03b"),
                         signed, self.a, self.d)
        if taken:
            self.pc = address
            # "(X) @X 0;JMP": a tight loop that can never leave
            if address == pc - 1 and not a_bit and ((word >> 6) & 0x7F) in _CONSTANT_COMPS:
                self.halted = True
        else:
            self.pc = pc + 1

    def run(self, max_steps: int = DEFAULT_MAX_STEPS, until: Optional[Callable[["HackCPU"], bool]] = None) -> int:
        """Run until halted, ``until(cpu)`` holds, or ``max_steps`` elapse."""
        executed = 0
        while executed < max_steps and not self.halted:
            if until is not None and until(self):
                break
            self.step()
            executed += 1
        LOGGER.debug("ran %d steps (pc=%d, halted=%s)", executed, self.pc, self.halted)
        return executed
