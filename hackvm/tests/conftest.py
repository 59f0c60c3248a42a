"""
Pytest fixtures for hackvm tests.

``run_vm`` translates VM source, assembles it and executes the result on the
CPU emulator with the segment base registers preset the way the course test
scripts do it.
"""
import textwrap
from typing import Dict, Optional, Sequence

import pytest

from hackvm.assembler import assemble
from hackvm.cpu import HackCPU
from hackvm.source import SourceUnit
from hackvm.translator import translate_program

SP, LCL, ARG, THIS, THAT = 0, 1, 2, 3, 4

INITIAL_RAM = {SP: 256, LCL: 300, ARG: 400, THIS: 3000, THAT: 3010}


class VMRun:
    def __init__(self, cpu: HackCPU, program, result):
        self.cpu = cpu
        self.program = program
        self.result = result

    @property
    def stack(self):
        return self.cpu.stack()

    def static_address(self, unit: str, index: int) -> int:
        return self.program.symbols[f"{unit}.{index}"]


def run_units(
    units: Sequence[SourceUnit],
    *,
    bootstrap: bool = False,
    ram: Optional[Dict[int, int]] = None,
    max_steps: int = 200_000,
    **kwargs,
) -> VMRun:
    result = translate_program(units, bootstrap=bootstrap, **kwargs)
    program = assemble(result.lines())
    cpu = HackCPU(program.words)
    if not bootstrap:
        cpu.load_ram(INITIAL_RAM)
    if ram:
        cpu.load_ram(ram)
    cpu.run(max_steps)
    assert cpu.halted, "program did not halt"
    return VMRun(cpu, program, result)


def run_source(source: str, *, name: str = "Main", **kwargs) -> VMRun:
    unit = SourceUnit.from_text(name, textwrap.dedent(source))
    return run_units([unit], **kwargs)


@pytest.fixture
def run_vm():
    return run_source


@pytest.fixture
def run_vm_units():
    return run_units
