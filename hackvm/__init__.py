"""
hackvm: Hack VM translator, assembler and CPU emulator.

The translator lowers stack-machine VM code (``.vm``) to Hack symbolic
assembly (``.asm``); the assembler encodes that into 16-bit words
(``.hack``); the emulator runs the words.  Use ``python -m hackvm`` or the
``hackvm`` console script.
"""

from __future__ import annotations

from .assembler import AssembledProgram, assemble
from .commands import Segment, parse_command
from .context import TranslationContext
from .cpu import HackCPU
from .errors import (
    AssemblerError,
    CPUFault,
    DuplicateLabel,
    InvalidOperand,
    InvalidSegment,
    InvalidUnitName,
    MalformedCommand,
    UnsupportedOperation,
    VMTranslationError,
)
from .source import SourceUnit, discover_units
from .translator import TranslationResult, TranslatorOptions, translate_program, translate_text, translate_unit

__all__ = [
    "AssembledProgram",
    "AssemblerError",
    "CPUFault",
    "DuplicateLabel",
    "HackCPU",
    "InvalidOperand",
    "InvalidSegment",
    "InvalidUnitName",
    "MalformedCommand",
    "Segment",
    "SourceUnit",
    "TranslationContext",
    "TranslationResult",
    "TranslatorOptions",
    "UnsupportedOperation",
    "VMTranslationError",
    "assemble",
    "discover_units",
    "parse_command",
    "translate_program",
    "translate_text",
    "translate_unit",
]
__version__ = "0.1.0"
