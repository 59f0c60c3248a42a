"""Exception types shared by the translator, assembler and emulator."""

from __future__ import annotations

from typing import Optional


class VMTranslationError(Exception):
    """Base class for fatal VM translation errors.

    ``unit``, ``lineno`` and ``line`` are filled in by the translation driver
    as the error propagates so the message points at the offending source.
    """

    def __init__(
        self,
        message: str,
        *,
        unit: Optional[str] = None,
        lineno: Optional[int] = None,
        line: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.unit = unit
        self.lineno = lineno
        self.line = line

    def locate(
        self,
        *,
        unit: Optional[str] = None,
        lineno: Optional[int] = None,
        line: Optional[str] = None,
    ) -> "VMTranslationError":
        if self.unit is None:
            self.unit = unit
        if self.lineno is None:
            self.lineno = lineno
        if self.line is None:
            self.line = line
        return self

    def __str__(self) -> str:
        where = self.unit or "<input>"
        if self.lineno is not None:
            where = f"{where}:{self.lineno}"
        text = f"{where}: {self.message}"
        if self.line:
            text += f" (in '{self.line}')"
        return text


class MalformedCommand(VMTranslationError):
    pass


class InvalidSegment(VMTranslationError):
    pass


class InvalidOperand(VMTranslationError):
    pass


class UnsupportedOperation(VMTranslationError):
    pass


class DuplicateLabel(VMTranslationError):
    pass


class InvalidUnitName(VMTranslationError):
    pass


class AssemblerError(ValueError):
    def __init__(self, message: str, *, lineno: Optional[int] = None, line: Optional[str] = None) -> None:
        self.message = message
        self.lineno = lineno
        self.line = line
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)


class CPUFault(RuntimeError):
    pass
