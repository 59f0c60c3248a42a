"""Reading VM source units from text, files and directories."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple

LOGGER = logging.getLogger("hackvm.source")

VM_SUFFIX = ".vm"
ASM_SUFFIX = ".asm"
HACK_SUFFIX = ".hack"
COMMENT = "//"


@dataclass(frozen=True)
class SourceLine:
    lineno: int
    text: str


@dataclass(frozen=True)
class SourceUnit:
    """A named sequence of VM command lines (one ``.vm`` file)."""

    name: str
    lines: Tuple[SourceLine, ...]

    @classmethod
    def from_text(cls, name: str, text: str) -> "SourceUnit":
        return cls(name, tuple(read_source_lines(text.splitlines())))

    @classmethod
    def from_lines(cls, name: str, lines: Iterable[str]) -> "SourceUnit":
        return cls(name, tuple(read_source_lines(lines)))


def strip_comment(line: str) -> str:
    return line.split(COMMENT, 1)[0].strip()


def read_source_lines(lines: Iterable[str]) -> List[SourceLine]:
    result: List[SourceLine] = []
    for lineno, raw in enumerate(lines, start=1):
        text = strip_comment(raw)
        if text:
            result.append(SourceLine(lineno, text))
    return result


def load_unit(path: Path) -> SourceUnit:
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        unit = SourceUnit.from_lines(path.stem, fh)
    LOGGER.debug("loaded %s (%d commands)", path, len(unit.lines))
    return unit


def discover_units(path: Path) -> List[SourceUnit]:
    """Load a single ``.vm`` file, or every ``.vm`` file in a directory.

    Directory entries are sorted by file name so translation output does not
    depend on filesystem enumeration order.
    """
    path = Path(path)
    if path.is_dir():
        files = sorted(p for p in path.iterdir() if p.suffix == VM_SUFFIX and p.is_file())
        if not files:
            raise FileNotFoundError(f"no {VM_SUFFIX} files in {path}")
        return [load_unit(p) for p in files]
    if not path.exists():
        raise FileNotFoundError(f"source not found: {path}")
    if path.suffix != VM_SUFFIX:
        raise ValueError(f"expected a {VM_SUFFIX} file or a directory, got {path}")
    return [load_unit(path)]


def default_output_path(source: Path, suffix: str = ASM_SUFFIX) -> Path:
    """``Foo.vm`` -> ``Foo.asm``; directory ``Prog`` -> ``Prog/Prog.asm``."""
    source = Path(source)
    if source.is_dir():
        return source / f"{source.resolve().name}{suffix}"
    return source.with_suffix(suffix)
