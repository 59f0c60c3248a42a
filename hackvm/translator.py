"""VM-to-Hack-assembly translation driver."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .codegen import emit, emit_bootstrap
from .commands import parse_command
from .context import TranslationContext
from .errors import DuplicateLabel, VMTranslationError
from .instructions import Comment, Instruction, LabelDecl
from .source import SourceUnit

LOGGER = logging.getLogger("hackvm.translator")

BOOTSTRAP_UNIT = "<bootstrap>"


@dataclass
class TranslatorOptions:
    bootstrap: Optional[bool] = None  # None: only for multi-file programs
    annotate: bool = False
    qualify_labels: bool = False

    def wants_bootstrap(self, is_directory: bool) -> bool:
        if self.bootstrap is None:
            return is_directory
        return self.bootstrap


@dataclass(frozen=True)
class TranslationResult:
    instructions: Tuple[Instruction, ...]
    context: TranslationContext

    def lines(self, *, comments: bool = True) -> List[str]:
        return [
            instr.render()
            for instr in self.instructions
            if comments or not isinstance(instr, Comment)
        ]

    def render(self) -> str:
        return "\n".join(self.lines()) + "\n"


class LabelRegistry:
    """Tracks every label declared in one program."""

    def __init__(self) -> None:
        self._seen: Dict[str, str] = {}

    def declare(self, name: str, where: str) -> None:
        first = self._seen.get(name)
        if first is not None:
            raise DuplicateLabel(f"label '{name}' already declared at {first}")
        self._seen[name] = where

    def __contains__(self, name: str) -> bool:
        return name in self._seen

    def __len__(self) -> int:
        return len(self._seen)


def translate_unit(
    unit: SourceUnit,
    ctx: TranslationContext,
    *,
    annotate: bool = False,
    labels: Optional[LabelRegistry] = None,
) -> TranslationResult:
    """Translate one source unit, starting from ``ctx``.

    The returned context carries the advanced label counter and must be passed
    to the next unit of the same program.
    """
    ctx = ctx.for_unit(unit.name)
    out: List[Instruction] = []
    LOGGER.info("translating %s (%d commands)", unit.name, len(unit.lines))
    for line in unit.lines:
        try:
            command = parse_command(line.text)
            block, ctx = emit(command, ctx)
            if labels is not None:
                for instr in block:
                    if isinstance(instr, LabelDecl):
                        labels.declare(instr.name, f"{unit.name}:{line.lineno}")
        except VMTranslationError as exc:
            exc.locate(unit=unit.name, lineno=line.lineno, line=line.text)
            raise
        LOGGER.debug("%s:%d %s -> %d instructions", unit.name, line.lineno, command, len(block))
        if annotate:
            out.append(Comment(line.text))
        out.extend(block)
    return TranslationResult(tuple(out), ctx)


def translate_program(
    units: Sequence[SourceUnit],
    *,
    bootstrap: bool = True,
    annotate: bool = False,
    qualify_labels: Optional[bool] = None,
    context: Optional[TranslationContext] = None,
) -> TranslationResult:
    """Translate ``units`` in the given order into one flat program.

    The bootstrap (``SP = 256; call Sys.init 0``) is emitted once, before the
    first unit, and takes call-site index 0. ``qualify_labels`` overrides the
    setting carried by ``context`` unless it is ``None``.
    """
    ctx = context or TranslationContext()
    if qualify_labels is not None:
        ctx = replace(ctx, qualify_labels=qualify_labels)
    labels = LabelRegistry()
    out: List[Instruction] = []
    if bootstrap:
        block, ctx = emit_bootstrap(ctx)
        if annotate:
            out.append(Comment("bootstrap"))
        for instr in block:
            if isinstance(instr, LabelDecl):
                labels.declare(instr.name, BOOTSTRAP_UNIT)
        out.extend(block)
    for unit in units:
        result = translate_unit(unit, ctx, annotate=annotate, labels=labels)
        out.extend(result.instructions)
        ctx = result.context
    LOGGER.info(
        "translated %d unit(s): %d instructions, %d labels",
        len(units),
        sum(1 for instr in out if not isinstance(instr, (Comment, LabelDecl))),
        len(labels),
    )
    return TranslationResult(tuple(out), ctx)


def translate_text(text: str, *, name: str = "Main", bootstrap: bool = False, **kwargs) -> TranslationResult:
    """Translate VM source held in a string as a single unit."""
    return translate_program([SourceUnit.from_text(name, text)], bootstrap=bootstrap, **kwargs)


def translate_sources(units: Iterable[SourceUnit], options: TranslatorOptions, *, is_directory: bool) -> TranslationResult:
    units = list(units)
    return translate_program(
        units,
        bootstrap=options.wants_bootstrap(is_directory),
        annotate=options.annotate,
        qualify_labels=options.qualify_labels,
    )
