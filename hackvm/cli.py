"""hackvm command line entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .assembler import AssembledProgram, assemble, parse_hack_text
from .cpu import DEFAULT_MAX_STEPS, STACK_BASE, HackCPU
from .errors import AssemblerError, CPUFault, VMTranslationError
from .source import ASM_SUFFIX, HACK_SUFFIX, default_output_path, discover_units
from .translator import TranslationResult, TranslatorOptions, translate_sources

LOG = logging.getLogger("hackvm.cli")

LOG_ENV = "HACKVM_LOG"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _add_translate_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--bootstrap", dest="bootstrap", action="store_true", default=None,
                       help="emit SP=256 and 'call Sys.init 0' (default for directories)")
    group.add_argument("--no-bootstrap", dest="bootstrap", action="store_false",
                       help="never emit the bootstrap (default for single files)")
    parser.add_argument("--annotate", action="store_true", help="prefix each block with its VM source line")
    parser.add_argument("--qualify-labels", action="store_true",
                        help="qualify label/goto/if-goto names as Function$label")
    parser.set_defaults(bootstrap=None)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hackvm", description="Hack VM translator, assembler and emulator")
    parser.add_argument("--log-level", default=os.environ.get(LOG_ENV, "INFO"), help="Logging level (default INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("translate", help="translate a .vm file or directory to .asm")
    p.add_argument("source", type=Path)
    p.add_argument("-o", "--output", type=Path)
    _add_translate_options(p)

    p = sub.add_parser("assemble", help="assemble an .asm file to .hack")
    p.add_argument("source", type=Path)
    p.add_argument("-o", "--output", type=Path)

    p = sub.add_parser("build", help="translate and assemble a .vm file or directory to .hack")
    p.add_argument("source", type=Path)
    p.add_argument("-o", "--output", type=Path)
    _add_translate_options(p)

    p = sub.add_parser("run", help="run a .vm/.asm/.hack program on the CPU emulator")
    p.add_argument("source", type=Path)
    p.add_argument("--steps", type=int, default=DEFAULT_MAX_STEPS, help="maximum instructions to execute")
    p.add_argument("--ram", action="append", default=[], metavar="ADDR=VALUE", help="preset a RAM cell")
    p.add_argument("--show", action="append", type=int, default=[], metavar="ADDR", help="print a RAM cell after the run")
    p.add_argument("--trace", action="store_true", help="log every executed instruction at DEBUG level")
    _add_translate_options(p)

    p = sub.add_parser("repl", help="interactive VM-to-assembly shell")
    p.add_argument("--unit", default="Main", help="static-variable namespace (default Main)")
    p.add_argument("--qualify-labels", action="store_true")
    return parser


def _options(args: argparse.Namespace) -> TranslatorOptions:
    return TranslatorOptions(bootstrap=args.bootstrap, annotate=args.annotate, qualify_labels=args.qualify_labels)


def _translate(source: Path, options: TranslatorOptions) -> TranslationResult:
    units = discover_units(source)
    return translate_sources(units, options, is_directory=source.is_dir())


def _parse_ram_presets(values: List[str]) -> Dict[int, int]:
    presets: Dict[int, int] = {}
    for item in values:
        addr, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"--ram expects ADDR=VALUE, got '{item}'")
        presets[int(addr, 0)] = int(value, 0)
    return presets


def _load_rom(args: argparse.Namespace) -> Tuple[List[int], bool]:
    """Return the program words and whether a bootstrap sets up SP itself."""
    source: Path = args.source
    if source.suffix == HACK_SUFFIX:
        return parse_hack_text(source.read_text(encoding="utf-8")), True
    if source.suffix == ASM_SUFFIX:
        with source.open("r", encoding="utf-8") as fh:
            return assemble(fh).words, True
    options = _options(args)
    result = _translate(source, options)
    return assemble(result.lines()).words, options.wants_bootstrap(source.is_dir())


def cmd_translate(args: argparse.Namespace) -> int:
    result = _translate(args.source, _options(args))
    output = args.output or default_output_path(args.source, ASM_SUFFIX)
    output.write_text(result.render(), encoding="utf-8")
    print(f"Wrote {output} ({len(result.lines(comments=False))} lines)")
    return 0


def _write_hack(program: AssembledProgram, output: Path) -> None:
    output.write_text(program.to_hack(), encoding="utf-8")
    print(f"Wrote {output} ({len(program.words)} words)")


def cmd_assemble(args: argparse.Namespace) -> int:
    with args.source.open("r", encoding="utf-8") as fh:
        program = assemble(fh)
    _write_hack(program, args.output or args.source.with_suffix(HACK_SUFFIX))
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    result = _translate(args.source, _options(args))
    program = assemble(result.lines())
    _write_hack(program, args.output or default_output_path(args.source, HACK_SUFFIX))
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    words, self_starting = _load_rom(args)
    cpu = HackCPU(words, trace=args.trace)
    if not self_starting:
        cpu.poke(0, STACK_BASE)
    cpu.load_ram(_parse_ram_presets(args.ram))
    steps = cpu.run(args.steps)
    state = "halted" if cpu.halted else "step limit reached"
    print(f"{state} after {steps} steps, pc={cpu.pc}")
    print(f"SP={cpu.sp} stack={cpu.stack()}")
    for address in args.show:
        print(f"RAM[{address}]={cpu.peek(address)}")
    return 0


def cmd_repl(args: argparse.Namespace) -> int:
    from .repl import TranslatorREPL

    return TranslatorREPL(unit=args.unit, qualify_labels=args.qualify_labels).run()


COMMANDS = {
    "translate": cmd_translate,
    "assemble": cmd_assemble,
    "build": cmd_build,
    "run": cmd_run,
    "repl": cmd_repl,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    try:
        return COMMANDS[args.command](args)
    except (VMTranslationError, AssemblerError, CPUFault) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        LOG.debug("command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
