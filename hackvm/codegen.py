"""Lower VM commands to Hack assembly instruction records.

Calling convention (frame layout on the stack, growing upwards)::

    ARG ->  argument 0 .. argument nArgs-1
            return address
            saved LCL
            saved ARG
            saved THIS
            saved THAT
    LCL ->  local 0 .. local nVars-1
    SP  ->  working stack

``emit(command, ctx)`` returns the instructions for one command together with
the successor context.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from . import emit as prims
from .commands import (
    Arithmetic,
    Call,
    Comparison,
    Function,
    Goto,
    IfGoto,
    Label,
    Pop,
    Push,
    Return,
    Segment,
    Unary,
    VMCommand,
)
from .context import TranslationContext
from .errors import InvalidOperand
from .instructions import AInstruction, CInstruction, Instruction, LabelDecl, asm
from .segments import (
    ADDR_SCRATCH,
    ARG,
    FRAME_SCRATCH,
    LCL,
    MAX_CONSTANT,
    RETURN_SCRATCH,
    STACK_BASE,
    THAT,
    THIS,
    resolve,
)

Emitted = Tuple[List[Instruction], TranslationContext]

BINARY_COMP = {
    "add": "D+M",
    "sub": "M-D",
    "and": "D&M",
    "or": "D|M",
}
UNARY_COMP = {
    "neg": "-M",
    "not": "!M",
}
COMPARISON_JUMP = {
    "eq": "JEQ",
    "gt": "JGT",
    "lt": "JLT",
}

SAVED_REGISTERS = (LCL, ARG, THIS, THAT)
# read from frameEnd-1 .. frameEnd-4
RESTORE_ORDER = (THAT, THIS, ARG, LCL)
FRAME_WORDS = 1 + len(SAVED_REGISTERS)
ZERO = resolve(Segment.CONSTANT, 0, "")

# No unconditional jump opcode is used; "0;JEQ" always branches.
JUMP_ALWAYS = CInstruction("", "0", "JEQ")


def goto(target: str) -> List[Instruction]:
    return [AInstruction(target), JUMP_ALWAYS]


def _emit_push(cmd: Push, ctx: TranslationContext) -> Emitted:
    return prims.push_value(resolve(cmd.segment, cmd.index, ctx.unit)), ctx


def _emit_pop(cmd: Pop, ctx: TranslationContext) -> Emitted:
    return prims.pop_to(resolve(cmd.segment, cmd.index, ctx.unit)), ctx


def _emit_arithmetic(cmd: Arithmetic, ctx: TranslationContext) -> Emitted:
    out = prims.pop_d()
    out += prims.rewrite_top(CInstruction("M", BINARY_COMP[cmd.op]))
    return out, ctx


def _emit_unary(cmd: Unary, ctx: TranslationContext) -> Emitted:
    return prims.rewrite_top(CInstruction("M", UNARY_COMP[cmd.op])), ctx


COMPARISON_SETUP = asm(
    # R13 = y; D = x, left in place under SP
    "@SP",
    "AM=M-1",
    "D=M",
    f"@{ADDR_SCRATCH}",
    "M=D",
    "@SP",
    "A=M-1",
    "D=M",
)


def _emit_comparison(cmd: Comparison, ctx: TranslationContext) -> Emitted:
    """Set the top cell to -1 or 0 from the signed comparison of x and y.

    x - y is only formed when the operands share a sign; otherwise D is set
    to +1 or -1 from the signs alone so the difference cannot overflow.
    """
    n, ctx = ctx.next_label_index()
    is_true, done = f"EQUAL{n}", f"END{n}"
    x_negative, same_sign, test = f"XNEG{n}", f"SAMESIGN{n}", f"TEST{n}"
    out = list(COMPARISON_SETUP)
    out += [
        AInstruction(x_negative),
        CInstruction("", "D", "JLT"),
        AInstruction(ADDR_SCRATCH),
        CInstruction("D", "M"),
        AInstruction(same_sign),
        CInstruction("", "D", "JGE"),
        CInstruction("D", "1"),
    ]
    out += goto(test)
    out += [
        LabelDecl(x_negative),
        AInstruction(ADDR_SCRATCH),
        CInstruction("D", "M"),
        AInstruction(same_sign),
        CInstruction("", "D", "JLT"),
        CInstruction("D", "-1"),
    ]
    out += goto(test)
    out += [
        LabelDecl(same_sign),
        AInstruction("SP"),
        CInstruction("A", "M-1"),
        CInstruction("D", "M"),
        AInstruction(ADDR_SCRATCH),
        CInstruction("D", "D-M"),
        LabelDecl(test),
        AInstruction(is_true),
        CInstruction("", "D", COMPARISON_JUMP[cmd.op]),
        AInstruction("SP"),
        CInstruction("A", "M-1"),
        CInstruction("M", "0"),
    ]
    out += goto(done)
    out += [
        LabelDecl(is_true),
        AInstruction("SP"),
        CInstruction("A", "M-1"),
        CInstruction("M", "-1"),
        LabelDecl(done),
    ]
    return out, ctx


def _emit_label(cmd: Label, ctx: TranslationContext) -> Emitted:
    return [LabelDecl(ctx.user_label(cmd.name))], ctx


def _emit_goto(cmd: Goto, ctx: TranslationContext) -> Emitted:
    return goto(ctx.user_label(cmd.name)), ctx


def _emit_if_goto(cmd: IfGoto, ctx: TranslationContext) -> Emitted:
    out = prims.pop_d()
    out += [AInstruction(ctx.user_label(cmd.name)), CInstruction("", "D", "JNE")]
    return out, ctx


def _check_count(value: int, what: str) -> int:
    if value > MAX_CONSTANT:
        raise InvalidOperand(f"{what} {value} out of range 0..{MAX_CONSTANT}")
    return value


def emit_call(name: str, n_args: int, ctx: TranslationContext) -> Emitted:
    _check_count(n_args, "argument count")
    n, ctx = ctx.next_label_index()
    return_label = f"{name}return{n}"
    out = prims.push_address_of(return_label)
    for register in SAVED_REGISTERS:
        out += prims.push_register(register)
    out += [
        AInstruction("SP"),
        CInstruction("D", "M"),
        AInstruction(str(FRAME_WORDS)),
        CInstruction("D", "D-A"),
        AInstruction(str(n_args)),
        CInstruction("D", "D-A"),
        AInstruction(ARG),
        CInstruction("M", "D"),
        AInstruction("SP"),
        CInstruction("D", "M"),
        AInstruction(LCL),
        CInstruction("M", "D"),
    ]
    out += goto(name)
    out.append(LabelDecl(return_label))
    return out, ctx


def _emit_call(cmd: Call, ctx: TranslationContext) -> Emitted:
    return emit_call(cmd.name, cmd.n_args, ctx)


def _emit_function(cmd: Function, ctx: TranslationContext) -> Emitted:
    _check_count(cmd.n_vars, "local variable count")
    out: List[Instruction] = [LabelDecl(cmd.name)]
    for _ in range(cmd.n_vars):
        out += prims.push_value(ZERO)
    return out, ctx.entering(cmd.name)


RETURN_PROLOGUE = asm(
    # frameEnd = LCL
    "@LCL",
    "D=M",
    f"@{FRAME_SCRATCH}",
    "M=D",
    # retAddr = *(frameEnd - 5)
    f"@{FRAME_WORDS}",
    "A=D-A",
    "D=M",
    f"@{RETURN_SCRATCH}",
    "M=D",
)
RETURN_VALUE = asm(
    # *ARG = pop(); SP = ARG + 1
    "@ARG",
    "A=M",
    "M=D",
    "@ARG",
    "D=M",
    "@SP",
    "M=D+1",
)
RETURN_JUMP = asm(f"@{RETURN_SCRATCH}", "A=M", "0;JEQ")


def _emit_return(cmd: Return, ctx: TranslationContext) -> Emitted:
    out = list(RETURN_PROLOGUE)
    out += prims.pop_d()
    out += list(RETURN_VALUE)
    for register in RESTORE_ORDER:
        out += [
            AInstruction(FRAME_SCRATCH),
            CInstruction("AM", "M-1"),
            CInstruction("D", "M"),
            AInstruction(register),
            CInstruction("M", "D"),
        ]
    out += list(RETURN_JUMP)
    return out, ctx


_EMITTERS: Dict[type, Callable[..., Emitted]] = {
    Push: _emit_push,
    Pop: _emit_pop,
    Arithmetic: _emit_arithmetic,
    Unary: _emit_unary,
    Comparison: _emit_comparison,
    Label: _emit_label,
    Goto: _emit_goto,
    IfGoto: _emit_if_goto,
    Call: _emit_call,
    Function: _emit_function,
    Return: _emit_return,
}


def emit(command: VMCommand, ctx: TranslationContext) -> Emitted:
    return _EMITTERS[type(command)](command, ctx)


def emit_bootstrap(ctx: TranslationContext) -> Emitted:
    """SP = 256, then ``call Sys.init 0``."""
    out: List[Instruction] = [
        AInstruction(str(STACK_BASE)),
        CInstruction("D", "A"),
        AInstruction("SP"),
        CInstruction("M", "D"),
    ]
    call, ctx = emit_call("Sys.init", 0, ctx)
    return out + call, ctx
