"""Interactive VM-to-assembly translation shell."""

from __future__ import annotations

import logging
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .codegen import emit
from .commands import KEYWORDS, SEGMENT_NAMES, parse_command
from .context import TranslationContext
from .errors import VMTranslationError
from .source import strip_comment

LOGGER = logging.getLogger("hackvm.repl")

META_COMMANDS = (":unit", ":reset", ":help", ":quit")

HELP_TEXT = """\
Type VM commands (e.g. 'push constant 7') to see the generated assembly.
  :unit NAME   switch the static-variable namespace
  :reset       start over with a fresh label counter
  :quit        leave the shell"""


class TranslatorREPL:
    """Translate one VM line at a time, keeping the label counter between lines."""

    def __init__(self, *, unit: str = "Main", qualify_labels: bool = False) -> None:
        self.unit = unit
        self.qualify_labels = qualify_labels
        self.ctx = self._fresh_context()
        self.done = False

    def _fresh_context(self) -> TranslationContext:
        return TranslationContext(qualify_labels=self.qualify_labels).for_unit(self.unit)

    def handle_line(self, line: str) -> str:
        text = strip_comment(line)
        if not text:
            return ""
        if text.startswith(":"):
            return self._meta(text)
        try:
            command = parse_command(text)
            block, self.ctx = emit(command, self.ctx)
        except VMTranslationError as exc:
            exc.locate(unit=self.unit, line=text)
            return f"error: {exc}"
        return "\n".join(instr.render() for instr in block)

    def _meta(self, text: str) -> str:
        name, *args = text.split()
        if name == ":quit":
            self.done = True
            return ""
        if name == ":help":
            return HELP_TEXT
        if name == ":reset":
            self.ctx = self._fresh_context()
            return "context reset"
        if name == ":unit":
            if len(args) != 1:
                return "usage: :unit NAME"
            try:
                ctx = self.ctx.for_unit(args[0])
            except VMTranslationError as exc:
                return f"error: {exc}"
            self.unit, self.ctx = args[0], ctx
            return f"unit = {self.unit}"
        return f"unknown meta command '{name}' (try :help)"

    def run(self, session: Optional[PromptSession] = None) -> int:
        if session is None:
            completer = WordCompleter(list(KEYWORDS + SEGMENT_NAMES + META_COMMANDS), sentence=True)
            session = PromptSession("vm> ", history=InMemoryHistory(), completer=completer)
        while not self.done:
            try:
                with patch_stdout():
                    line = session.prompt()
            except (EOFError, KeyboardInterrupt):
                print()
                return 0
            output = self.handle_line(line)
            if output:
                print(output)
        return 0
