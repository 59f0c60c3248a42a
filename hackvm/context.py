"""Translation state threaded through every emitter."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .commands import SYMBOL_RE
from .errors import InvalidUnitName


@dataclass(frozen=True)
class TranslationContext:
    """Immutable per-step translation state.

    ``counter`` numbers every generated comparison and call-site label in the
    program. Emitters never mutate it; they return a successor context, so a
    caller that keeps passing the returned value along cannot reuse a number.
    """

    unit: str = ""
    function: Optional[str] = None
    counter: int = 0
    qualify_labels: bool = False

    def next_label_index(self) -> Tuple[int, "TranslationContext"]:
        return self.counter, replace(self, counter=self.counter + 1)

    def for_unit(self, name: str) -> "TranslationContext":
        # unit names prefix static symbols and qualified labels
        if not SYMBOL_RE.fullmatch(name):
            raise InvalidUnitName(f"unit name '{name}' is not a valid assembly symbol", unit=name)
        return replace(self, unit=name, function=None)

    def entering(self, function: str) -> "TranslationContext":
        return replace(self, function=function)

    def user_label(self, name: str) -> str:
        if not self.qualify_labels:
            return name
        scope = self.function or self.unit
        return f"{scope}${name}" if scope else name
