"""Expand ``\\0``..``\\9`` back-references in an output template."""
from __future__ import annotations

from typing import Sequence

from .errors import AllocationError, TemplateRangeError


def render(captures: Sequence[str], template: str) -> str:
    """Substitute ``captures`` into ``template``.

    ``\\N`` (a single digit) inserts capture ``N``; ``\\\\`` inserts one
    backslash. Any other backslash is copied through untouched together with
    the character after it.
    """

    pieces: list[str] = []
    i = 0
    length = len(template)
    try:
        while i < length:
            ch = template[i]
            if ch != "\\" or i + 1 == length:
                pieces.append(ch)
                i += 1
                continue

            nxt = template[i + 1]
            if "0" <= nxt <= "9":
                index = ord(nxt) - ord("0")
                if index >= len(captures):
                    raise TemplateRangeError(index, len(captures))
                pieces.append(captures[index])
            elif nxt == "\\":
                pieces.append("\\")
            else:
                pieces.append(ch + nxt)
            i += 2
        return "".join(pieces)
    except MemoryError as exc:
        raise AllocationError("Out of memory while rendering the template") from exc
