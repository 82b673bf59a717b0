"""Exceptions raised by the expression compiler, document layer and matcher."""
from __future__ import annotations


class GrokError(Exception):
    """Base class for every error raised by :mod:`grokhtml`."""


class ParseError(GrokError, ValueError):
    """An expression failed to lex or parse.

    ``offset`` is a byte offset into the UTF-8 encoding of ``expression``;
    ``position`` is the matching character index into the Python string.
    """

    def __init__(self, message: str, position: int, expression: str = "") -> None:
        self.message = message
        self.position = position
        self.expression = expression
        self.offset = len(expression[:position].encode("utf-8", "surrogatepass"))
        super().__init__(f"{message} (at offset {self.offset})")


class DocumentError(GrokError):
    """A document could not be fetched, decoded or parsed."""


class MatchError(GrokError, RuntimeError):
    """The matcher could not produce a result."""


class TemplateRangeError(GrokError, IndexError):
    """A template referenced a capture that does not exist."""

    def __init__(self, index: int, available: int) -> None:
        self.index = index
        self.available = available
        super().__init__(f"Template references \\{index} but only {available} capture(s) exist")


class AllocationError(GrokError, MemoryError):
    """Memory ran out while building captures or rendering output."""
