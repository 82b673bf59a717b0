"""Tokenizer for tree expressions such as ``tr -> td<class="x"> -> text:"(.*)"``."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List

from .errors import ParseError

WHITESPACE = " \t\r\n"
PUNCTUATORS = {
    "<": "LANGLE",
    ">": "RANGLE",
    "=": "EQ",
    ",": "COMMA",
    ":": "COLON",
}
STRING_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t"}


class TokenKind(Enum):
    IDENT = "identifier"
    STRING = "string"
    ARROW = "'->'"
    LANGLE = "'<'"
    RANGLE = "'>'"
    EQ = "'='"
    COMMA = "','"
    COLON = "':'"
    END = "end of expression"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    position: int


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _is_ident_char(ch: str) -> bool:
    return _is_ident_start(ch) or ("0" <= ch <= "9") or ch == "-"


class Lexer:
    """Turns expression text into a stream of :class:`Token` objects."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.length = len(text)

    def _error(self, message: str, position: int) -> ParseError:
        return ParseError(message, position, self.text)

    def _peek(self, offset: int = 0) -> str:
        pos = self.pos + offset
        if pos < self.length:
            return self.text[pos]
        return ""

    def _skip_whitespace(self) -> None:
        while self.pos < self.length and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def _read_ident(self) -> Token:
        start = self.pos
        while self.pos < self.length and _is_ident_char(self.text[self.pos]):
            # "tr->td" is two identifiers around an arrow
            if self.text[self.pos] == "-" and self._peek(1) == ">":
                break
            self.pos += 1
        return Token(TokenKind.IDENT, self.text[start : self.pos].lower(), start)

    def _read_string(self) -> Token:
        start = self.pos
        self.pos += 1
        parts: list[str] = []
        while self.pos < self.length:
            ch = self.text[self.pos]
            if ch == '"':
                self.pos += 1
                return Token(TokenKind.STRING, "".join(parts), start)
            if ch == "\\" and self.pos + 1 < self.length:
                escaped = self.text[self.pos + 1]
                parts.append(STRING_ESCAPES.get(escaped, "\\" + escaped))
                self.pos += 2
                continue
            parts.append(ch)
            self.pos += 1
        raise self._error("Unterminated string", start)

    def next_token(self) -> Token:
        self._skip_whitespace()
        if self.pos >= self.length:
            return Token(TokenKind.END, "", self.pos)

        ch = self.text[self.pos]
        start = self.pos
        if ch == "-":
            if self._peek(1) == ">":
                self.pos += 2
                return Token(TokenKind.ARROW, "->", start)
            raise self._error("Expected '->'", start)
        if ch in PUNCTUATORS:
            self.pos += 1
            return Token(TokenKind[PUNCTUATORS[ch]], ch, start)
        if ch == '"':
            return self._read_string()
        if _is_ident_start(ch):
            return self._read_ident()
        raise self._error(f"Unexpected character {ch!r}", start)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.kind is TokenKind.END:
                return


def tokenize(text: str) -> List[Token]:
    """Tokenize ``text`` completely, ending with an ``END`` token."""

    return list(Lexer(text))
