"""Compile tree expressions into matching machines.

Grammar::

    machine      := step ( "->" step )* END
    step         := element_step | text_step
    element_step := IDENT [ "<" attr_list ">" ]
    attr_list    := attr ( [ "," ] attr )*
    attr         := IDENT [ "=" STRING ]
    text_step    := "text" ":" STRING

Each ``->`` descends one level: ``tr -> td -> text:"(.*)"`` finds a ``tr``
with a ``td`` child holding a text node that matches the pattern.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .errors import ParseError
from .lexer import Lexer, Token, TokenKind

logger = logging.getLogger(__name__)

TEXT_KEYWORD = "text"


@dataclass(frozen=True)
class AttributeConstraint:
    """``value is None`` requires the attribute to be present with any value."""

    name: str
    value: Optional[str] = None

    def satisfied_by(self, attributes: dict[str, str]) -> bool:
        actual = attributes.get(self.name)
        if actual is None:
            return False
        return self.value is None or actual == self.value


@dataclass(frozen=True)
class ElementStep:
    tag: str
    attributes: Tuple[AttributeConstraint, ...] = ()

    def accepts(self, tag: str, attributes: dict[str, str]) -> bool:
        if tag != self.tag:
            return False
        return all(constraint.satisfied_by(attributes) for constraint in self.attributes)


@dataclass(frozen=True)
class TextStep:
    pattern: re.Pattern


MatchStep = Union[ElementStep, TextStep]


@dataclass(frozen=True)
class Machine:
    """A compiled expression: a non-empty, immutable sequence of steps."""

    steps: Tuple[MatchStep, ...]
    expression: str = ""

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError("A machine needs at least one step")
        for step in self.steps[:-1]:
            if isinstance(step, TextStep):
                raise ValueError("A text step may only appear last")

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def has_text_step(self) -> bool:
        return isinstance(self.steps[-1], TextStep)


class Parser:
    def __init__(self, expression: str, *, ignore_case: bool = False) -> None:
        self.expression = expression
        self.flags = re.IGNORECASE if ignore_case else 0
        self.lexer = Lexer(expression)
        self.current = self.lexer.next_token()

    def _error(self, message: str, token: Token) -> ParseError:
        return ParseError(message, token.position, self.expression)

    def _advance(self) -> Token:
        token = self.current
        self.current = self.lexer.next_token()
        return token

    def _expect(self, kind: TokenKind, message: str) -> Token:
        if self.current.kind is not kind:
            raise self._error(f"{message}, found {self.current.kind.value}", self.current)
        return self._advance()

    def parse(self) -> Machine:
        if self.current.kind is TokenKind.END:
            raise self._error("Empty expression", self.current)

        steps = [self._parse_step()]
        while self.current.kind is TokenKind.ARROW:
            if isinstance(steps[-1], TextStep):
                raise self._error("A text step must be the last step", self.current)
            self._advance()
            steps.append(self._parse_step())

        if self.current.kind is not TokenKind.END:
            raise self._error(f"Expected '->' or end of expression, found {self.current.kind.value}", self.current)
        return Machine(steps=tuple(steps), expression=self.expression)

    def _parse_step(self) -> MatchStep:
        name = self._expect(TokenKind.IDENT, "Expected a tag name or text")
        if name.value == TEXT_KEYWORD:
            return self._parse_text_step()

        attributes: Tuple[AttributeConstraint, ...] = ()
        if self.current.kind is TokenKind.LANGLE:
            self._advance()
            attributes = self._parse_attributes()
        return ElementStep(tag=name.value, attributes=attributes)

    def _parse_text_step(self) -> TextStep:
        self._expect(TokenKind.COLON, "Expected ':' after text")
        source = self._expect(TokenKind.STRING, 'Expecting a "-delimited string')
        try:
            pattern = re.compile(source.value, self.flags)
        except re.error as exc:
            raise self._error(f"Error parsing regular expression: {exc}", source) from exc
        return TextStep(pattern=pattern)

    def _parse_attributes(self) -> Tuple[AttributeConstraint, ...]:
        constraints: list[AttributeConstraint] = []
        seen: set[str] = set()
        while True:
            name = self._expect(TokenKind.IDENT, "Expected attribute name")
            if name.value in seen:
                raise self._error(f"Duplicate attribute {name.value!r}", name)
            seen.add(name.value)

            value = None
            if self.current.kind is TokenKind.EQ:
                self._advance()
                value = self._expect(TokenKind.STRING, "Expected a quoted attribute value").value
            constraints.append(AttributeConstraint(name=name.value, value=value))

            if self.current.kind is TokenKind.RANGLE:
                self._advance()
                return tuple(constraints)
            if self.current.kind is TokenKind.COMMA:
                self._advance()
            elif self.current.kind is not TokenKind.IDENT:
                raise self._error(f"Expected ',' or '>', found {self.current.kind.value}", self.current)


def compile_expression(expression: str, *, ignore_case: bool = False) -> Machine:
    """Compile ``expression`` into a :class:`Machine`.

    Raises :class:`~grokhtml.errors.ParseError` carrying the byte offset of
    the offending token. ``ignore_case`` makes the text pattern
    case-insensitive.
    """

    machine = Parser(expression, ignore_case=ignore_case).parse()
    logger.debug("Compiled %r into %d step(s)", expression, len(machine))
    return machine
