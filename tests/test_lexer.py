from __future__ import annotations

import pytest

from grokhtml.errors import ParseError
from grokhtml.lexer import TokenKind, tokenize


def kinds(text: str) -> list[TokenKind]:
    return [token.kind for token in tokenize(text)]


def test_tokenize_chain_with_attributes_and_text():
    tokens = tokenize('TR -> td<Class="x", id> -> text:"a"')

    assert [token.kind for token in tokens] == [
        TokenKind.IDENT,
        TokenKind.ARROW,
        TokenKind.IDENT,
        TokenKind.LANGLE,
        TokenKind.IDENT,
        TokenKind.EQ,
        TokenKind.STRING,
        TokenKind.COMMA,
        TokenKind.IDENT,
        TokenKind.RANGLE,
        TokenKind.ARROW,
        TokenKind.IDENT,
        TokenKind.COLON,
        TokenKind.STRING,
        TokenKind.END,
    ]
    assert tokens[0].value == "tr"
    assert tokens[4].value == "class"
    assert tokens[6].value == "x"


def test_arrow_without_spaces_splits_identifiers():
    tokens = tokenize("tr->td")

    assert [(token.kind, token.value) for token in tokens[:3]] == [
        (TokenKind.IDENT, "tr"),
        (TokenKind.ARROW, "->"),
        (TokenKind.IDENT, "td"),
    ]
    assert tokens[1].position == 2


def test_identifiers_keep_dashes_and_underscores():
    tokens = tokenize("data-x_y")

    assert tokens[0].value == "data-x_y"


def test_string_escapes_are_expanded_and_regex_escapes_kept():
    tokens = tokenize(r'"a\"b\\c\nd\te\d"')

    assert tokens[0].value == 'a"b\\c\nd\te\\d'


def test_positions_track_source_offsets():
    tokens = tokenize('  a  <  b="c" >')

    assert [token.position for token in tokens] == [2, 5, 8, 9, 10, 14, 15]


def test_unterminated_string_reports_opening_quote():
    with pytest.raises(ParseError) as excinfo:
        tokenize('text:"abc')

    assert excinfo.value.offset == 5


def test_unexpected_character_is_a_lex_error():
    with pytest.raises(ParseError) as excinfo:
        tokenize("tr -> t$d")

    assert excinfo.value.offset == 7


def test_lone_dash_is_a_lex_error():
    with pytest.raises(ParseError) as excinfo:
        tokenize("tr - td")

    assert excinfo.value.offset == 3


def test_non_ascii_identifier_reports_byte_offset():
    with pytest.raises(ParseError) as excinfo:
        tokenize('text:"é" é')

    assert excinfo.value.position == 9
    assert excinfo.value.offset == 10


def test_empty_input_is_just_end():
    assert kinds("   ") == [TokenKind.END]
