"""Single-pass scanner for the minish command language.

The scanner walks the input buffer once, character by character, and hands
out one token per call. Quoting, escaping, comments and ``$name`` /
``${name}`` substitution are resolved while scanning, so the parser only ever
sees finished identifiers.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Iterator, List, Optional

from errors import ErrorKind, ParseError

# Capacity of the identifier and variable-name buffers, in characters.
MAX_TOKEN_LENGTH = 2047

# Characters that end an identifier. Quote, backslash and dollar are not in
# here: they switch mode but keep the identifier open.
IDENT_DELIMITERS = frozenset(" \t&><|\n;#")
# Characters that end a variable name.
NAME_DELIMITERS = frozenset(" \t&><|\n;#'\\${}")

Lookup = Callable[[str], Optional[str]]


class TokenKind(Enum):
    END = "end"
    AMPERSAND = "&"
    INPUT_REDIRECTION = "<"
    OUTPUT_REDIRECTION = ">"
    PIPE = "|"
    SEPARATOR = ";"
    IDENTIFIER = "identifier"
    COMMENT = "comment"


class Token:
    def __init__(self, kind: TokenKind, text: Optional[str] = None) -> None:
        # text is only set for IDENTIFIER and COMMENT
        self.kind = kind
        self.text = text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return self.kind is other.kind and self.text == other.text

    def __repr__(self) -> str:
        if self.text is None:
            return f"Token({self.kind.name})"
        return f"Token({self.kind.name}, {self.text!r})"


class Cursor:
    """Read position over the buffer. line and column are 0-based."""

    def __init__(self) -> None:
        self.pos = 0
        self.line = 0
        self.column = 0

    def advance(self, ch: str) -> None:
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 0
        else:
            self.column += 1


class _BoundedBuffer:
    def __init__(self, capacity: int, cursor: Cursor) -> None:
        self._chars: List[str] = []
        self._capacity = capacity
        self._cursor = cursor

    def append(self, ch: str) -> None:
        if len(self._chars) >= self._capacity:
            raise ParseError(ErrorKind.OVERFLOW, self._cursor.line, self._cursor.column)
        self._chars.append(ch)

    def extend(self, text: str) -> None:
        for ch in text:
            self.append(ch)

    def take(self) -> str:
        value = ''.join(self._chars)
        self._chars.clear()
        return value

    def __len__(self) -> int:
        return len(self._chars)


class Scanner:
    """Tokenizer state for one parse.

    A scanner is created per parse call; nothing is shared between
    instances, so separate threads can each run their own.
    """

    def __init__(self, text: str, lookup: Lookup, max_length: int = MAX_TOKEN_LENGTH) -> None:
        self.text = text
        self.lookup = lookup
        self.cursor = Cursor()
        self._ident = _BoundedBuffer(max_length, self.cursor)
        self._name = _BoundedBuffer(max_length, self.cursor)

    def error(self, kind: ErrorKind) -> ParseError:
        return ParseError(kind, self.cursor.line, self.cursor.column)

    def _peek(self) -> str:
        # '' marks the end of input
        if self.cursor.pos < len(self.text):
            return self.text[self.cursor.pos]
        return ''

    def _substitute(self) -> None:
        name = self._name.take()
        value = self.lookup(name)
        if value is not None:
            self._ident.extend(value)

    def read(self) -> Token:
        """Scan one raw token, comments included."""
        cursor = self.cursor
        ident = self._ident
        ident.take()
        self._name.take()

        comment = False
        quote = False
        escape = False
        variable = False
        braced = False
        in_ident = False

        while True:
            ch = self._peek()

            if comment:
                if ch in ('\n', ''):
                    return Token(TokenKind.COMMENT, ident.take())
                ident.append(ch)
                cursor.advance(ch)
                continue

            if quote:
                if ch == '':
                    raise self.error(ErrorKind.UNEXPECTED_EOF)
                if ch == "'":
                    quote = False
                else:
                    ident.append(ch)
                cursor.advance(ch)
                continue

            if escape:
                if ch == '':
                    raise self.error(ErrorKind.UNEXPECTED_EOF)
                ident.append(ch)
                escape = False
                cursor.advance(ch)
                continue

            if variable:
                if ch and ch not in NAME_DELIMITERS:
                    self._name.append(ch)
                    cursor.advance(ch)
                    continue
                if braced:
                    if ch != '}':
                        raise self.error(ErrorKind.BAD_SUBSTITUTION)
                    cursor.advance(ch)
                    ch = self._peek()
                variable = braced = False
                self._substitute()
                # the character that ended the name is handled below

            if in_ident:
                if ch == '' or ch in IDENT_DELIMITERS:
                    return Token(TokenKind.IDENTIFIER, ident.take())
                if ch not in "'\\$":
                    ident.append(ch)
                    cursor.advance(ch)
                    continue

            if ch == '':
                return Token(TokenKind.END)
            if ch in (' ', '\t'):
                cursor.advance(ch)
                continue
            if ch in ('&', '>', '<', '|', ';', '\n'):
                cursor.advance(ch)
                return Token(_OPERATORS[ch])
            if ch == '#':
                comment = True
                cursor.advance(ch)
                continue

            in_ident = True
            cursor.advance(ch)
            if ch == "'":
                quote = True
            elif ch == '\\':
                escape = True
            elif ch == '$':
                variable = True
                if self._peek() == '{':
                    braced = True
                    cursor.advance('{')
            else:
                ident.append(ch)

    def next_token(self) -> Token:
        """Next token for the grammar; comments are skipped."""
        token = self.read()
        while token.kind is TokenKind.COMMENT:
            token = self.read()
        return token

    def __iter__(self) -> Iterator[Token]:
        # Yields grammar tokens up to and including END.
        while True:
            token = self.next_token()
            yield token
            if token.kind is TokenKind.END:
                return


_OPERATORS = {
    '&': TokenKind.AMPERSAND,
    '>': TokenKind.OUTPUT_REDIRECTION,
    '<': TokenKind.INPUT_REDIRECTION,
    '|': TokenKind.PIPE,
    ';': TokenKind.SEPARATOR,
    '\n': TokenKind.SEPARATOR,
}
