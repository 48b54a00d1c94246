"""Error kinds and the exception used to unwind a parse.

Every failure the scanner or the parser can detect maps onto exactly one
``ErrorKind``. Internally a failure is raised as ``ParseError`` and caught by
``ops.Parser.parse``, which is the only place that ever sees it.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorKind(IntEnum):
    OK = 0
    OVERFLOW = 1
    OUT_OF_MEMORY = 2
    INVALID_STATE = 3
    BAD_SUBSTITUTION = 4
    MISSING_COMMAND = 5
    UNEXPECTED_EOF = 6
    ILLEGAL_COMBINATION = 7
    ILLEGAL_REDIRECTION = 8
    MISSING_ARGUMENT = 9
    ILLEGAL_ARGUMENT = 10
    MISSING_FILE = 11


MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.OK: "Ok.",
    ErrorKind.OVERFLOW: "Overflow of internal buffer.",
    ErrorKind.OUT_OF_MEMORY: "Insufficient memory.",
    ErrorKind.INVALID_STATE: "Invalid parser state.",
    ErrorKind.BAD_SUBSTITUTION: "Bad variable substitution.",
    ErrorKind.MISSING_COMMAND: "Missing command.",
    ErrorKind.UNEXPECTED_EOF: "Unexpected end of input stream.",
    ErrorKind.ILLEGAL_COMBINATION: "Illegal combination of internal and external commands.",
    ErrorKind.ILLEGAL_REDIRECTION: "Illegal input/output redirection in pipe.",
    ErrorKind.MISSING_ARGUMENT: "Missing argument for builtin command.",
    ErrorKind.ILLEGAL_ARGUMENT: "Illegal argument for builtin command.",
    ErrorKind.MISSING_FILE: "Missing file for input or output redirection.",
}


class ParseError(Exception):
    """Raised at the point of failure; carries the cursor position."""

    def __init__(self, kind: ErrorKind, line: int = 0, column: int = 0) -> None:
        super().__init__(MESSAGES[kind])
        self.kind = kind
        self.line = line
        self.column = column

    @property
    def message(self) -> str:
        return MESSAGES[self.kind]

    def __repr__(self) -> str:
        return f"ParseError({self.kind.name}, line={self.line}, column={self.column})"


@dataclass
class ParserStatus:
    """Outcome of the most recent parse on one ``Parser``."""

    kind: ErrorKind = ErrorKind.OK
    line: int = 0
    column: int = 0

    @property
    def message(self) -> str:
        return MESSAGES[self.kind]

    @property
    def ok(self) -> bool:
        return self.kind is ErrorKind.OK

    def format(self) -> str:
        return f"{self.message} @ {self.line}:{self.column}"
