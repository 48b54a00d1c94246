"""Recursive-descent parser for the minish command language.

Grammar::

    Input    := (Command Sep)* End           Sep := ';' | '\\n'
    Command  := PipeSeq
    PipeSeq  := Stage ('|' Stage)*
    Stage    := (Redir | Arg)* Terminator     Terminator := '&' | Sep | '|' | End
    Redir    := '<' Arg | '>' Arg

A stage is read completely before its first word is checked against the
builtin table, so some decisions are only validated after the fact: a
builtin followed by ``|``, or an output redirection on a stage that turns
out not to be the last one.

Public entry points are ``Parser.parse`` and the module-level ``parse``,
``status``, ``free``, ``render`` and ``describe`` helpers.
"""
from __future__ import annotations

import os
import threading
from typing import List, Optional

from command import BuiltinError, lookup_builtin
from errors import ErrorKind, ParseError, ParserStatus
from groups import (
    BUILTIN_TYPES,
    Command,
    CommandList,
    Pipeline,
    Program,
    format_commands,
    release_chain,
)
from scanner import MAX_TOKEN_LENGTH, Lookup, Scanner, Token, TokenKind

STAGE_TERMINATORS = (TokenKind.AMPERSAND, TokenKind.SEPARATOR, TokenKind.END, TokenKind.PIPE)


class _ParseSession:
    """Cursor, lookahead and partially built list for a single parse call."""

    def __init__(self, text: str, lookup: Lookup, max_length: int) -> None:
        self.scanner = Scanner(text, lookup, max_length)
        self.lookahead: Token = Token(TokenKind.END)
        self.head: Optional[Command] = None
        self.tail: Optional[Command] = None
        # command under construction, not yet linked into the list
        self.pending: Optional[Command] = None

    def error(self, kind: ErrorKind) -> ParseError:
        return self.scanner.error(kind)

    def scan(self) -> None:
        self.lookahead = self.scanner.next_token()

    def identifier(self) -> str:
        if self.lookahead.kind is not TokenKind.IDENTIFIER or self.lookahead.text is None:
            raise self.error(ErrorKind.INVALID_STATE)
        return self.lookahead.text

    def teardown(self) -> None:
        release_chain(self.pending)
        release_chain(self.head)
        self.pending = None
        self.head = self.tail = None

    # --- grammar ---

    def parse_input(self) -> Optional[Command]:
        while True:
            # skips the terminator left behind by the previous command
            self.scan()
            if self.lookahead.kind is TokenKind.END:
                return self.head
            command = self.parse_pipe_sequence()
            self.pending = None
            if self.tail is None:
                self.head = command
            else:
                self.tail.next = command
            self.tail = command

    def parse_pipe_sequence(self) -> Command:
        owner = Program()
        self.pending = owner
        stage = owner
        command = self.parse_command(stage, in_pipeline=False)
        self.pending = command
        while self.lookahead.kind is TokenKind.PIPE:
            if isinstance(command, BUILTIN_TYPES):
                raise self.error(ErrorKind.ILLEGAL_COMBINATION)
            if stage.output is not None:
                raise self.error(ErrorKind.ILLEGAL_REDIRECTION)
            if not isinstance(command, Pipeline):
                command = Pipeline.promote(owner)
                stage = command
                self.pending = command
            self.scan()
            stage.next_stage = Program()
            stage = stage.next_stage
            self.parse_command(stage, in_pipeline=True)
        return command

    def parse_command(self, stage: Program, *, in_pipeline: bool) -> Command:
        self.parse_stage(stage)
        if not stage.args:
            raise self.error(ErrorKind.MISSING_COMMAND)
        builtin = lookup_builtin(stage.name)
        if builtin is not None:
            if in_pipeline:
                raise self.error(ErrorKind.ILLEGAL_COMBINATION)
            try:
                command = builtin.build(stage.args)
            except BuiltinError as e:
                raise self.error(e.kind) from None
            stage.release()
            return command
        if in_pipeline and stage.input is not None:
            raise self.error(ErrorKind.ILLEGAL_REDIRECTION)
        return stage

    def parse_stage(self, stage: Program) -> None:
        while True:
            kind = self.lookahead.kind
            if kind in STAGE_TERMINATORS:
                if kind is TokenKind.AMPERSAND:
                    stage.background = True
                return
            if kind is TokenKind.INPUT_REDIRECTION:
                stage.input = self.parse_redirection()
            elif kind is TokenKind.OUTPUT_REDIRECTION:
                stage.output = self.parse_redirection()
            elif kind is TokenKind.IDENTIFIER:
                stage.args.append(self.identifier())
            else:
                raise self.error(ErrorKind.INVALID_STATE)
            self.scan()

    def parse_redirection(self) -> str:
        # skip '<' or '>' and read the file name
        self.scan()
        if self.lookahead.kind is not TokenKind.IDENTIFIER:
            raise self.error(ErrorKind.MISSING_FILE)
        return self.identifier()


class Parser:
    """Parses minish input and keeps the status of the most recent call.

    ``lookup`` resolves variable names for ``$name`` substitution and
    defaults to the process environment. A Parser instance is meant for one
    thread at a time; use separate instances (or the module-level helpers,
    which keep one per thread) for concurrent parsing.
    """

    def __init__(self, lookup: Optional[Lookup] = None, max_length: int = MAX_TOKEN_LENGTH) -> None:
        if max_length < 1:
            raise ValueError("max_length must be positive")
        self.lookup: Lookup = lookup if lookup is not None else os.environ.get
        self.max_length = max_length
        self.status = ParserStatus()

    def parse(self, text: str) -> Optional[CommandList]:
        """Parse ``text`` into a command list.

        Returns None for input without commands (``status.ok`` is True) and
        on failure (``status.kind`` names the error). Nothing built before a
        failure survives it.
        """
        self.status = ParserStatus()
        session = _ParseSession(text, self.lookup, self.max_length)
        try:
            head = session.parse_input()
            # a lookup may have parsed with this same instance meanwhile
            self.status = ParserStatus()
        except ParseError as e:
            session.teardown()
            self.status = ParserStatus(e.kind, e.line, e.column)
            return None
        except MemoryError:
            session.teardown()
            cursor = session.scanner.cursor
            self.status = ParserStatus(ErrorKind.OUT_OF_MEMORY, cursor.line, cursor.column)
            return None
        if head is None:
            return None
        return CommandList(head)

    @property
    def message(self) -> str:
        return self.status.message


_local = threading.local()


def parse(text: str, lookup: Optional[Lookup] = None) -> Optional[CommandList]:
    """Parse with a fresh ``Parser``; see ``Parser.parse``.

    The outcome is kept per thread for ``status``. It is stored when the
    call finishes, so a lookup that parses on its own does not leave its
    status behind.
    """
    parser = Parser(lookup=lookup)
    commands = parser.parse(text)
    _local.status = parser.status
    return commands


def status() -> ParserStatus:
    """Status of the last module-level ``parse`` on the calling thread."""
    current = getattr(_local, "status", None)
    return current if current is not None else ParserStatus()


def free(commands: Optional[CommandList]) -> None:
    if commands is None:
        return
    commands.release()


def render(commands: Optional[CommandList]) -> str:
    return format_commands(commands)


def describe(text: str, parser: Optional[Parser] = None) -> str:
    """Parse ``text`` and return a trace block for bug reports.

    Without ``parser`` a private one is used and the thread's ``status`` is
    left alone.
    """
    parser = parser or Parser()
    commands = parser.parse(text)
    lines: List[str] = [
        f"input:  {text}",
        f"result: {parser.status.format()}",
        "---",
        render(commands),
        "---",
    ]
    free(commands)
    return "\n".join(lines)
