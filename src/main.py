#!/usr/bin/env python3

# Entry of minish

from __future__ import annotations

import argparse
import os
import sys
from typing import Dict, Optional

try:
    import readline  # type: ignore
except Exception:  # pragma: no cover - fallback when readline unavailable
    readline = None

READLINE_ACTIVE = bool(readline)

PROMPT = os.environ.get("MINISH_PROMPT", "minish> ")
CONTINUATION_PROMPT = "... "

from errors import ErrorKind, ParserStatus  # local modules in the same folder
from groups import CommandList, EnvironmentUpdate, Exit
from ops import Parser, describe, free, render
from scanner import MAX_TOKEN_LENGTH


class ShellSession:
    """Variables visible to $name substitution plus the pending input buffer."""

    def __init__(self, inherit_env: bool = True, max_length: int = MAX_TOKEN_LENGTH) -> None:
        self.env: Dict[str, str] = dict(os.environ) if inherit_env else {}
        self.parser = Parser(lookup=self.get_var, max_length=max_length)
        self.pending: Optional[str] = None

    def get_var(self, name: str) -> Optional[str]:
        return self.env.get(name)

    def set_var(self, name: str, value: str) -> None:
        self.env[name] = value

    def unset_var(self, name: str) -> None:
        self.env.pop(name, None)

    @property
    def in_multi_line(self) -> bool:
        return self.pending is not None


def default_max_length() -> int:
    raw = os.environ.get("MINISH_MAX_LENGTH")
    if not raw:
        return MAX_TOKEN_LENGTH
    return int(raw)


def report_error(status: ParserStatus) -> None:
    sys.stderr.write(f"minish: {status.message} (line {status.line}, column {status.column})\n")
    sys.stderr.flush()


def apply_commands(commands: CommandList, session: ShellSession) -> bool:
    """Apply what the front end handles itself. Returns False on exit."""
    for cmd in commands:
        if isinstance(cmd, Exit):
            return False
        if isinstance(cmd, EnvironmentUpdate):
            if cmd.is_unset:
                session.unset_var(cmd.name)
            else:
                session.set_var(cmd.name, cmd.value)
    return True


def execute_line(line: str, session: ShellSession, *, trace: bool = False) -> Optional[int]:
    """Feed one input line. Returns an exit status, or None to keep going.

    A line that leaves a quote or an escape open is kept and joined with the
    next one.
    """
    text = line if session.pending is None else session.pending + "\n" + line
    parser = session.parser
    if trace:
        sys.stdout.write(describe(text, parser) + "\n")
    commands = parser.parse(text)
    if parser.status.kind is ErrorKind.UNEXPECTED_EOF:
        session.pending = text
        return None
    session.pending = None
    if not parser.status.ok:
        report_error(parser.status)
        return None
    if commands is None:
        return None
    try:
        if not trace:
            sys.stdout.write(render(commands) + "\n")
        sys.stdout.flush()
        if not apply_commands(commands, session):
            return 0
    finally:
        free(commands)
    return None


def run_command(text: str, session: ShellSession, *, trace: bool = False) -> int:
    """Parse a single string (``-c``); 0 on success, 2 on a parse error."""
    parser = session.parser
    if trace:
        sys.stdout.write(describe(text, parser) + "\n")
        sys.stdout.flush()
        return 0 if parser.status.ok else 2
    commands = parser.parse(text)
    if not parser.status.ok:
        report_error(parser.status)
        return 2
    if commands is not None:
        sys.stdout.write(render(commands) + "\n")
        sys.stdout.flush()
        free(commands)
    return 0


def setup_readline() -> None:
    if not READLINE_ACTIVE:
        return
    try:
        readline.parse_and_bind("set editing-mode emacs")
        readline.parse_and_bind("Control-l: clear-screen")
    except Exception:
        pass


def repl(session: ShellSession, *, trace: bool = False) -> int:
    setup_readline()
    while True:
        prompt = CONTINUATION_PROMPT if session.in_multi_line else PROMPT
        try:
            line = input(prompt)
        except EOFError:
            # Ctrl-D -> exit
            print()
            break
        except KeyboardInterrupt:
            # Ctrl-C drops whatever is pending
            print()
            session.pending = None
            continue

        if line == "" and not session.in_multi_line:
            continue

        rc = execute_line(line, session, trace=trace)
        if rc is not None:
            return rc

    if session.in_multi_line:
        report_error(session.parser.status)
        return 2
    return 0


def parse_args(args=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="minish - parse minimal shell command lines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  minish                          # interactive: print each parsed line
  minish -c "ls | sort >out &"    # parse one string and exit
  minish --trace -c "bg -1"       # show the full diagnostic block

Environment:
  MINISH_MAX_LENGTH  identifier buffer capacity (default 2047)
  MINISH_PROMPT      primary prompt (default "minish> ")
"""
    )

    parser.add_argument(
        "--command", "-c",
        metavar="TEXT",
        help="Parse TEXT instead of reading lines interactively"
    )
    parser.add_argument(
        "--max-length",
        metavar="N",
        type=int,
        default=None,
        help="Capacity of the identifier and variable-name buffers"
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print input, status and result for every parse"
    )

    ns = parser.parse_args(args)
    if ns.max_length is None:
        try:
            ns.max_length = default_max_length()
        except ValueError:
            parser.error("MINISH_MAX_LENGTH must be an integer")
    if ns.max_length < 1:
        parser.error("--max-length must be positive")
    return ns


def main() -> None:
    args = parse_args()
    session = ShellSession(inherit_env=True, max_length=args.max_length)
    if args.command is not None:
        sys.exit(run_command(args.command, session, trace=args.trace))
    sys.exit(repl(session, trace=args.trace))


if __name__ == "__main__":
    main()
