# Builtin commands recognized by the parser

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from errors import ErrorKind
from groups import ChangeDirectory, Command, EnvironmentUpdate, Exit, JobControl, JobKind

# C-style "%i": optional sign, then hex (0x..), octal (leading 0) or decimal.
_INT_PATTERN = re.compile(r"\s*([+-]?)(?:0[xX]([0-9a-fA-F]+)|(0[0-7]*)|([1-9][0-9]*))")


class BuiltinError(Exception):
    """A builtin's arguments were rejected; ``kind`` says why."""

    def __init__(self, kind: ErrorKind) -> None:
        super().__init__(kind.name)
        self.kind = kind


def parse_job_id(text: str) -> int:
    m = _INT_PATTERN.match(text)
    if not m:
        raise BuiltinError(ErrorKind.ILLEGAL_ARGUMENT)
    sign, hex_digits, octal_digits, decimal_digits = m.groups()
    if hex_digits is not None:
        value = int(hex_digits, 16)
    elif octal_digits is not None:
        value = int(octal_digits, 8)
    else:
        value = int(decimal_digits)
    if sign == '-':
        value = -value
    if value < 0:
        raise BuiltinError(ErrorKind.ILLEGAL_ARGUMENT)
    return value


def _exit(args: List[str]) -> Command:
    return Exit()


def _cd(args: List[str]) -> Command:
    return ChangeDirectory(path=args[0] if args else None)


def _setenv(args: List[str]) -> Command:
    return EnvironmentUpdate(name=args[0], value=args[1])


def _unsetenv(args: List[str]) -> Command:
    return EnvironmentUpdate(name=args[0], value=None)


def _job(kind: JobKind) -> Callable[[List[str]], Command]:
    def build(args: List[str]) -> Command:
        job_id = parse_job_id(args[0]) if args else None
        return JobControl(kind=kind, id=job_id)
    return build


@dataclass(frozen=True)
class Builtin:
    name: str
    min_args: int
    max_args: int
    factory: Callable[[List[str]], Command]

    def build(self, argv: List[str]) -> Command:
        """Turn a full stage argv (name included) into the builtin command.

        Words beyond ``max_args`` are dropped.
        """
        args = argv[1:1 + self.max_args]
        if len(args) < self.min_args:
            raise BuiltinError(ErrorKind.MISSING_ARGUMENT)
        return self.factory(args)


builtin_commands: Dict[str, Builtin] = {
    b.name: b for b in (
        Builtin("exit", 0, 0, _exit),
        Builtin("cd", 0, 1, _cd),
        Builtin("setenv", 2, 2, _setenv),
        Builtin("unsetenv", 1, 1, _unsetenv),
        Builtin("jobs", 0, 1, _job(JobKind.INFO)),
        Builtin("bg", 0, 1, _job(JobKind.BACKGROUND)),
        Builtin("fg", 0, 1, _job(JobKind.FOREGROUND)),
    )
}


def lookup_builtin(name: str) -> Optional[Builtin]:
    return builtin_commands.get(name)
