"""Command model for parsed minish lines.

A successful parse yields a singly linked list of commands. Builtins are
handled by the shell itself; ``Program`` is one external invocation and
``Pipeline`` is a ``Program`` whose stages are chained through
``next_stage``. The list is owned by the caller until ``CommandList.release``
(or ``ops.free``) tears it down.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional


class JobKind(Enum):
    INFO = "jobs"
    BACKGROUND = "bg"
    FOREGROUND = "fg"


@dataclass(eq=False)
class Command:
    """Base of every list node; ``next`` is the following top-level command."""
    next: Optional[Command] = field(default=None, init=False, repr=False)

    def release(self) -> None:
        self.next = None


@dataclass(eq=False)
class Exit(Command):
    pass


@dataclass(eq=False)
class ChangeDirectory(Command):
    path: Optional[str] = None

    def release(self) -> None:
        self.path = None
        super().release()


@dataclass(eq=False)
class EnvironmentUpdate(Command):
    """setenv/unsetenv; ``value`` is None for unsetenv."""
    name: str = ""
    value: Optional[str] = None

    @property
    def is_unset(self) -> bool:
        return self.value is None

    def release(self) -> None:
        self.name = ""
        self.value = None
        super().release()


@dataclass(eq=False)
class JobControl(Command):
    kind: JobKind = JobKind.INFO
    id: Optional[int] = None


@dataclass(eq=False)
class Program(Command):
    """One stage: an external program with its argv and redirections."""
    args: List[str] = field(default_factory=list)
    input: Optional[str] = None
    output: Optional[str] = None
    background: bool = False
    next_stage: Optional[Program] = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.args[0]

    def stages(self) -> Iterator[Program]:
        stage: Optional[Program] = self
        while stage is not None:
            yield stage
            stage = stage.next_stage

    def release(self) -> None:
        # Drop the stage chain from the tail so no stage outlives its owner.
        chain = list(self.stages())
        for stage in reversed(chain):
            stage.args.clear()
            stage.input = None
            stage.output = None
            stage.next_stage = None
        super().release()


@dataclass(eq=False)
class Pipeline(Program):
    """Two or more Program stages joined by pipes."""

    @classmethod
    def promote(cls, program: Program) -> Pipeline:
        pipeline = cls(
            args=program.args,
            input=program.input,
            output=program.output,
            background=program.background,
            next_stage=program.next_stage,
        )
        pipeline.next = program.next
        program.args = []
        program.next_stage = None
        program.next = None
        return pipeline

    def __len__(self) -> int:
        return sum(1 for _ in self.stages())


BUILTIN_TYPES = (Exit, ChangeDirectory, EnvironmentUpdate, JobControl)


class CommandList:
    """Caller-owned handle to the head of a parsed command list."""

    def __init__(self, head: Command) -> None:
        self.head: Optional[Command] = head

    def __iter__(self) -> Iterator[Command]:
        node = self.head
        while node is not None:
            yield node
            node = node.next

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __getitem__(self, index: int) -> Command:
        return list(self)[index]

    @property
    def released(self) -> bool:
        return self.head is None

    def release(self) -> None:
        """Tear the list down tail-first. Safe to call more than once."""
        if self.head is None:
            return
        release_chain(self.head)
        self.head = None

    def __repr__(self) -> str:
        return f"CommandList({list(self)!r})"


def release_chain(head: Optional[Command]) -> None:
    nodes: List[Command] = []
    node = head
    while node is not None:
        nodes.append(node)
        node = node.next
    for node in reversed(nodes):
        node.release()


# --- Formatting (debug / test aid) ---

def format_program(program: Program) -> str:
    parts: List[str] = []
    if program.input is not None:
        parts.append("<" + program.input)
    parts.extend(program.args)
    if program.output is not None:
        parts.append(">" + program.output)
    if program.background:
        parts.append("&")
    return ' '.join(parts)


def format_command(cmd: Command) -> str:
    if isinstance(cmd, Exit):
        return "EXIT"
    if isinstance(cmd, ChangeDirectory):
        return "CD" if cmd.path is None else f"CD {cmd.path}"
    if isinstance(cmd, EnvironmentUpdate):
        if cmd.value is None:
            return f"UNSET {cmd.name}"
        return f"SET {cmd.name}={cmd.value}"
    if isinstance(cmd, JobControl):
        label = {JobKind.INFO: "JOBS", JobKind.BACKGROUND: "BG", JobKind.FOREGROUND: "FG"}[cmd.kind]
        return label if cmd.id is None else f"{label} {cmd.id}"
    if isinstance(cmd, Program):
        return ' | '.join(format_program(stage) for stage in cmd.stages())
    raise TypeError(f"unknown command node: {cmd!r}")


def format_commands(commands: Optional[CommandList]) -> str:
    if commands is None or commands.released:
        return "<empty>"
    return '; '.join(format_command(cmd) for cmd in commands)
