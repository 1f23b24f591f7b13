# gcode_pipes/pipe.py
from __future__ import annotations
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from .gcode import GCode
from .logger import RunLog


class PipeState(Enum):
    UNINITIALIZED = "uninitialized"
    WARMED = "warmed"
    COOLING = "cooling"
    TERMINAL = "terminal"


class PipeStateError(RuntimeError):
    pass


class Pipe:
    """
    A single gcode transformation stage.

    Subclasses implement ``input`` and forward results with ``output``; a pipe may
    drop, delay, rewrite or inject commands. ``on_warmup`` runs before the first
    input and ``on_cooldown`` after the last one; the latter must flush anything
    still buffered. Pipes are linked through ``next_pipe`` by the processor,
    which also drives the lifecycle of every pipe in chain order.
    """

    name = "pipe"

    def __init__(self, run_log: Optional[RunLog] = None):
        self._supported_commands: set = set()
        self.next_pipe: Optional[Pipe] = None
        self.state = PipeState.UNINITIALIZED
        self.run_log = run_log

    @property
    def supported_commands(self) -> FrozenSet[str]:
        """Commands whose parameters this pipe interprets."""
        return frozenset(self._supported_commands)

    def add_supported_commands(self, commands: Iterable[str]) -> None:
        self._supported_commands.update(commands)

    def supports_command(self, g: GCode, commands: Optional[Iterable[str]] = None) -> bool:
        if commands is None:
            commands = self._supported_commands
        return g.command in commands

    def on_warmup(self) -> None:
        pass

    def on_cooldown(self) -> None:
        pass

    def warmup(self) -> None:
        if self.state is not PipeState.UNINITIALIZED:
            raise PipeStateError(f"{self.name}: warmup called in state {self.state.value}")
        self.on_warmup()
        self.state = PipeState.WARMED

    def cooldown(self) -> None:
        if self.state in (PipeState.COOLING, PipeState.TERMINAL):
            raise PipeStateError(f"{self.name}: cooldown called in state {self.state.value}")
        self.state = PipeState.COOLING
        try:
            self.on_cooldown()
        finally:
            self.state = PipeState.TERMINAL

    def accept(self, g: GCode) -> None:
        if self.state is not PipeState.WARMED:
            raise PipeStateError(f"{self.name}: input received in state {self.state.value}")
        self.input(g)

    def input(self, g: GCode) -> None:
        raise NotImplementedError

    def output(self, g: GCode) -> None:
        if self.next_pipe is None:
            return
        self.next_pipe.accept(g)

    def log(self, t_ms: float, action: str, duty=None, detail: str = "") -> None:
        if self.run_log is not None:
            self.run_log.record(t_ms, self.name, action, duty, detail)
