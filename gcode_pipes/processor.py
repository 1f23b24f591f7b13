# gcode_pipes/processor.py
from __future__ import annotations
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Set

from .gcode import parse_line
from .output_pipe import OutputPipe
from .pipe import Pipe, PipeState


@dataclass
class ProcessResult:
    path: Path
    lines_in: int
    lines_out: int


def output_path_for(path: Path) -> Path:
    """Sibling file the processed gcode is written to before it replaces ``path``."""
    path = Path(path)
    return path.with_name(f"{path.stem}-out{path.suffix}")


def read_lines(path: Path) -> Iterator[str]:
    with open(path, "r", encoding="utf-8", errors="replace", newline=None) as f:
        for line in f:
            yield line.rstrip("\n")


class GCodeProcessor:
    """
    Runs a gcode file through user supplied pipes and replaces it with the result.

    Pipes are chained in the order they were added; an ``OutputPipe`` writing to
    a sibling file terminates the chain.
    """

    def __init__(self):
        self.pipeline: List[Pipe] = []

    def add_pipe(self, pipe: Pipe) -> None:
        self.pipeline.append(pipe)

    def run(self, input_path) -> ProcessResult:
        """
        1. Warm up every pipe, head first
        2. Feed every line of ``input_path`` to the head pipe
        3. Cool down every pipe, head first, even if feeding or another cooldown failed
        4. Replace the original file with the output (only on success)

        The caller is expected to have checked that ``input_path`` is a file.
        """
        in_path = Path(input_path).resolve()
        out_path = output_path_for(in_path)

        sink = OutputPipe(out_path)
        pipeline = self.pipeline + [sink]
        supported = self.connect_pipes(pipeline)

        lines_in = 0
        try:
            for pipe in pipeline:
                pipe.warmup()

            head = pipeline[0]
            for line in read_lines(in_path):
                g = parse_line(line, command_only=True)
                # only commands some pipe interprets get their parameters parsed
                if g.command in supported:
                    g = parse_line(line)
                head.accept(g)
                lines_in += 1
        except BaseException:
            # the streaming error wins over anything cooldown raises
            error = self.cooldown_pipes(pipeline)
            if error is not None:
                print(f"WARNING: cooldown after failure also failed: {error!r}", file=sys.stderr)
            raise

        error = self.cooldown_pipes(pipeline)
        if error is not None:
            raise error

        os.replace(out_path, in_path)
        return ProcessResult(path=in_path, lines_in=lines_in, lines_out=sink.lines_written)

    @staticmethod
    def cooldown_pipes(pipeline: List[Pipe]) -> Optional[Exception]:
        """Cool down every warmed pipe, head first. Returns the first failure, if any."""
        first_error = None
        for pipe in pipeline:
            if pipe.state is not PipeState.WARMED:
                continue
            try:
                pipe.cooldown()
            except Exception as e:
                if first_error is None:
                    first_error = e
                else:
                    print(f"WARNING: {pipe.name} failed to cool down: {e!r}", file=sys.stderr)
        return first_error

    @staticmethod
    def connect_pipes(pipeline: List[Pipe]) -> Set[str]:
        """Link each pipe to its successor. Returns all commands the pipes support."""
        supported: Set[str] = set()
        for prev, pipe in zip([None] + pipeline[:-1], pipeline):
            supported |= pipe.supported_commands
            if prev is not None:
                prev.next_pipe = pipe
        return supported
