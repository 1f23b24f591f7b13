# gcode_pipes/output_pipe.py
from __future__ import annotations
from pathlib import Path
from typing import IO, Optional

from .gcode import GCode
from .pipe import Pipe


class OutputPipe(Pipe):
    """Terminal pipe: writes every incoming gcode to ``out_path``."""

    name = "output"

    def __init__(self, out_path: Path):
        super().__init__()
        self.out_path = Path(out_path)
        self.lines_written = 0
        self._f: Optional[IO[str]] = None

    def on_warmup(self) -> None:
        # truncates an existing file
        self._f = self.out_path.open("w", encoding="utf-8", newline="\n")

    def on_cooldown(self) -> None:
        if self._f is not None:
            self._f.close()
            self._f = None

    def input(self, g: GCode) -> None:
        self._f.write(g.render())
        self.lines_written += 1
