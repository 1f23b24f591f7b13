# gcode_pipes/gcode.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional
import math
import re


class GCommand:
    """Command names the simulators interpret. Anything else stays a plain string."""
    COMMENT = ";"
    SET_FAN_SPEED = "M106"
    TURN_OFF_FAN = "M107"
    RAPID_MOVE = "G0"
    MOVE = "G1"
    ABSOLUTE_POSITIONING = "G90"
    RELATIVE_POSITIONING = "G91"
    ABSOLUTE_EXTRUSION = "M82"
    RELATIVE_EXTRUSION = "M83"
    SET_POSITION = "G92"
    SET_DEFAULT_ACCELERATION = "M204"


# leading token of a line, or the comment marker
_COMMAND_RE = re.compile(r";|[^ ]+")
# a trailing comment, or a run of non-space, non-comment characters
_TOKEN_RE = re.compile(r";.*|[^ ;]+")


@dataclass
class GCode:
    command: str = ""                  # e.g. "G1", ";" for comment-only lines
    params: Dict[str, str] = field(default_factory=dict)  # e.g. {"X": "10", ";": " note"}
    raw: Optional[str] = None          # set by the name-only parse

    def get(self, key: str, default=None):
        return self.params.get(key.upper(), default)

    def number(self, key: str) -> Optional[float]:
        """Numeric value of a parameter, None when it is absent, empty or not a finite number."""
        value = self.get(key)
        if not value:
            return None
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None

    def set(self, key: str, value) -> None:
        self.params[key.upper()] = str(value)

    @property
    def is_comment(self) -> bool:
        return self.command == GCommand.COMMENT

    def render(self) -> str:
        """Encode the command and its parameters into one line with a trailing newline."""
        if self.raw is not None:
            return self.raw.strip() + "\n"

        parts = []
        if self.command != GCommand.COMMENT:
            parts.append(self.command)
        for key, value in self.params.items():
            if not value:
                parts.append(key)
            elif len(key) > 1:
                parts.append(f"{key}={value}")
            else:
                parts.append(f"{key}{value}")
        return " ".join(parts) + "\n"

    def __str__(self) -> str:
        return self.render().rstrip("\n")


def parse_line(line: str, command_only: bool = False) -> GCode:
    """
    Parse one line of gcode.

    With ``command_only`` only the leading token is extracted and the line is kept
    verbatim so it can be written back unchanged. Otherwise the parameters are
    parsed as well, accepting both ``KEY=VALUE`` (Klipper) and ``KVALUE``
    (RepRap/Marlin) tokens. A ``;`` token swallows the rest of the line.
    """
    line = line.rstrip("\r\n")

    if command_only:
        m = _COMMAND_RE.search(line)
        return GCode(command=m.group(0) if m else "", raw=line)

    tokens = _TOKEN_RE.findall(line)
    if not tokens:
        return GCode()

    g = GCode()
    if tokens[0].startswith(GCommand.COMMENT):
        g.command = GCommand.COMMENT
    else:
        g.command = tokens.pop(0)

    for t in tokens:
        if t.startswith(GCommand.COMMENT):
            key, value = GCommand.COMMENT, t[1:]
        elif "=" in t:
            key, value = t.split("=", 1)
        else:
            key, value = t[0], t[1:]
        g.params[key.upper()] = value
    return g
