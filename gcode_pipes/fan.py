# gcode_pipes/fan.py
from __future__ import annotations

from .gcode import GCode, GCommand


class Fan:
    """Tracks the part cooling fan duty [0-255] from M106/M107."""

    SUPPORTED_GCODES = frozenset({GCommand.SET_FAN_SPEED, GCommand.TURN_OFF_FAN})

    def __init__(self, duty: float = 0.0):
        self._duty = float(duty)
        self.delta: float = 0.0    # change caused by the last applied gcode

    @property
    def duty(self) -> float:
        return self._duty

    def set_duty(self, duty: float) -> None:
        self.delta = duty - self._duty
        self._duty = duty

    def apply(self, g: GCode) -> None:
        self.delta = 0.0
        if g.command == GCommand.SET_FAN_SPEED:
            s = g.number("S")
            if s is not None:
                self.set_duty(s)
        elif g.command == GCommand.TURN_OFF_FAN:
            self.set_duty(0.0)

    def to_command(self) -> GCode:
        """Bake the current duty into an M106."""
        return GCode(command=GCommand.SET_FAN_SPEED, params={"S": f"{self._duty:.2f}"})
