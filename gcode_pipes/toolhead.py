# gcode_pipes/toolhead.py
from __future__ import annotations
from typing import Optional

import numpy as np

from .gcode import GCode, GCommand

# index of each axis in position/displacement vectors
X, Y, Z, E = range(4)
AXES = "XYZE"


class Toolhead:
    """
    Reconstructs toolhead position and a rough time estimate from motion gcode.

    Time only advances on G0/G1: each move takes ``length / velocity`` where the
    velocity is the last seen feed rate. Acceleration is recorded but does not
    take part in the estimate.
    """

    SUPPORTED_GCODES = frozenset({
        GCommand.ABSOLUTE_POSITIONING,
        GCommand.RELATIVE_POSITIONING,
        GCommand.ABSOLUTE_EXTRUSION,
        GCommand.RELATIVE_EXTRUSION,
        GCommand.RAPID_MOVE,
        GCommand.MOVE,
        GCommand.SET_POSITION,
        GCommand.SET_DEFAULT_ACCELERATION,
    })

    MOVE_GCODES = frozenset({GCommand.RAPID_MOVE, GCommand.MOVE})

    def __init__(self):
        self.position = np.zeros(4)
        self.positioning_mode: str = GCommand.ABSOLUTE_POSITIONING
        self.extrusion_mode: str = GCommand.ABSOLUTE_EXTRUSION
        self.last_move_displacement = np.zeros(4)
        self.velocity: float = 0.0       # mm/s
        self.acceleration: Optional[float] = None  # mm/s^2, informational
        self.current_time_ms: float = 0.0

    @staticmethod
    def is_free_move(d: np.ndarray) -> bool:
        """Non-print move: travels in XY without extruding."""
        return bool((d[X] != 0 or d[Y] != 0) and d[E] == 0)

    @staticmethod
    def is_layer_change(d: np.ndarray) -> bool:
        return bool(d[X] == 0 and d[Y] == 0 and d[Z] != 0)

    @staticmethod
    def move_length(d: np.ndarray) -> float:
        """Length of the displacement, extrusion axis excluded."""
        return float(np.linalg.norm(d[:E]))

    def apply(self, g: GCode) -> None:
        if g.command not in self.SUPPORTED_GCODES:
            return
        self.set_position(g)
        self.set_positioning_mode(g)
        self.set_extrusion_mode(g)
        self.set_acceleration(g)
        self.move(g)

    def set_position(self, g: GCode) -> np.ndarray:
        if g.command == GCommand.SET_POSITION:
            for axis, name in enumerate(AXES):
                value = g.number(name)
                if value is not None:
                    self.position[axis] = value
        return self.position

    def set_positioning_mode(self, g: GCode) -> str:
        if g.command in (GCommand.ABSOLUTE_POSITIONING, GCommand.RELATIVE_POSITIONING):
            self.positioning_mode = g.command
        return self.positioning_mode

    def set_extrusion_mode(self, g: GCode) -> str:
        if g.command in (GCommand.ABSOLUTE_EXTRUSION, GCommand.RELATIVE_EXTRUSION):
            self.extrusion_mode = g.command
        return self.extrusion_mode

    def set_acceleration(self, g: GCode) -> Optional[float]:
        if g.command == GCommand.SET_DEFAULT_ACCELERATION:
            value = g.number("S")
            if value is None:
                value = g.number("P")
            if value is not None:
                self.acceleration = value
        return self.acceleration

    def move(self, g: GCode) -> Optional[np.ndarray]:
        """Execute a G0/G1. Returns the displacement, or None for other commands."""
        if g.command not in self.MOVE_GCODES:
            return None

        self.last_move_displacement = np.zeros(4)

        f = g.number("F")
        if f is not None:
            self.velocity = f / 60.0

        absolute_xyz = self.positioning_mode == GCommand.ABSOLUTE_POSITIONING
        absolute_e = self.extrusion_mode == GCommand.ABSOLUTE_EXTRUSION
        for axis, name in enumerate(AXES):
            value = g.number(name)
            if value is None:
                continue
            absolute = absolute_e if axis == E else absolute_xyz
            if absolute:
                self.last_move_displacement[axis] = value - self.position[axis]
                self.position[axis] = value
            else:
                self.last_move_displacement[axis] = value
                self.position[axis] += value

        self._update_time()
        return self.last_move_displacement

    def _update_time(self) -> None:
        # no feed rate seen yet: the move is treated as instantaneous
        if self.velocity <= 0:
            return
        distance = self.move_length(self.last_move_displacement)
        self.current_time_ms += distance / self.velocity * 1000.0
