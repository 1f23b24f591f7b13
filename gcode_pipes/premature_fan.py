# gcode_pipes/premature_fan.py
from __future__ import annotations
from typing import Optional

from .fan import Fan
from .gcode import GCode
from .logger import RunLog
from .pipe import Pipe
from .timeline import Timeline
from .toolhead import Toolhead


class PrematureFanPipe(Pipe):
    """
    Moves fan commands that increase the duty back in time by ``speedup_time_ms``,
    giving the fan time to spin up before the feature that asked for it.

    The original fan command is kept in place. Meant to run before
    ``SmoothFanPipe``, which merges the resulting pairs.
    """

    name = "premature_fan"

    def __init__(self, speedup_time_ms: float, run_log: Optional[RunLog] = None):
        super().__init__(run_log)
        self.speedup_time_ms = speedup_time_ms
        self.timeline: Timeline[GCode] = Timeline(speedup_time_ms)
        self.fan = Fan()
        self.toolhead = Toolhead()
        self._unsubscribe = None

        self.add_supported_commands(Toolhead.SUPPORTED_GCODES)
        self.add_supported_commands(Fan.SUPPORTED_GCODES)

    def on_warmup(self) -> None:
        self._unsubscribe = self.timeline.on_expiry(lambda _, g: self.output(g))

    def on_cooldown(self) -> None:
        self.timeline.reset()
        if self._unsubscribe is not None:
            self._unsubscribe()

    def input(self, g: GCode) -> None:
        if self.supports_command(g, Toolhead.SUPPORTED_GCODES):
            self.toolhead.apply(g)

        increased = False
        if self.supports_command(g, Fan.SUPPORTED_GCODES):
            self.fan.apply(g)
            increased = self.fan.delta > 0

        now = self.toolhead.current_time_ms
        if increased:
            advanced_to = now - self.speedup_time_ms
            # ahead of everything already scheduled at the advanced time
            self.timeline.insert(advanced_to, self.fan.to_command(), before_equal=True)
            self.log(now, "advance", self.fan.duty, f"inserted at {advanced_to:.1f} ms")

        self.timeline.insert(now, g)
