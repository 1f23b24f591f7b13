# gcode_pipes/smooth_fan.py
from __future__ import annotations
import math
from typing import Callable, List, Optional

from .fan import Fan
from .gcode import GCode
from .logger import RunLog
from .pipe import Pipe
from .timeline import Timeline
from .toolhead import Toolhead

# lets the gcode right before the newest fan sample be released with it
RELEASE_EPSILON_MS = 1e-6


class SmoothFanPipe(Pipe):
    """
    Smooths rapid fan speed changes over ``smooth_time_ms`` by picking the
    maximum duty requested within that time-frame.

    While smoothing, every non-fan gcode is held back in ``gcode_timeline`` and
    every duty change is recorded in ``fan_timeline``. Original fan commands are
    dropped; the resolved maximum is injected in front of the held gcode
    instead. Smoothing is resolved when the time-frame runs out, on a long
    travel move, or on a layer change.
    """

    name = "smooth_fan"

    def __init__(self, smooth_time_ms: float, smoothing_reset_threshold: float,
                 run_log: Optional[RunLog] = None):
        super().__init__(run_log)
        self.smooth_time_ms = smooth_time_ms
        self.smoothing_reset_threshold = smoothing_reset_threshold

        self.fan = Fan()
        self.toolhead = Toolhead()
        self.gcode_timeline: Timeline[GCode] = Timeline(math.inf)
        self.fan_timeline: Timeline[float] = Timeline(math.inf)

        # None until the first value is emitted
        self.last_emitted_duty: Optional[float] = None
        self.emit_conditions: List[Callable[[], bool]] = []
        self._unsubscribe = None

        self.add_supported_commands(Toolhead.SUPPORTED_GCODES)
        self.add_supported_commands(Fan.SUPPORTED_GCODES)

    @property
    def is_smoothing(self) -> bool:
        return bool(self.fan_timeline)

    def on_warmup(self) -> None:
        self._unsubscribe = self.gcode_timeline.on_expiry(lambda _, g: self.output(g))
        self.emit_conditions = [
            self._smooth_time_elapsed,
            self._long_free_move,
            self._layer_changed,
        ]

    def on_cooldown(self) -> None:
        if self.is_smoothing:
            # first pass releases the look-ahead, second one settles on the last duty
            self.emit_fan("end of stream")
            self.emit_fan("end of stream")
        self.fan_timeline.reset()
        self.gcode_timeline.reset()
        if self._unsubscribe is not None:
            self._unsubscribe()

    def input(self, g: GCode) -> None:
        if self.supports_command(g, Toolhead.SUPPORTED_GCODES):
            self.toolhead.apply(g)

        if self.is_smoothing:
            for condition in self.emit_conditions:
                if condition():
                    self.emit_fan(condition.__name__.lstrip("_"))
                    break

        now = self.toolhead.current_time_ms
        if self.supports_command(g, Fan.SUPPORTED_GCODES):
            self.fan.apply(g)
            if self.fan.delta != 0:
                self.fan_timeline.insert(now, self.fan.duty)
        else:
            self.gcode_timeline.insert(now, g)

        if not self.is_smoothing:
            self.gcode_timeline.reset()

    def _smooth_time_elapsed(self) -> bool:
        last = self.fan_timeline.newest()
        return last is not None and self.toolhead.current_time_ms - last[0] >= self.smooth_time_ms

    def _long_free_move(self) -> bool:
        d = self.toolhead.last_move_displacement
        return Toolhead.is_free_move(d) and Toolhead.move_length(d) > self.smoothing_reset_threshold

    def _layer_changed(self) -> bool:
        return Toolhead.is_layer_change(self.toolhead.last_move_displacement)

    def emit_fan(self, reason: str = "") -> None:
        """Emit the smoothed duty and release the gcode it covers."""
        duties = self.fan_timeline.values()
        max_duty = max(duties, default=None)
        now = self.toolhead.current_time_ms

        if max_duty is not None and max_duty >= 0 and max_duty != self.last_emitted_duty:
            # ahead of everything held back
            self.gcode_timeline.insert(-math.inf, Fan(max_duty).to_command())
            self.log(now, "emit", max_duty, reason)

        if len(self.fan_timeline) > 1:
            # keep the newest sample to look ahead for a reversal within the next
            # time-frame; the original duty is restored if none comes
            timestamp, duty = self.fan_timeline.newest()
            self.fan_timeline.reset()
            self.fan_timeline.insert(timestamp, duty)
            self.gcode_timeline.evict_older_than(timestamp + RELEASE_EPSILON_MS)
            self.log(now, "collapse", duty, f"{len(duties)} samples")
        else:
            # a single change was confirmed, nothing to track until the next one
            self.fan_timeline.reset()
            self.gcode_timeline.reset()

        self.last_emitted_duty = max_duty
