# gcode_pipes/fan_profile.py
"""
Fan duty profiles of gcode files, for comparing original and processed output.

The profile is reconstructed with the same Toolhead/Fan simulators the pipes
use, so times are simulated stream milliseconds.
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable

import numpy as np
import pandas as pd

from .fan import Fan
from .gcode import parse_line
from .toolhead import Toolhead


@dataclass
class FanProfile:
    times_ms: np.ndarray     # simulated time of each duty change
    duty: np.ndarray         # duty after each change
    fan_commands: int        # M106/M107 lines, including ones that changed nothing
    total_time_ms: float

    def __len__(self) -> int:
        return len(self.times_ms)


def extract_fan_profile(lines: Iterable[str]) -> FanProfile:
    toolhead = Toolhead()
    fan = Fan()
    times = []
    duties = []
    fan_commands = 0

    for line in lines:
        g = parse_line(line, command_only=True)
        if g.command in Toolhead.SUPPORTED_GCODES:
            toolhead.apply(parse_line(line))
        elif g.command in Fan.SUPPORTED_GCODES:
            fan_commands += 1
            fan.apply(parse_line(line))
            if fan.delta != 0:
                times.append(toolhead.current_time_ms)
                duties.append(fan.duty)

    return FanProfile(
        times_ms=np.array(times, dtype=float),
        duty=np.array(duties, dtype=float),
        fan_commands=fan_commands,
        total_time_ms=toolhead.current_time_ms,
    )


def read_fan_profile(path: Path) -> FanProfile:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return extract_fan_profile(f)


def rapid_changes(profile: FanProfile, window_ms: float) -> int:
    """Number of duty changes that follow the previous change within ``window_ms``."""
    if len(profile) < 2:
        return 0
    gaps = np.diff(profile.times_ms)
    return int((gaps < window_ms).sum())


def summarize(profile: FanProfile, window_ms: float) -> Dict[str, float]:
    if len(profile):
        duty_min, duty_max = float(profile.duty.min()), float(profile.duty.max())
    else:
        duty_min = duty_max = 0.0
    return {
        "fan_commands": profile.fan_commands,
        "duty_changes": len(profile),
        "rapid_changes": rapid_changes(profile, window_ms),
        "duty_min": duty_min,
        "duty_max": duty_max,
        "total_time_s": profile.total_time_ms / 1000.0,
    }


def summarize_run_log(path: Path) -> pd.DataFrame:
    """Count run log rows per pipe and action."""
    df = pd.read_csv(path)
    if df.empty:
        return pd.DataFrame(columns=["pipe", "action", "count"])
    return (
        df.groupby(["pipe", "action"])
        .size()
        .reset_index(name="count")
        .sort_values(["pipe", "action"])
        .reset_index(drop=True)
    )
