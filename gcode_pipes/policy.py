# gcode_pipes/policy.py
from __future__ import annotations
from dataclasses import dataclass


@dataclass
class FanOptimizerConfig:
    smooth_time_ms: float = 300.0              # 0 disables smoothing
    smoothing_reset_threshold_mm: float = 20.0
    speedup_time_ms: float = 500.0             # 0 disables premature activation

    @property
    def smoothing_enabled(self) -> bool:
        return self.smooth_time_ms > 0

    @property
    def speedup_enabled(self) -> bool:
        return self.speedup_time_ms > 0


@dataclass
class ReportConfig:
    out_dir: str = "results"
    window_ms: float = 300.0    # duty changes closer than this count as rapid
    dpi: int = 150
