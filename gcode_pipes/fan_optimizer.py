# gcode_pipes/fan_optimizer.py
from __future__ import annotations
from pathlib import Path
from typing import Optional

from .logger import RunLog
from .policy import FanOptimizerConfig
from .premature_fan import PrematureFanPipe
from .processor import GCodeProcessor, ProcessResult
from .smooth_fan import SmoothFanPipe


def build_processor(cfg: FanOptimizerConfig, run_log: Optional[RunLog] = None) -> GCodeProcessor:
    """Premature activation first, so smoothing can merge the commands it duplicates."""
    processor = GCodeProcessor()
    if cfg.speedup_enabled:
        processor.add_pipe(PrematureFanPipe(cfg.speedup_time_ms, run_log))
    if cfg.smoothing_enabled:
        processor.add_pipe(SmoothFanPipe(cfg.smooth_time_ms, cfg.smoothing_reset_threshold_mm, run_log))
    return processor


def optimize_fan(path: Path, cfg: FanOptimizerConfig, run_log: Optional[RunLog] = None) -> ProcessResult:
    processor = build_processor(cfg, run_log)
    result = processor.run(path)
    if run_log is not None:
        emitted = sum(1 for r in run_log.rows if r["action"] == "emit")
        advanced = sum(1 for r in run_log.rows if r["action"] == "advance")
        if cfg.smoothing_enabled:
            run_log.note(f"Smoothing emitted {emitted} fan command(s) over {cfg.smooth_time_ms:g} ms windows.")
        if cfg.speedup_enabled:
            run_log.note(f"Advanced {advanced} fan speed-up(s) by {cfg.speedup_time_ms:g} ms.")
        run_log.note(f"Processed {result.lines_in} lines into {result.lines_out} lines.")
    return result
