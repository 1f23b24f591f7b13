#!/usr/bin/env python3
"""
Command line entry point for gcode post-processing modules.

Usage:
    gcode-pipes fan-optimizer print.gcode --smooth-time 300 --speedup-time 500
    gcode-pipes fan-report original.gcode print.gcode --run-log results/fan_log.csv

``fan-optimizer`` rewrites the file in place (suitable as a slicer
post-processing script). ``fan-report`` compares fan duty profiles of two files
and saves a plot.
"""

from __future__ import annotations

import argparse
import sys
import traceback
from pathlib import Path
from typing import Optional

from .fan_optimizer import optimize_fan
from .logger import RunLog
from .policy import FanOptimizerConfig, ReportConfig


def check_filepath(value) -> Optional[str]:
    """Error message when the path is missing or is not a regular file, else None."""
    path = Path(value)
    if not str(value).strip() or not path.exists():
        return f"File by path '{value}' does not exist!"
    if not path.is_file():
        return f"Entity by path '{value}' is not a file!"
    return None


def check_non_negative(**values) -> Optional[str]:
    for name, v in values.items():
        if v < 0:
            return f"--{name.replace('_', '-')} expects a non-negative number, got {v:g}"
    return None


def report_invalid(*errors) -> bool:
    """Print every validation error. Returns True when there was any."""
    errors = [e for e in errors if e]
    for e in errors:
        print(f"ERROR: {e}", file=sys.stderr)
    return bool(errors)


def build_parser() -> argparse.ArgumentParser:
    fan_defaults = FanOptimizerConfig()
    report_defaults = ReportConfig()

    ap = argparse.ArgumentParser(prog="gcode-pipes", description="Gcode post-processing pipelines.")
    sub = ap.add_subparsers(dest="module", metavar="MODULE")
    sub.required = True

    fo = sub.add_parser(
        "fan-optimizer",
        help="Smooth rapid fan speed changes and activate the fan ahead of time.",
        description="Allows smoothing of rapid fan speed changes. Allows for premature fan "
                    "speedup to give the fan some time to gain requested speed.",
    )
    fo.add_argument("filepath", help="Path to the file to process")
    fo.add_argument("--smooth-time", type=float, default=fan_defaults.smooth_time_ms,
                    help="[ms] Smooths frequent fan speed changes over specified time period (0 disables)")
    fo.add_argument("--smoothing-reset-threshold", type=float,
                    default=fan_defaults.smoothing_reset_threshold_mm,
                    help="[mm] Reset fan smoothing if non-print move longer than this value was performed")
    fo.add_argument("--speedup-time", type=float, default=fan_defaults.speedup_time_ms,
                    help="[ms] Activate fan N ms before to let it gain requested speed (0 disables)")
    fo.add_argument("--csv", dest="csvfile", default=None, help="Write a CSV run log of fan actions")
    fo.set_defaults(handler=run_fan_optimizer)

    fr = sub.add_parser("fan-report", help="Compare fan duty profiles of two gcode files.")
    fr.add_argument("original", help="Original gcode")
    fr.add_argument("processed", help="Processed gcode")
    fr.add_argument("--out-dir", default=report_defaults.out_dir, help="Directory for the plot")
    fr.add_argument("--run-log", default=None, help="CSV run log written by fan-optimizer --csv")
    fr.add_argument("--window", type=float, default=report_defaults.window_ms,
                    help="[ms] Duty changes closer than this are counted as rapid")
    fr.add_argument("--dpi", type=int, default=report_defaults.dpi, help="Plot resolution")
    fr.set_defaults(handler=run_fan_report)

    return ap


def run_fan_optimizer(args) -> int:
    if report_invalid(
        check_filepath(args.filepath),
        check_non_negative(
            smooth_time=args.smooth_time,
            smoothing_reset_threshold=args.smoothing_reset_threshold,
            speedup_time=args.speedup_time,
        ),
    ):
        return 1

    cfg = FanOptimizerConfig(
        smooth_time_ms=args.smooth_time,
        smoothing_reset_threshold_mm=args.smoothing_reset_threshold,
        speedup_time_ms=args.speedup_time,
    )
    run_log = RunLog()

    try:
        result = optimize_fan(args.filepath, cfg, run_log)
    except Exception as e:
        print(f"ERROR: Failed to process G-code: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1

    print(f"[OK] Processed G-code: {result.path} ({result.lines_in} -> {result.lines_out} lines)")
    for change in run_log.changes:
        print(f"  {change}")

    if args.csvfile:
        try:
            run_log.write_csv(Path(args.csvfile))
        except OSError as e:
            print(f"WARNING: Failed to write CSV log: {e}", file=sys.stderr)
            return 1
        print(f"[OK] Saved CSV run log: {args.csvfile} ({len(run_log)} entries)")
    return 0


def run_fan_report(args) -> int:
    # plotting stack is only needed here
    from .fan_profile import read_fan_profile, summarize, summarize_run_log
    from .plots import plot_fan_profiles

    if report_invalid(
        check_filepath(args.original),
        check_filepath(args.processed),
        check_non_negative(window=args.window),
    ):
        return 1

    original = read_fan_profile(args.original)
    processed = read_fan_profile(args.processed)

    print("=== Fan duty profiles ===")
    for label, profile in (("Original", original), ("Processed", processed)):
        s = summarize(profile, args.window)
        print(f"{label}: {s['fan_commands']} fan commands, {s['duty_changes']} duty changes, "
              f"{s['rapid_changes']} within {args.window:g} ms, "
              f"duty {s['duty_min']:.0f}-{s['duty_max']:.0f}, {s['total_time_s']:.1f} s")

    if args.run_log:
        log_path = Path(args.run_log)
        if not log_path.exists():
            print(f"WARNING: run log not found: {log_path}", file=sys.stderr)
        else:
            print("\n=== Run log ===")
            print(summarize_run_log(log_path).to_string(index=False))

    out = plot_fan_profiles(original, processed, Path(args.out_dir) / "fan_profile_comparison.png", args.dpi)
    print(f"[OK] Saved: {out}")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
