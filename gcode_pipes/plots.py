# gcode_pipes/plots.py
from __future__ import annotations
from pathlib import Path

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

from .fan_profile import FanProfile

COLORS = {
    "original": "#E63946",
    "processed": "#2A9D8F",
}


def _step_series(profile: FanProfile):
    """Duty as a step function starting at 0 and held until the end of the print."""
    end = max(profile.total_time_ms, profile.times_ms.max() if len(profile) else 0.0)
    t = np.concatenate(([0.0], profile.times_ms, [end])) / 1000.0
    d = np.concatenate(([0.0], profile.duty, [profile.duty[-1] if len(profile) else 0.0]))
    return t, d


def plot_fan_profiles(original: FanProfile, processed: FanProfile,
                      output_path: Path, dpi: int = 150) -> Path:
    fig, ax = plt.subplots(figsize=(10, 4))

    for label, profile in (("original", original), ("processed", processed)):
        t, d = _step_series(profile)
        ax.step(t, d, where="post", color=COLORS[label], linewidth=1.5, alpha=0.85,
                label=f"{label.capitalize()} ({len(profile)} changes)")

    ax.set_xlabel("Simulated time (s)")
    ax.set_ylabel("Fan duty")
    ax.set_ylim(-5, 260)
    ax.grid(True, alpha=0.4, linestyle="--", linewidth=0.8)
    ax.legend(loc="upper right")

    plt.tight_layout()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return output_path
