# gcode_pipes/logger.py
from __future__ import annotations
import csv
from pathlib import Path
from typing import Dict, List, Optional

FIELDS = ["t_ms", "pipe", "action", "duty", "detail"]


class RunLog:
    """
    Collects what the pipes did to the stream, keyed by simulated time.

    Rows feed the CSV run log (for plots and verification); ``changes`` is the
    human readable summary printed after a run.
    """

    def __init__(self):
        self.rows: List[Dict[str, object]] = []
        self.changes: List[str] = []

    def __len__(self) -> int:
        return len(self.rows)

    def record(self, t_ms: float, pipe: str, action: str,
               duty: Optional[float] = None, detail: str = "") -> None:
        self.rows.append({
            "t_ms": round(t_ms, 3),
            "pipe": pipe,
            "action": action,
            "duty": "" if duty is None else round(duty, 2),
            "detail": detail,
        })

    def note(self, message: str) -> None:
        self.changes.append(message)

    def write_csv(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=FIELDS)
            w.writeheader()
            for r in self.rows:
                w.writerow(r)
