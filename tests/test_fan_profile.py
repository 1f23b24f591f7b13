import pytest

from gcode_pipes.fan_profile import extract_fan_profile, rapid_changes, summarize, summarize_run_log
from gcode_pipes.logger import RunLog
from gcode_pipes.plots import plot_fan_profiles

LINES = [
    ";start",
    "M106 S50",
    "G1 X10 F600",    # 1000 ms
    "M106 S255",
    "G1 X11",         # 1100 ms
    "M106 S255",
    "M107",
    "G1 X20",         # 2000 ms
]


def test_extract_fan_profile():
    profile = extract_fan_profile(LINES)
    assert profile.times_ms.tolist() == pytest.approx([0, 1000, 1100])
    assert profile.duty.tolist() == [50, 255, 0]
    assert profile.fan_commands == 4
    assert profile.total_time_ms == pytest.approx(2000)


def test_rapid_changes():
    profile = extract_fan_profile(LINES)
    assert rapid_changes(profile, 300) == 1
    assert rapid_changes(profile, 50) == 0
    assert rapid_changes(extract_fan_profile([]), 300) == 0


def test_summarize():
    s = summarize(extract_fan_profile(LINES), 300)
    assert s["duty_changes"] == 3
    assert s["rapid_changes"] == 1
    assert (s["duty_min"], s["duty_max"]) == (0, 255)
    assert s["total_time_s"] == pytest.approx(2.0)
    assert summarize(extract_fan_profile([";x"]), 300)["duty_changes"] == 0


def test_summarize_run_log(tmp_path):
    run_log = RunLog()
    run_log.record(0, "smooth_fan", "emit", 255)
    run_log.record(10, "smooth_fan", "emit", 0)
    run_log.record(10, "smooth_fan", "collapse", 0)
    run_log.record(5, "premature_fan", "advance", 255, "inserted at -495.0 ms")
    path = tmp_path / "log.csv"
    run_log.write_csv(path)

    df = summarize_run_log(path)
    assert df.to_dict("records") == [
        {"pipe": "premature_fan", "action": "advance", "count": 1},
        {"pipe": "smooth_fan", "action": "collapse", "count": 1},
        {"pipe": "smooth_fan", "action": "emit", "count": 2},
    ]


def test_summarize_empty_run_log(tmp_path):
    path = tmp_path / "empty.csv"
    RunLog().write_csv(path)
    assert summarize_run_log(path).empty


def test_plot_fan_profiles(tmp_path):
    original = extract_fan_profile(LINES)
    processed = extract_fan_profile([])
    out = plot_fan_profiles(original, processed, tmp_path / "figs" / "fan.png", dpi=50)
    assert out.exists() and out.stat().st_size > 0
