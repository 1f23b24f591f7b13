from gcode_pipes.gcode import parse_line
from gcode_pipes.logger import RunLog
from gcode_pipes.premature_fan import PrematureFanPipe


def moves(start, stop):
    # 10 mm travel moves at 100 mm/s: 100 ms each
    return [f"G1 X{x}" for x in range(start, stop + 1, 10)]


def test_speedup_is_moved_back_in_time(chain):
    run_log = RunLog()
    c = chain(PrematureFanPipe(500, run_log))
    c.feed("G1 X0 F6000", *moves(10, 100), "M106 S255", "G1 X110")
    final = c.finish()

    advanced = final.index("M106 S255.00")
    # commands at 500-900 ms ran within the lead time before the fan command at 1000 ms
    for line in ("G1 X60", "G1 X70", "G1 X80", "G1 X90", "G1 X100"):
        assert advanced < final.index(line)
    assert final.index("G1 X40") < advanced
    # X50 ends exactly at 1000 - 500 ms and still follows the advanced command
    assert advanced < final.index("G1 X50")
    # the original command stays where it was
    assert final.index("G1 X100") < final.index("M106 S255") < final.index("G1 X110")
    assert len(final) == 14
    assert [(r["action"], r["duty"]) for r in run_log.rows] == [("advance", 255)]


def test_window_releases_old_commands_while_streaming(chain):
    c = chain(PrematureFanPipe(500))
    out = c.feed("G1 X0 F6000", *moves(10, 70))
    # newest at 700 ms keeps 200-700 ms buffered
    assert out == ["G1 X0 F6000", "G1 X10"]


def test_speed_decrease_is_not_advanced(chain):
    c = chain(PrematureFanPipe(500))
    c.feed("M106 S255", "G1 X0 F6000", *moves(10, 100), "M107", "G1 X110")
    final = c.finish()
    assert final.count("M106 S255.00") == 1
    assert final.index("G1 X100") < final.index("M107") < final.index("G1 X110")
    assert "M106 S0.00" not in final


def test_advance_before_start_of_print(chain):
    c = chain(PrematureFanPipe(500))
    c.feed("G1 X0 F6000", "G1 X10", "M106 S128")
    assert c.finish() == ["M106 S128.00", "G1 X0 F6000", "G1 X10", "M106 S128"]


def test_cooldown_flushes_everything_in_order(chain):
    c = chain(PrematureFanPipe(10000))
    lines = ["G1 X0 F6000"] + moves(10, 50) + [";done"]
    assert c.feed(*lines) == []
    assert c.finish() == lines


def test_cooldown_detaches_release_observer(chain):
    pipe = PrematureFanPipe(500)
    c = chain(pipe)
    c.feed("G1 X0 F6000", "G1 X10")
    final = c.finish()
    pipe.timeline.insert(0, parse_line("G1 X20"))
    pipe.timeline.reset()
    assert c.collector.lines == final
