import pytest

from gcode_pipes.gcode import GCode, GCommand, parse_line


@pytest.mark.parametrize("line", [
    "G1 X10 Y20 ; move",
    "M106 S255",
    ";LAYER:3",
    "SET_FAN_SPEED FAN=part SPEED=0.5",
    "G1  X1   Y2",
    "T0",
])
def test_command_only_is_verbatim(line):
    g = parse_line(line + "\n", command_only=True)
    assert g.render() == line + "\n"


def test_command_only_extracts_leading_token():
    assert parse_line("  G1 X1", command_only=True).command == "G1"
    assert parse_line(";TYPE:Perimeter", command_only=True).command == GCommand.COMMENT
    assert parse_line("M107;off", command_only=True).command == "M107;off"


def test_blank_line():
    for g in (parse_line(""), parse_line("", command_only=True), parse_line("   \n")):
        assert g.command == ""
        assert g.render() == "\n"


def test_reprap_style_parameters():
    g = parse_line("G1 X10 Y20.5 E-1.2 F3000")
    assert g.command == "G1"
    assert g.params == {"X": "10", "Y": "20.5", "E": "-1.2", "F": "3000"}
    assert g.render() == "G1 X10 Y20.5 E-1.2 F3000\n"


def test_klipper_style_parameters():
    g = parse_line("SET_FAN_SPEED FAN=part SPEED=0.5")
    assert g.params == {"FAN": "part", "SPEED": "0.5"}
    assert g.render() == "SET_FAN_SPEED FAN=part SPEED=0.5\n"


def test_value_may_contain_separator():
    g = parse_line("SET_GCODE_VARIABLE MACRO=m VARIABLE=v VALUE=a=b")
    assert g.get("VALUE") == "a=b"


def test_trailing_comment_absorbs_rest_of_line():
    g = parse_line("M106 S255 ; full speed now")
    assert g.params == {"S": "255", ";": " full speed now"}
    assert g.render() == "M106 S255 ; full speed now\n"


def test_comment_glued_to_parameter():
    g = parse_line("M107;off")
    assert g.command == "M107"
    assert g.params == {";": "off"}


def test_comment_only_line():
    g = parse_line(";LAYER:1")
    assert g.is_comment
    assert g.params == {";": "LAYER:1"}
    assert g.render() == ";LAYER:1\n"


def test_keys_are_upper_cased():
    g = parse_line("M106 s128")
    assert g.params == {"S": "128"}
    assert g.get("s") == "128"
    assert g.number("S") == 128.0


def test_bare_keys():
    g = parse_line("G28 X Y")
    assert g.params == {"X": "", "Y": ""}
    assert g.number("X") is None
    assert g.render() == "G28 X Y\n"


def test_malformed_numbers_read_as_absent():
    g = parse_line("G1 Xabc Y")
    assert g.number("X") is None
    assert g.number("Y") is None
    assert g.number("Z") is None


def test_non_finite_numbers_read_as_absent():
    g = parse_line("G1 Xnan Yinf Z-inf F1e999")
    assert [g.number(k) for k in "XYZF"] == [None, None, None, None]


def test_full_parse_normalizes_spacing():
    assert parse_line("G1  X1   Y2").render() == "G1 X1 Y2\n"


def test_rendering_built_commands():
    g = GCode(command=GCommand.SET_FAN_SPEED)
    g.set("s", 12.5)
    assert g.render() == "M106 S12.5\n"
    assert str(g) == "M106 S12.5"
