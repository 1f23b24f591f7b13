import pytest

from gcode_pipes.gcode import parse_line
from gcode_pipes.pipe import Pipe


class Collector(Pipe):
    name = "collector"

    def __init__(self):
        super().__init__()
        self.received = []

    def input(self, g):
        self.received.append(g)

    @property
    def lines(self):
        return [str(g) for g in self.received]


class Chain:
    """Links a pipe to a Collector and drives both through their lifecycle."""

    def __init__(self, pipe):
        self.pipe = pipe
        self.collector = Collector()
        pipe.next_pipe = self.collector
        pipe.warmup()
        self.collector.warmup()

    def feed(self, *lines):
        for line in lines:
            self.pipe.accept(parse_line(line))
        return self.collector.lines

    def finish(self):
        self.pipe.cooldown()
        self.collector.cooldown()
        return self.collector.lines


@pytest.fixture
def chain():
    return Chain


@pytest.fixture
def collector_cls():
    return Collector
