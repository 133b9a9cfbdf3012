"""Shared pytest fixtures"""

from datetime import timedelta
from io import StringIO

import pytest
from rich.console import Console

from hoptrace.trace.models import HopEvent, Round


def hop(distance, address="0.0.0.0", name="", ms=1.0, success=True):
    """Shorthand hop event factory used across tests."""
    if not success:
        return HopEvent.timeout(distance)
    return HopEvent(
        distance=distance,
        address=address,
        host_name=name,
        elapsed=timedelta(milliseconds=ms),
    )


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at a temp dir so tests never touch $HOME"""
    path = tmp_path / "config.json"
    monkeypatch.setenv("HOPTRACE_CONFIG", str(path))
    return path


@pytest.fixture
def mock_console():
    """Create a console that captures output"""
    output = StringIO()
    console = Console(file=output, force_terminal=False, width=120)
    console._output = output
    return console


@pytest.fixture
def two_rounds():
    """Two rounds against r1: gw at distance 1, an unnamed router at 2"""
    return [
        Round(
            host="r1",
            index=0,
            hops=(hop(1, "10.0.0.1", "gw", 1.0), hop(2, "10.0.0.2", ms=5.0)),
        ),
        Round(
            host="r1",
            index=1,
            hops=(hop(1, "10.0.0.1", "gw", 1.2), hop(2, "10.0.0.2", ms=5.4)),
        ),
    ]


class FakeProber:
    """Prober that replays scripted rounds, optionally failing after them."""

    def __init__(self, rounds, error=None):
        self.rounds = list(rounds)
        self.error = error
        self.calls = []

    def __call__(self, host, options, emit):
        self.calls.append((host, options))
        events = self.rounds[(len(self.calls) - 1) % len(self.rounds)]
        for event in events:
            emit(event)
        if self.error is not None:
            raise self.error


@pytest.fixture
def fake_prober_cls():
    return FakeProber


@pytest.fixture
def make_hop():
    return hop
