"""Tests for the hoptrace CLI"""

import json

import pytest
from typer.testing import CliRunner

from hoptrace import cli
from hoptrace.trace.engine import ResolutionError
from hoptrace.trace.render import RenderError

runner = CliRunner()


def _resolver(host):
    if host.startswith("bad"):
        raise ResolutionError(f"Cannot resolve {host}")
    return "192.0.2.10"


@pytest.fixture
def prober(monkeypatch, fake_prober_cls, make_hop):
    fake = fake_prober_cls(
        [
            [make_hop(1, "10.0.0.1", "gw", 1.0), make_hop(2, "10.0.0.2", ms=5.0)],
            [make_hop(1, "10.0.0.1", "gw", 1.2), make_hop(2, "10.0.0.2", ms=5.4)],
        ]
    )
    monkeypatch.setattr(cli, "SystemTraceroute", lambda: fake)
    monkeypatch.setattr(cli, "resolve_host", _resolver)
    return fake


class TestTraceCommand:
    def test_report_per_host(self, prober):
        result = runner.invoke(cli.app, ["trace", "r1", "-t", "2"])
        assert result.exit_code == 0, result.output
        assert "traceroute to r1 (192.0.2.10), 64 hops max, 60 byte packets" in result.output
        assert "gw (10.0.0.1) 1.0ms 1.2ms" in result.output
        assert "10.0.0.2 (10.0.0.2) 5.0ms 5.4ms" in result.output

    def test_options_reach_prober(self, prober):
        result = runner.invoke(cli.app, ["trace", "r1", "-t", "1", "-m", "20", "-f", "2"])
        assert result.exit_code == 0, result.output
        _, options = prober.calls[0]
        assert options.max_distance == 20
        assert options.first_distance == 2
        assert options.packet_size == 60
        assert len(prober.calls) == 1

    def test_packet_size_option(self, prober):
        result = runner.invoke(cli.app, ["trace", "r1", "-t", "1", "--packet-size", "120"])
        assert result.exit_code == 0, result.output
        assert "120 byte packets" in result.output
        _, options = prober.calls[0]
        assert options.packet_size == 120

    def test_tracer_closed_after_run(self, prober, monkeypatch):
        closed = []
        monkeypatch.setattr(cli.HopTracer, "close", lambda self: closed.append(self))
        result = runner.invoke(cli.app, ["trace", "r1", "-t", "1"])
        assert result.exit_code == 0, result.output
        assert len(closed) == 1

    def test_dot_output(self, prober):
        result = runner.invoke(cli.app, ["trace", "r1", "r2", "-t", "2", "--dot"])
        assert result.exit_code == 0, result.output
        assert "digraph" in result.output
        assert "5.4ms" in result.output

    def test_json_combined(self, prober):
        result = runner.invoke(
            cli.app, ["trace", "r1", "r2", "-t", "1", "--combined", "--format", "json"]
        )
        assert result.exit_code == 0, result.output
        assert '"target": "r1, r2"' in result.output
        assert "responders" in result.output

    def test_graph_only_is_silent(self, prober):
        result = runner.invoke(cli.app, ["trace", "r1", "-t", "2", "--graph-only", "--dot"])
        assert result.exit_code == 0, result.output
        assert "traceroute to r1" not in result.output
        assert "gw (10.0.0.1)" not in result.output
        assert "digraph" in result.output

    def test_unresolvable_host_skipped(self, prober):
        result = runner.invoke(cli.app, ["trace", "bad.example", "r1", "-t", "1"])
        assert result.exit_code == 0, result.output
        assert "skipping bad.example" in result.output
        assert [host for host, _ in prober.calls] == ["r1"]

    def test_no_host_traced(self, prober):
        result = runner.invoke(cli.app, ["trace", "bad.example"])
        assert result.exit_code == 1
        assert "No host could be traced" in result.output

    def test_invalid_options(self, prober):
        result = runner.invoke(cli.app, ["trace", "r1", "-f", "10", "-m", "5"])
        assert result.exit_code == 1
        assert "Invalid options" in result.output
        assert prober.calls == []

    def test_unknown_format(self, prober):
        result = runner.invoke(cli.app, ["trace", "r1", "--format", "xml"])
        assert result.exit_code == 1

    def test_graph_written(self, prober, tmp_path):
        target = tmp_path / "graph.dot"
        result = runner.invoke(
            cli.app,
            ["trace", "r1", "-t", "2", "--output", str(target), "--image-format", "dot"],
        )
        assert result.exit_code == 0, result.output
        assert "5.0ms" in target.read_text()

    def test_render_failure_after_report(self, prober, monkeypatch, tmp_path):
        def fail(graph, fmt="dot", path=None):
            raise RenderError("dot not found")

        monkeypatch.setattr(cli, "render_graph", fail)
        result = runner.invoke(
            cli.app, ["trace", "r1", "-t", "1", "--output", str(tmp_path / "g.png")]
        )
        assert result.exit_code == 1
        assert "gw (10.0.0.1)" in result.output
        assert "Render failed" in result.output


class TestConfigCommands:
    def test_set_and_show(self, isolated_config):
        result = runner.invoke(cli.app, ["set-default", "repeat", "5"])
        assert result.exit_code == 0, result.output
        assert json.loads(isolated_config.read_text())["repeat"] == 5

        result = runner.invoke(cli.app, ["show-config"])
        assert "repeat:" in result.output
        assert "5" in result.output

    def test_set_invalid(self):
        result = runner.invoke(cli.app, ["set-default", "repeat", "zero"])
        assert result.exit_code == 1

    def test_reset(self, isolated_config):
        runner.invoke(cli.app, ["set-default", "repeat", "5"])
        result = runner.invoke(cli.app, ["reset-config"])
        assert result.exit_code == 0
        assert not isolated_config.exists()

    def test_stored_default_used_by_trace(self, prober):
        runner.invoke(cli.app, ["set-default", "repeat", "1"])
        result = runner.invoke(cli.app, ["trace", "r1"])
        assert result.exit_code == 0, result.output
        assert len(prober.calls) == 1
