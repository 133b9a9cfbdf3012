"""Multi-round hop collection, aggregation, reporting and topology graphs."""

from .aggregate import aggregate, aggregate_traces
from .collector import collect, collect_sequence
from .conduit import ConduitClosedError, HopConduit
from .engine import HopTracer, ResolutionError
from .graph import build_graph, build_host_graph, graph_identity
from .models import HopEvent, HostTrace, ProbeOptions, Round
from .probe import ProbeError, SystemTraceroute
from .render import RenderError, render_graph
from .report import format_hop, format_report, report_data

__all__ = [
    "aggregate",
    "aggregate_traces",
    "collect",
    "collect_sequence",
    "ConduitClosedError",
    "HopConduit",
    "HopTracer",
    "ResolutionError",
    "build_graph",
    "build_host_graph",
    "graph_identity",
    "HopEvent",
    "HostTrace",
    "ProbeOptions",
    "Round",
    "ProbeError",
    "SystemTraceroute",
    "RenderError",
    "render_graph",
    "format_hop",
    "format_report",
    "report_data",
]
