"""Hand the topology graph to Graphviz for DOT text and images."""

import math
from pathlib import Path
from typing import Optional, Union

import graphviz
import networkx as nx

from ..core.logging import get_logger

logger = get_logger("render")

DOT_FORMAT = "dot"


class RenderError(RuntimeError):
    """Graphviz could not produce the requested output."""


def _check_graph(graph: nx.MultiDiGraph) -> None:
    for node, attrs in graph.nodes(data=True):
        if not str(attrs.get("label", node)).strip():
            raise RenderError(f"Node {node!r} has an empty label")
    for tail, head, attrs in graph.edges(data=True):
        elapsed = attrs.get("elapsed_ms", 0.0)
        if not math.isfinite(elapsed) or elapsed < 0:
            raise RenderError(f"Edge {tail} -> {head} has invalid latency {elapsed}")


def to_digraph(graph: nx.MultiDiGraph, name: str = "hoptrace") -> graphviz.Digraph:
    """Convert the topology into a graphviz Digraph, keeping parallel edges."""
    _check_graph(graph)
    dot = graphviz.Digraph(name)
    for node, attrs in graph.nodes(data=True):
        dot.node(str(node), label=str(attrs.get("label", node)))
    for tail, head, attrs in graph.edges(data=True):
        dot.edge(str(tail), str(head), label=attrs.get("label"))
    return dot


def render_graph(
    graph: nx.MultiDiGraph,
    fmt: str = DOT_FORMAT,
    path: Optional[Union[str, Path]] = None,
) -> bytes:
    """Render the graph to ``fmt`` and optionally write it to ``path``.

    Args:
        graph: Topology built by ``build_graph``
        fmt: ``dot`` for DOT source, or any Graphviz output format (png, svg...)
        path: Optional file to write the rendered bytes to

    Returns:
        Rendered bytes

    Raises:
        RenderError: when Graphviz is missing or fails
    """
    dot = to_digraph(graph)
    if fmt == DOT_FORMAT:
        data = dot.source.encode()
    else:
        try:
            data = dot.pipe(format=fmt)
        except graphviz.ExecutableNotFound as e:
            raise RenderError(f"Graphviz 'dot' executable not found: {e}") from e
        except (graphviz.CalledProcessError, ValueError) as e:
            raise RenderError(f"Graphviz failed to render {fmt}: {e}") from e

    if path is not None:
        try:
            Path(path).write_bytes(data)
        except OSError as e:
            raise RenderError(f"Cannot write {path}: {e}") from e
        logger.info("Wrote %s graph to %s", fmt, path)
    return data
