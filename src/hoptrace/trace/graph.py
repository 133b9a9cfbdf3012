"""Merged topology graph built from probe rounds."""

from typing import Iterable, Optional

import networkx as nx

from .models import HopEvent, HostTrace, Round


def graph_identity(hop: HopEvent) -> str:
    """Node key for a hop. Equal identities share one node across rounds and hosts."""
    return hop.display_name


def _ensure_node(graph: nx.MultiDiGraph, hop: HopEvent) -> str:
    node = graph_identity(hop)
    if node not in graph:
        graph.add_node(node, label=node, address=hop.addr)
    return node


def add_round(graph: nx.MultiDiGraph, rnd: Round) -> int:
    """Walk one round and add its nodes and edges. Returns edges added.

    Timeouts add nothing and leave the previous node in place, so the next
    reply still links back to the last responder seen.
    """
    added = 0
    previous = None
    for hop in rnd.hops:
        if not hop.success:
            continue
        current = _ensure_node(graph, hop)
        if previous is not None:
            graph.add_edge(
                previous,
                current,
                label=hop.elapsed_label,
                elapsed_ms=hop.elapsed_ms,
                host=rnd.host,
                round=rnd.index,
            )
            added += 1
        previous = current
    return added


def build_graph(
    rounds: Iterable[Round], graph: Optional[nx.MultiDiGraph] = None
) -> nx.MultiDiGraph:
    """Build (or extend) the topology graph from rounds of any number of hosts."""
    if graph is None:
        graph = nx.MultiDiGraph(name="hoptrace")
    for rnd in rounds:
        add_round(graph, rnd)
    return graph


def build_host_graph(
    traces: Iterable[HostTrace], graph: Optional[nx.MultiDiGraph] = None
) -> nx.MultiDiGraph:
    return build_graph((rnd for trace in traces for rnd in trace.rounds), graph)
