"""hoptrace CLI"""

import asyncio
from pathlib import Path
from typing import Callable, Optional

import typer
from rich.console import Console
from rich.markup import escape

from .core import (
    ReportRenderer,
    config_file,
    load_options,
    reset_defaults,
    set_default,
)
from .core.logging import get_logger, setup_logging
from .core.renderer import FORMATS
from .trace import (
    HopTracer,
    HostTrace,
    RenderError,
    SystemTraceroute,
    aggregate,
    aggregate_traces,
    build_host_graph,
    render_graph,
)
from .trace.engine import resolve_host

app = typer.Typer(
    name="hoptrace",
    help="Repeated traceroute with aggregated hop reports and topology graphs",
    no_args_is_help=True,
)
console = Console()
logger = get_logger("cli")


@app.callback()
def _global(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    log_file: Optional[str] = typer.Option(
        None, "--log-file", help="Also write logs to this file"
    ),
    quiet: bool = typer.Option(False, "--quiet", help="Only log errors"),
):
    setup_logging(debug=debug, log_file=log_file, quiet=quiet)


async def _collect(
    tracer: HopTracer, hosts: list[str], on_trace: Callable[[HostTrace], None]
) -> list[HostTrace]:
    traces = []
    async for trace in tracer.trace_hosts(hosts):
        on_trace(trace)
        traces.append(trace)
    return traces


@app.command("trace")
def trace(
    hosts: list[str] = typer.Argument(..., help="One or more target hosts"),
    max_hops: Optional[int] = typer.Option(
        None, "--max-hops", "-m", help="Max time-to-live (max number of hops)"
    ),
    first_hop: Optional[int] = typer.Option(
        None, "--first-hop", "-f", help="First time-to-live probed"
    ),
    queries: Optional[int] = typer.Option(
        None, "--queries", "-q", help="Probes per hop"
    ),
    times: Optional[int] = typer.Option(
        None, "--times", "-t", help="Rounds per host"
    ),
    packet_size: Optional[int] = typer.Option(
        None, "--packet-size", help="Packet length in bytes"
    ),
    round_timeout: Optional[float] = typer.Option(
        None, "--round-timeout", help="Abandon a round after N seconds"
    ),
    combined: bool = typer.Option(
        False, "--combined", help="One report for all hosts instead of one per host"
    ),
    output_format: str = typer.Option("text", "--format", help="text|json|yaml"),
    show_dot: bool = typer.Option(False, "--dot", help="Print the graph as DOT"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Render the topology graph to this file"
    ),
    image_format: str = typer.Option(
        "png", "--image-format", help="Graphviz output format for --output"
    ),
    graph_only: bool = typer.Option(
        False, "--graph-only", help="Skip hop lines and reports"
    ),
):
    """Trace one or more hosts and build a merged topology graph"""
    renderer = ReportRenderer(console)
    if output_format not in FORMATS:
        renderer.error(f"Unknown format: {output_format}. Use one of {', '.join(FORMATS)}")
        raise typer.Exit(1)

    try:
        options = load_options(
            max_distance=max_hops,
            first_distance=first_hop,
            queries=queries,
            repeat=times,
            packet_size=packet_size,
            round_timeout=round_timeout,
        )
    except ValueError as e:
        renderer.error(f"Invalid options: {e}")
        raise typer.Exit(1)

    if not graph_only:
        renderer.info(f"hosts {', '.join(hosts)}")

    tracer = HopTracer(
        prober=SystemTraceroute(),
        options=options,
        on_hop=None if graph_only else renderer.hop,
        on_status=None if graph_only else renderer.info,
        resolver=resolve_host,
    )

    def on_trace(host_trace: HostTrace) -> None:
        if graph_only or combined:
            return
        renderer.report(
            aggregate(host_trace.rounds), output_format, title=host_trace.host
        )

    try:
        traces = asyncio.run(_collect(tracer, hosts, on_trace))
    finally:
        # Only after the loop has stopped
        tracer.close()
    if not traces:
        renderer.error("No host could be traced")
        raise typer.Exit(1)

    if combined and not graph_only:
        renderer.report(
            aggregate_traces(traces),
            output_format,
            title=", ".join(t.host for t in traces),
        )

    graph = build_host_graph(traces)
    logger.debug(
        "Topology: %d nodes, %d edges",
        graph.number_of_nodes(),
        graph.number_of_edges(),
    )
    try:
        if show_dot:
            renderer.dot(render_graph(graph).decode())
        if output is not None:
            render_graph(graph, image_format, output)
            renderer.status(f"Graph written to {output}")
    except RenderError as e:
        renderer.error(f"Render failed: {e}")
        raise typer.Exit(1)


@app.command("show-config")
def show_config():
    """Show stored trace defaults"""
    options = load_options()
    console.print(f"[bold]Config file:[/] {config_file()}")
    for key, value in options.model_dump().items():
        console.print(f"[bold]{key}:[/] {value}")


@app.command("set-default")
def set_default_cmd(
    key: str = typer.Argument(..., help="Setting name, e.g. max_distance"),
    value: str = typer.Argument(..., help="New value"),
):
    """Persist a default used by every trace (e.g. repeat 5)"""
    try:
        options = set_default(key, value)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(1)
    console.print(f"[green]{key} set to {getattr(options, key)}[/]")


@app.command("reset-config")
def reset_config():
    """Forget stored defaults"""
    path = reset_defaults()
    if path:
        console.print(f"[green]Removed {path}[/]")
    else:
        console.print("[dim]No stored defaults[/]")


if __name__ == "__main__":
    app()
