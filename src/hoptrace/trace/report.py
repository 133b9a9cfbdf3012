"""Text rendering of aggregated hops."""

from .aggregate import Aggregated
from .models import HopEvent

LABEL_WIDTH = 3
TIMEOUT_MARK = "   *"


def _label(distance: int, previous: int | None) -> str:
    if distance == previous:
        return " " * LABEL_WIDTH
    return f"{distance:<{LABEL_WIDTH}}"


def format_hop(hop: HopEvent) -> str:
    """Single live progress line for a hop as it arrives."""
    if not hop.success:
        return f"{hop.distance:<{LABEL_WIDTH}} *"
    return (
        f"{hop.distance:<{LABEL_WIDTH}} {hop.display_name} ({hop.addr})  "
        f"{hop.elapsed_label}"
    )


def format_report(aggregated: Aggregated) -> str:
    """Render aggregated hops, one line per responder cluster.

    Repeated replies from the same responder collapse onto one line, and a
    distance number is only written once even when several responders
    answered at that distance.
    """
    lines = []
    printed_distance = None
    for distance, clusters in aggregated.items():
        for hops in clusters.values():
            line = ""
            prev_name = None
            for hop in hops:
                if not hop.success:
                    if not line:
                        line = _label(distance, printed_distance)
                        printed_distance = distance
                    line += TIMEOUT_MARK
                    prev_name = None
                    continue
                if hop.display_name == prev_name:
                    line += f" {hop.elapsed_label}"
                    continue
                segment = (
                    f"{_label(distance, printed_distance)} {hop.display_name} "
                    f"({hop.addr}) {hop.elapsed_label}"
                )
                line = f"{line} {segment}" if line else segment
                printed_distance = distance
                prev_name = hop.display_name
            lines.append(line)
    return "".join(f"{line}\n" for line in lines)


def report_data(aggregated: Aggregated) -> list[dict]:
    """Structured view of the aggregated hops for JSON/YAML output."""
    data = []
    for distance, clusters in aggregated.items():
        responders = []
        timeouts = 0
        for address, hops in clusters.items():
            if address is None:
                timeouts += len(hops)
                continue
            responders.append(
                {
                    "address": str(address),
                    "host_names": sorted({h.host_name for h in hops if h.host_name}),
                    "timings_ms": [round(h.elapsed_ms, 3) for h in hops],
                }
            )
        data.append(
            {"distance": distance, "responders": responders, "timeouts": timeouts}
        )
    return data
