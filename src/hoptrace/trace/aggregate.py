"""Group hop events from many rounds by distance, then by responder."""

from ipaddress import IPv4Address
from typing import Iterable, Optional

from .models import HopEvent, HostTrace, Round

# distance -> responder address (None for timeouts) -> events in arrival order
Aggregated = dict[int, dict[Optional[IPv4Address], list[HopEvent]]]


def bucket_key(hop: HopEvent) -> Optional[IPv4Address]:
    """Timeouts get their own bucket so they never mix with a real responder."""
    return hop.address if hop.success else None


def aggregate(rounds: Iterable[Round]) -> Aggregated:
    """Group every hop of every round by (distance, address).

    Rounds and hops keep their order inside each bucket. Distances come back
    in ascending order; addresses within a distance in first-seen order.
    """
    buckets: Aggregated = {}
    for rnd in rounds:
        for hop in rnd.hops:
            by_addr = buckets.setdefault(hop.distance, {})
            by_addr.setdefault(bucket_key(hop), []).append(hop)
    return {distance: buckets[distance] for distance in sorted(buckets)}


def aggregate_traces(traces: Iterable[HostTrace]) -> Aggregated:
    """Aggregate a whole batch of hosts into one structure."""
    return aggregate(rnd for trace in traces for rnd in trace.rounds)
