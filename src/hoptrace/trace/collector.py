"""Round collector: drains one conduit into an immutable Round."""

from typing import Iterable, Optional

from ..core.logging import get_logger
from .conduit import HopConduit
from .models import HopEvent, Round

logger = get_logger("collector")


def _check_order(host: str, previous: Optional[HopEvent], hop: HopEvent) -> None:
    # Recorded as-is, the producer owns ordering
    if previous is not None and hop.distance <= previous.distance:
        logger.debug(
            "Out of order hop from %s: distance %d after %d",
            host,
            hop.distance,
            previous.distance,
        )


async def collect(
    conduit: HopConduit,
    host: str = "",
    index: int = 0,
    error: Optional[Exception] = None,
) -> Round:
    """Receive hop events until the conduit closes, in arrival order."""
    hops: list[HopEvent] = []
    async for hop in conduit:
        _check_order(host, hops[-1] if hops else None, hop)
        hops.append(hop)
    logger.debug("Round %d for %s closed with %d hops", index, host, len(hops))
    return Round(host=host, index=index, hops=tuple(hops), error=error)


def collect_sequence(
    events: Iterable[HopEvent],
    host: str = "",
    index: int = 0,
    error: Optional[Exception] = None,
) -> Round:
    """Build a Round from hop events that were already materialized."""
    hops: list[HopEvent] = []
    for hop in events:
        _check_order(host, hops[-1] if hops else None, hop)
        hops.append(hop)
    return Round(host=host, index=index, hops=tuple(hops), error=error)
