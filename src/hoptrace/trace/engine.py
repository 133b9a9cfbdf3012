"""Multi-round trace orchestration."""

import asyncio
import socket
from concurrent.futures import ThreadPoolExecutor
from typing import AsyncIterator, Callable, Iterable, Optional

from ..core.logging import get_logger
from .collector import collect
from .conduit import HopConduit
from .models import HopEvent, HostTrace, ProbeOptions, Round
from .probe import ProbeError, Prober, SystemTraceroute

logger = get_logger("engine")


class ResolutionError(RuntimeError):
    """The target host name does not resolve."""


def resolve_host(host: str) -> str:
    try:
        return socket.gethostbyname(host)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionError(f"Cannot resolve {host}: {e}") from e


class HopTracer:
    """Run repeated probe rounds against hosts and collect them into traces."""

    def __init__(
        self,
        prober: Optional[Prober] = None,
        options: Optional[ProbeOptions] = None,
        on_hop: Optional[Callable[[HopEvent], None]] = None,
        on_status: Optional[Callable[[str], None]] = None,
        resolver: Callable[[str], str] = resolve_host,
    ):
        self.prober = prober or SystemTraceroute()
        self.options = options or ProbeOptions()
        self._resolver = resolver
        self._on_hop = on_hop
        self._on_status = on_status
        self._executor = ThreadPoolExecutor(max_workers=2)

    def _emit(self, hop: HopEvent):
        if self._on_hop:
            self._on_hop(hop)

    def _status(self, msg: str):
        if self._on_status:
            self._on_status(msg)

    def _produce(self, host: str, conduit: HopConduit) -> None:
        def emit(hop: HopEvent):
            conduit.send_threadsafe(hop)
            self._emit(hop)

        self.prober(host, self.options, emit)

    async def trace_round(self, host: str, index: int = 0) -> Round:
        """Run one probe round and return everything it reported.

        A ProbeError ends the round but is kept on the returned Round, so
        partial rounds still reach the report and the graph.
        """
        loop = asyncio.get_running_loop()
        conduit = HopConduit()
        collector = asyncio.create_task(collect(conduit, host=host, index=index))
        error = None
        try:
            await loop.run_in_executor(self._executor, self._produce, host, conduit)
        except ProbeError as e:
            logger.warning("Round %d against %s failed: %s", index, host, e)
            error = e
        except asyncio.CancelledError:
            collector.cancel()
            raise
        finally:
            # Any later emit from a worker still running now fails fast
            conduit.close()
        rnd = await collector
        if error is not None:
            rnd = Round(host=rnd.host, index=rnd.index, hops=rnd.hops, error=error)
        return rnd

    async def resolve(self, host: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._resolver, host)

    async def trace_host(self, host: str) -> HostTrace:
        """Resolve ``host`` and run the configured number of rounds against it."""
        address = await self.resolve(host)
        self._status(
            f"traceroute to {host} ({address}), {self.options.max_distance} hops max, "
            f"{self.options.packet_size} byte packets"
        )
        trace = HostTrace(host=host, address=address)
        for index in range(self.options.repeat):
            rnd = await self.trace_round(host, index)
            trace.rounds.append(rnd)
            if rnd.error is not None:
                self._status(f"round {index + 1} against {host} failed: {rnd.error}")
        logger.debug("Traced %s: %d rounds", host, len(trace.rounds))
        return trace

    async def trace_hosts(self, hosts: Iterable[str]) -> AsyncIterator[HostTrace]:
        """Trace each host in turn; hosts that do not resolve are skipped."""
        for host in hosts:
            try:
                trace = await self.trace_host(host)
            except ResolutionError as e:
                logger.error("%s", e)
                self._status(f"skipping {host}: {e}")
                continue
            yield trace

    def close(self):
        """Release the worker pool without waiting on a prober still running.

        Call outside the event loop. A worker left over from a cancelled round
        stops at its next emit, when the closed conduit rejects the hop.
        """
        self._executor.shutdown(wait=False, cancel_futures=True)
