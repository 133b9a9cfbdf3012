"""Probing collaborators that stream hop events for one round."""

import re
import shutil
import subprocess
import threading
from datetime import timedelta
from ipaddress import IPv4Address
from typing import Callable, Optional

from ..core.logging import get_logger
from .models import HopEvent, ProbeOptions

logger = get_logger("probe")

Emit = Callable[[HopEvent], None]
# (host, options, emit) -> None; emits hops in increasing distance, raises ProbeError
Prober = Callable[[str, ProbeOptions, Emit], None]

_HOP_LINE = re.compile(r"^\s*(\d+)\s+(.*)$")
_NAMED_REPLY = re.compile(r"(\S+)\s+\((\d{1,3}(?:\.\d{1,3}){3})\)\s+([\d.]+)\s*ms")
_BARE_REPLY = re.compile(r"(\d{1,3}(?:\.\d{1,3}){3})\s+([\d.]+)\s*ms")


class ProbeError(RuntimeError):
    """A probe round ended abnormally (socket failure, unreachable, timeout)."""


def parse_hop_line(line: str) -> Optional[HopEvent]:
    """Parse one line of ``traceroute`` output into a hop event.

    Only the first reply on the line is kept, so each distance yields
    exactly one event. Lines with no reply become timeouts. Header and
    unrecognized lines return None.
    """
    match = _HOP_LINE.match(line)
    if not match:
        return None
    distance, rest = int(match.group(1)), match.group(2)

    named = _NAMED_REPLY.search(rest)
    if named:
        name, addr, ms = named.groups()
        return HopEvent(
            distance=distance,
            address=IPv4Address(addr),
            host_name="" if name == addr else name,
            elapsed=timedelta(milliseconds=float(ms)),
        )
    bare = _BARE_REPLY.search(rest)
    if bare:
        addr, ms = bare.groups()
        return HopEvent(
            distance=distance,
            address=IPv4Address(addr),
            elapsed=timedelta(milliseconds=float(ms)),
        )
    if "*" in rest:
        return HopEvent.timeout(distance)
    return None


class SystemTraceroute:
    """Run the system ``traceroute`` binary and stream its hops.

    The round deadline in ``ProbeOptions.round_timeout`` kills the
    subprocess; hops already emitted stay valid.
    """

    def __init__(self, executable: str = "traceroute"):
        self.executable = executable

    def command(self, host: str, options: ProbeOptions) -> list[str]:
        return [
            self.executable,
            "-q",
            str(options.queries),
            "-m",
            str(options.max_distance),
            "-f",
            str(options.first_distance),
            host,
            str(options.packet_size),
        ]

    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def __call__(self, host: str, options: ProbeOptions, emit: Emit) -> None:
        cmd = self.command(host, options)
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.Popen(
                cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
            )
        except OSError as e:
            raise ProbeError(f"Cannot run {self.executable}: {e}") from e

        expired = threading.Event()
        timer = None
        if options.round_timeout:
            timer = threading.Timer(
                options.round_timeout, self._expire, args=(proc, expired)
            )
            timer.daemon = True
            timer.start()

        try:
            for line in proc.stdout:
                hop = parse_hop_line(line)
                if hop is not None:
                    emit(hop)
            stderr = proc.stderr.read()
            code = proc.wait()
        finally:
            if timer is not None:
                timer.cancel()
            if proc.poll() is None:
                proc.kill()
                proc.wait()
            proc.stdout.close()
            proc.stderr.close()

        if expired.is_set():
            raise ProbeError(
                f"Round against {host} timed out after {options.round_timeout}s"
            )
        if code != 0:
            raise ProbeError(f"traceroute to {host} exited {code}: {stderr.strip()}")

    @staticmethod
    def _expire(proc: subprocess.Popen, expired: threading.Event) -> None:
        if proc.poll() is None:
            expired.set()
            proc.kill()
