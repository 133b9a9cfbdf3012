"""Data models for hop events, rounds and probe options."""

from dataclasses import dataclass, field
from datetime import timedelta
from ipaddress import IPv4Address
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

ZERO_ADDRESS = IPv4Address(0)

DEFAULT_MAX_DISTANCE = 64
DEFAULT_FIRST_DISTANCE = 1
DEFAULT_REPEAT = 3
DEFAULT_PACKET_SIZE = 60


def format_elapsed(elapsed: timedelta) -> str:
    """Format a round-trip time as milliseconds with one decimal, e.g. ``5.4ms``."""
    return f"{elapsed / timedelta(milliseconds=1):.1f}ms"


@dataclass(frozen=True)
class HopEvent:
    """One reply (or timeout) at a given distance within one round."""

    distance: int
    address: IPv4Address = ZERO_ADDRESS
    host_name: str = ""
    success: bool = True
    elapsed: timedelta = timedelta(0)

    def __post_init__(self):
        if self.distance < 1:
            raise ValueError(f"Hop distance must be positive: {self.distance}")
        if not isinstance(self.address, IPv4Address):
            object.__setattr__(self, "address", IPv4Address(self.address))

    @classmethod
    def timeout(cls, distance: int) -> "HopEvent":
        return cls(distance=distance, success=False)

    @property
    def addr(self) -> str:
        return str(self.address)

    @property
    def display_name(self) -> str:
        """Host name when resolved, dotted address otherwise."""
        return self.host_name or self.addr

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed / timedelta(milliseconds=1)

    @property
    def elapsed_label(self) -> str:
        return format_elapsed(self.elapsed)

    def __str__(self):
        if not self.success:
            return f"{self.distance} *"
        return f"{self.distance} {self.display_name} ({self.addr}) {self.elapsed_label}"


@dataclass(frozen=True)
class Round:
    """Hop events of one probe attempt against one host, in arrival order."""

    host: str
    index: int = 0
    hops: tuple[HopEvent, ...] = ()
    error: Optional[Exception] = None

    @property
    def complete(self) -> bool:
        return self.error is None

    @property
    def successful_hops(self) -> Iterator[HopEvent]:
        return (hop for hop in self.hops if hop.success)

    def __len__(self):
        return len(self.hops)


@dataclass
class HostTrace:
    """All rounds traced against one target host."""

    host: str
    address: str = ""
    rounds: list[Round] = field(default_factory=list)

    @property
    def errors(self) -> list[Exception]:
        return [r.error for r in self.rounds if r.error is not None]


class ProbeOptions(BaseModel):
    """Options handed to the probing collaborator for every round."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    max_distance: int = Field(
        DEFAULT_MAX_DISTANCE, ge=1, le=255, description="Max TTL, inclusive"
    )
    first_distance: int = Field(
        DEFAULT_FIRST_DISTANCE, ge=1, le=255, description="First TTL probed"
    )
    queries: int = Field(1, ge=1, le=10, description="Probes sent per distance")
    repeat: int = Field(DEFAULT_REPEAT, ge=1, description="Rounds per host")
    packet_size: int = Field(
        DEFAULT_PACKET_SIZE, ge=28, le=65000, description="Packet length in bytes"
    )
    round_timeout: Optional[float] = Field(
        None, gt=0, description="Seconds before a round is abandoned"
    )

    @model_validator(mode="after")
    def check_distances(self) -> "ProbeOptions":
        if self.first_distance > self.max_distance:
            raise ValueError(
                f"first_distance ({self.first_distance}) exceeds "
                f"max_distance ({self.max_distance})"
            )
        return self

    @property
    def retries(self) -> int:
        """Additional attempts per distance beyond the first probe."""
        return self.queries - 1
