"""Data models for reachability monitoring."""

import ipaddress
import socket
from dataclasses import dataclass
from enum import Enum, IntFlag


class ReachabilityFlags(IntFlag):
    """Route/link characteristics reported by the platform for a target.

    Bit positions follow the platform reachability API so that values read
    from a native source can be passed through unchanged.
    """

    TRANSIENT_CONNECTION = 1 << 0
    REACHABLE = 1 << 1
    CONNECTION_REQUIRED = 1 << 2
    CONNECTION_ON_TRAFFIC = 1 << 3
    INTERVENTION_REQUIRED = 1 << 4
    CONNECTION_ON_DEMAND = 1 << 5
    IS_LOCAL_ADDRESS = 1 << 16
    IS_DIRECT = 1 << 17
    IS_WWAN = 1 << 18


class NetworkStatus(Enum):
    """Classified reachability of a target."""

    NOT_REACHABLE = 0
    REACHABLE_VIA_LAN = 1
    REACHABLE_VIA_WAN = 2

    @property
    def label(self) -> str:
        """Human-readable status text for display."""
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    NetworkStatus.NOT_REACHABLE: "Not reachable",
    NetworkStatus.REACHABLE_VIA_LAN: "Reachable via LAN",
    NetworkStatus.REACHABLE_VIA_WAN: "Reachable via WAN",
}


@dataclass(frozen=True)
class SocketAddress:
    """A raw socket address: family plus host literal and port."""

    family: int
    host: str
    port: int = 0

    @classmethod
    def zero_ipv4(cls) -> "SocketAddress":
        """Zeroed AF_INET address, standing for the default route."""
        return cls(family=socket.AF_INET, host="0.0.0.0", port=0)

    def ip_address(self) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
        """Parse the host literal.

        Raises:
            ValueError: If host is not an IP literal or does not match family
        """
        address = ipaddress.ip_address(self.host)
        expected = {socket.AF_INET: 4, socket.AF_INET6: 6}.get(self.family)
        if address.version != expected:
            raise ValueError(f"Address {self.host!r} does not match family {self.family}")
        return address


class TargetKind(Enum):
    """What a ReachabilityTarget refers to."""

    HOST_NAME = "host_name"
    ADDRESS = "address"
    DEFAULT_ROUTE = "default_route"


@dataclass(frozen=True)
class ReachabilityTarget:
    """Immutable description of what is being monitored."""

    kind: TargetKind
    host_name: str | None = None
    address: SocketAddress | None = None

    @classmethod
    def for_host_name(cls, host_name: str) -> "ReachabilityTarget":
        return cls(kind=TargetKind.HOST_NAME, host_name=host_name)

    @classmethod
    def for_address(cls, address: SocketAddress) -> "ReachabilityTarget":
        return cls(kind=TargetKind.ADDRESS, address=address)

    @classmethod
    def for_default_route(cls) -> "ReachabilityTarget":
        return cls(kind=TargetKind.DEFAULT_ROUTE, address=SocketAddress.zero_ipv4())

    def __str__(self) -> str:
        if self.kind is TargetKind.HOST_NAME:
            return self.host_name or ""
        if self.kind is TargetKind.DEFAULT_ROUTE:
            return "default route"
        if self.address.family == socket.AF_INET6:
            return f"[{self.address.host}]:{self.address.port}"
        return f"{self.address.host}:{self.address.port}"


# (flag, character) in trace order
_TRACE_CHARS = [
    (ReachabilityFlags.IS_WWAN, "W"),
    (ReachabilityFlags.REACHABLE, "R"),
    (None, " "),
    (ReachabilityFlags.TRANSIENT_CONNECTION, "t"),
    (ReachabilityFlags.CONNECTION_REQUIRED, "c"),
    (ReachabilityFlags.CONNECTION_ON_TRAFFIC, "C"),
    (ReachabilityFlags.INTERVENTION_REQUIRED, "i"),
    (ReachabilityFlags.CONNECTION_ON_DEMAND, "D"),
    (ReachabilityFlags.IS_LOCAL_ADDRESS, "l"),
    (ReachabilityFlags.IS_DIRECT, "d"),
]


def describe_flags(flags: ReachabilityFlags) -> str:
    """Render flags as a fixed-width trace string, e.g. "-R -c-----d".

    Each position shows its letter when the bit is set and "-" otherwise.
    """
    chars = []
    for flag, char in _TRACE_CHARS:
        if flag is None:
            chars.append(char)
        else:
            chars.append(char if flags & flag else "-")
    return "".join(chars)
