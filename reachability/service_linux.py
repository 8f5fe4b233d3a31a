"""Poll-based reachability service for Linux using procfs and sysfs."""

import ipaddress
import logging
import os
import socket
import struct
from dataclasses import dataclass
from functools import partial
from pathlib import Path

import shiboken6
from PySide6.QtCore import QObject, QTimer

from reachability.models import (
    ReachabilityFlags,
    ReachabilityTarget,
    SocketAddress,
    TargetKind,
)
from reachability.service import BaseReachabilityService, ReachabilityHandle, is_valid_host_name

logger = logging.getLogger(__name__)

ROUTE_TABLE_PATH = "/proc/net/route"
IPV6_ROUTE_TABLE_PATH = "/proc/net/ipv6_route"
SYS_CLASS_NET = "/sys/class/net"

RTF_UP = 0x0001
RTF_GATEWAY = 0x0002
RTF_REJECT = 0x0200

ARPHRD_LOOPBACK = 772

# operstate values meaning no traffic can pass
LINK_DOWN_STATES = frozenset({"down", "lowerlayerdown", "notpresent"})
CELLULAR_NAME_PREFIXES = ("wwan", "rmnet", "ppp")

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


@dataclass(frozen=True)
class Route:
    """One usable entry of the kernel routing table."""

    interface: str
    network: ipaddress.IPv4Network | ipaddress.IPv6Network
    gateway: IPAddress | None
    metric: int


@dataclass(frozen=True)
class LinkInfo:
    """State of a network interface as reported by sysfs."""

    name: str
    operstate: str
    wireless: bool = False
    cellular: bool = False
    loopback: bool = False

    @property
    def is_up(self) -> bool:
        # "unknown" is what loopback, ppp and tun devices report while working
        return self.operstate not in LINK_DOWN_STATES


def _ipv4_from_hex(value: str) -> ipaddress.IPv4Address:
    # /proc/net/route prints network-order words as host-order hex
    return ipaddress.IPv4Address(struct.pack("=L", int(value, 16)))


def parse_route_table(text: str) -> list[Route]:
    """Parse /proc/net/route content (pure function).

    Only routes flagged up and not reject are returned. Malformed lines
    are skipped.

    Args:
        text: Raw file content including the header line

    Returns:
        List of Route records in file order
    """
    routes = []
    for line in text.splitlines()[1:]:
        fields = line.split()
        if len(fields) < 8:
            continue
        try:
            flags = int(fields[3], 16)
            if not flags & RTF_UP or flags & RTF_REJECT:
                continue
            destination = _ipv4_from_hex(fields[1])
            mask = _ipv4_from_hex(fields[7])
            network = ipaddress.IPv4Network(f"{destination}/{mask}", strict=False)
            gateway = _ipv4_from_hex(fields[2]) if flags & RTF_GATEWAY else None
            metric = int(fields[6])
        except ValueError:
            logger.debug("Skipping malformed route line: %s", line)
            continue
        routes.append(Route(interface=fields[0], network=network, gateway=gateway, metric=metric))
    return routes


def parse_ipv6_route_table(text: str) -> list[Route]:
    """Parse /proc/net/ipv6_route content (pure function).

    The file has no header; each line holds destination, prefix length,
    source, source prefix length, next hop, metric, refcount, use count,
    flags and interface.
    """
    routes = []
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 10:
            continue
        try:
            flags = int(fields[8], 16)
            if not flags & RTF_UP or flags & RTF_REJECT:
                continue
            destination = ipaddress.IPv6Address(bytes.fromhex(fields[0]))
            network = ipaddress.IPv6Network((destination, int(fields[1], 16)), strict=False)
            next_hop = ipaddress.IPv6Address(bytes.fromhex(fields[4]))
            metric = int(fields[5], 16)
        except ValueError:
            logger.debug("Skipping malformed ipv6 route line: %s", line)
            continue
        gateway = None if next_hop.is_unspecified else next_hop
        routes.append(Route(interface=fields[9], network=network, gateway=gateway, metric=metric))
    return routes


def lookup_route(routes: list[Route], address: IPAddress) -> Route | None:
    """Find the route the kernel would pick: longest prefix, then lowest metric."""
    candidates = [
        route
        for route in routes
        if route.network.version == address.version and address in route.network
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda route: (route.network.prefixlen, -route.metric))


def read_link_info(name: str, sys_class_net: str = SYS_CLASS_NET) -> LinkInfo:
    """Read interface state from sysfs.

    Missing attributes are tolerated; an interface that does not exist at
    all reports operstate "notpresent".
    """
    base = Path(sys_class_net) / name
    if not base.exists():
        return LinkInfo(name=name, operstate="notpresent")

    def read(attribute: str) -> str:
        try:
            return (base / attribute).read_text().strip()
        except OSError:
            return ""

    operstate = read("operstate") or "unknown"
    uevent = read("uevent").splitlines()
    wireless = (base / "wireless").exists() or (base / "phy80211").exists()
    cellular = "DEVTYPE=wwan" in uevent or name.startswith(CELLULAR_NAME_PREFIXES)
    loopback = name == "lo" or read("type") == str(ARPHRD_LOOPBACK)

    return LinkInfo(
        name=name,
        operstate=operstate,
        wireless=wireless,
        cellular=cellular,
        loopback=loopback,
    )


def flags_for_route(
    address: IPAddress, route: Route | None, link: LinkInfo | None
) -> ReachabilityFlags:
    """Derive reachability flags for an address from its route (pure function).

    Args:
        address: Destination address
        route: Route selected for the address, or None if there is none
        link: State of the route's interface

    Returns:
        Flags describing how the address can be reached
    """
    if address.is_loopback:
        return (
            ReachabilityFlags.REACHABLE
            | ReachabilityFlags.IS_LOCAL_ADDRESS
            | ReachabilityFlags.IS_DIRECT
        )

    flags = ReachabilityFlags(0)
    if route is None or link is None or not link.is_up:
        return flags

    flags |= ReachabilityFlags.REACHABLE
    if route.gateway is None:
        flags |= ReachabilityFlags.IS_DIRECT
    if link.loopback:
        flags |= ReachabilityFlags.IS_LOCAL_ADDRESS
    if link.operstate == "dormant":
        # Link waits on an external event such as 802.1X authentication
        flags |= ReachabilityFlags.CONNECTION_REQUIRED | ReachabilityFlags.INTERVENTION_REQUIRED
    if link.cellular:
        flags |= ReachabilityFlags.IS_WWAN
    if link.name.startswith("ppp"):
        flags |= ReachabilityFlags.TRANSIENT_CONNECTION
    return flags


class LinuxReachabilityService(BaseReachabilityService):
    """Service that reads the kernel routing table to determine reachability.

    Linux offers no per-target reachability callback, so scheduled handles
    are polled with a QTimer owned by the execution context. A callback is
    dispatched only when a poll sees flags different from the last poll.
    """

    def __init__(
        self,
        poll_interval_ms: int = 2000,
        route_table_path: str = ROUTE_TABLE_PATH,
        ipv6_route_table_path: str = IPV6_ROUTE_TABLE_PATH,
        sys_class_net: str = SYS_CLASS_NET,
    ):
        """Initialize the service.

        Args:
            poll_interval_ms: How often scheduled handles are re-checked
            route_table_path: IPv4 routing table file
            ipv6_route_table_path: IPv6 routing table file (optional on host)
            sys_class_net: sysfs directory with one entry per interface

        Raises:
            ValueError: If poll_interval_ms is not positive
            OSError: If the IPv4 routing table is not available
        """
        super().__init__()
        if poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")
        if not os.path.exists(route_table_path):
            raise OSError(f"Routing table not available: {route_table_path}")

        self.poll_interval_ms = poll_interval_ms
        self.route_table_path = route_table_path
        self.ipv6_route_table_path = ipv6_route_table_path
        self.sys_class_net = sys_class_net

        self._timers: dict[ReachabilityHandle, QTimer] = {}
        self._last_flags: dict[ReachabilityHandle, ReachabilityFlags | None] = {}

        logger.debug(
            "LinuxReachabilityService initialized: poll_interval_ms=%d, routes=%s",
            poll_interval_ms,
            route_table_path,
        )

    def create_with_name(self, host_name: str) -> ReachabilityHandle | None:
        if not is_valid_host_name(host_name):
            logger.debug("Rejected host name: %r", host_name)
            return None
        return ReachabilityHandle(ReachabilityTarget.for_host_name(host_name))

    def create_with_address(self, address: SocketAddress) -> ReachabilityHandle | None:
        try:
            address.ip_address()
        except ValueError as e:
            logger.debug("Rejected socket address %r: %s", address, e)
            return None
        if address == SocketAddress.zero_ipv4():
            return ReachabilityHandle(ReachabilityTarget.for_default_route())
        return ReachabilityHandle(ReachabilityTarget.for_address(address))

    def get_flags(self, handle: ReachabilityHandle) -> ReachabilityFlags | None:
        try:
            routes = self._load_routes()
        except OSError as e:
            logger.warning("Routing table query failed: %s", e)
            return None

        try:
            addresses = self._addresses_for(handle.target)
        except socket.gaierror as e:
            # Unresolvable names are unreachable, not a failed query
            logger.debug("Resolution failed: target=%s, error=%s", handle.target, e)
            return ReachabilityFlags(0)

        flags = ReachabilityFlags(0)
        for address in addresses:
            route = lookup_route(routes, address)
            link = read_link_info(route.interface, self.sys_class_net) if route else None
            flags = flags_for_route(address, route, link)
            if flags & ReachabilityFlags.REACHABLE:
                break
        return flags

    def _load_routes(self) -> list[Route]:
        with open(self.route_table_path) as f:
            routes = parse_route_table(f.read())
        if os.path.exists(self.ipv6_route_table_path):
            with open(self.ipv6_route_table_path) as f:
                routes.extend(parse_ipv6_route_table(f.read()))
        return routes

    def _addresses_for(self, target: ReachabilityTarget) -> list[IPAddress]:
        if target.kind is not TargetKind.HOST_NAME:
            return [target.address.ip_address()]

        infos = socket.getaddrinfo(target.host_name, None, type=socket.SOCK_STREAM)
        addresses = []
        for _family, _type, _proto, _canonname, sockaddr in infos:
            # Strip IPv6 zone index ("fe80::1%eth0")
            address = ipaddress.ip_address(sockaddr[0].split("%")[0])
            if address not in addresses:
                addresses.append(address)
        return addresses

    def _on_scheduled(self, handle: ReachabilityHandle, context: QObject) -> None:
        self._last_flags[handle] = self.get_flags(handle)
        # start() may run on another thread; the timer is built on the context's
        QTimer.singleShot(0, context, partial(self._start_polling, handle, context))

    def _start_polling(self, handle: ReachabilityHandle, context: QObject) -> None:
        if self._contexts.get(handle) is not context or handle in self._timers:
            return
        timer = QTimer(context)
        timer.setInterval(self.poll_interval_ms)
        timer.timeout.connect(partial(self._poll, handle))
        timer.start()
        self._timers[handle] = timer
        logger.debug("Polling %r every %d ms", handle, self.poll_interval_ms)

    def _on_unscheduled(self, handle: ReachabilityHandle, context: QObject) -> None:
        self._last_flags.pop(handle, None)
        timer = self._timers.pop(handle, None)
        if timer is not None and shiboken6.isValid(timer):
            # deleteLater is thread-safe, stop() is not
            timer.deleteLater()

    def _poll(self, handle: ReachabilityHandle) -> None:
        if handle not in self._timers:
            return
        flags = self.get_flags(handle)
        if flags is None:
            return
        if flags != self._last_flags.get(handle):
            logger.debug(
                "Flags changed: target=%s, %s -> %s",
                handle.target,
                self._last_flags.get(handle),
                flags,
            )
            self._last_flags[handle] = flags
            self._dispatch(handle, flags)
