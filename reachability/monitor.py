"""Reachability monitor: classification, queries and change notification."""

import logging
import weakref

from PySide6.QtCore import QObject

from reachability.logging_config import TRACE_LOGGER_NAME
from reachability.models import NetworkStatus, ReachabilityFlags, SocketAddress, describe_flags
from reachability.notifications import (
    REACHABILITY_CHANGED_NOTIFICATION,
    NotificationCenter,
    default_center,
)
from reachability.service import ReachabilityHandle, ReachabilityService, default_service

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger(TRACE_LOGGER_NAME)


def log_reachability_flags(flags: ReachabilityFlags, comment: str) -> None:
    """Log a one-line trace of which flags are set.

    Goes to the trace logger at DEBUG; REACHABILITY_TRACE_FLAGS switches it
    on or off independently of the root level.
    """
    trace_logger.debug("Reachability Flag Status: %s %s", describe_flags(flags), comment)


def network_status_for_flags(flags: ReachabilityFlags) -> NetworkStatus:
    """Classify reachability flags into a network status (pure function).

    Rules are applied in order and later rules override earlier ones:

    1. Not reachable at all: NOT_REACHABLE, nothing else applies.
    2. No connection setup required: REACHABLE_VIA_LAN.
    3. Connection is on-demand or on-traffic and needs no user
       intervention: REACHABLE_VIA_LAN, since it comes up transparently.
    4. Cellular path: REACHABLE_VIA_WAN, whatever rules 2 and 3 decided.

    A reachable target matching none of rules 2-4 is NOT_REACHABLE.

    Args:
        flags: Snapshot of platform flags

    Returns:
        Classified status

    Examples:
        >>> network_status_for_flags(ReachabilityFlags.REACHABLE)
        <NetworkStatus.REACHABLE_VIA_LAN: 1>
        >>> network_status_for_flags(ReachabilityFlags(0))
        <NetworkStatus.NOT_REACHABLE: 0>
    """
    log_reachability_flags(flags, "network_status_for_flags")

    if not flags & ReachabilityFlags.REACHABLE:
        return NetworkStatus.NOT_REACHABLE

    status = NetworkStatus.NOT_REACHABLE

    if not flags & ReachabilityFlags.CONNECTION_REQUIRED:
        status = NetworkStatus.REACHABLE_VIA_LAN

    if flags & (ReachabilityFlags.CONNECTION_ON_DEMAND | ReachabilityFlags.CONNECTION_ON_TRAFFIC):
        if not flags & ReachabilityFlags.INTERVENTION_REQUIRED:
            status = NetworkStatus.REACHABLE_VIA_LAN

    # Must stay last: cellular paths also satisfy the LAN rules above
    if flags & ReachabilityFlags.IS_WWAN:
        status = NetworkStatus.REACHABLE_VIA_WAN

    return status


def _make_callback(monitor: "Reachability"):
    """Build the platform callback for a monitor.

    The callback holds only a weak reference, so a registered callback never
    keeps its monitor alive.
    """
    monitor_ref = weakref.ref(monitor)

    def reachability_callback(handle: ReachabilityHandle, flags: ReachabilityFlags) -> None:
        monitor = monitor_ref()
        if monitor is None:
            return
        monitor._post_change(flags)

    return reachability_callback


class Reachability:
    """Monitors whether one target is reachable from this machine.

    Build one with with_host_name(), with_address() or
    for_internet_connection(); each returns None when the platform cannot
    create a handle for the target. Call start() with an execution context
    to receive REACHABILITY_CHANGED_NOTIFICATION on the notification center
    whenever the target's flags change, and stop() to end it. Observers get
    this monitor as the sender and query current_reachability_status()
    themselves.

    Not safe to start and stop concurrently from different threads.
    """

    def __init__(
        self,
        service: ReachabilityService,
        handle: ReachabilityHandle,
        center: NotificationCenter | None = None,
    ):
        assert handle is not None, "Reachability requires a platform handle"
        self._service = service
        self._handle = handle
        self._center = center if center is not None else default_center()
        self._context: QObject | None = None

    @classmethod
    def with_host_name(
        cls,
        host_name: str,
        service: ReachabilityService | None = None,
        center: NotificationCenter | None = None,
    ) -> "Reachability | None":
        """Monitor reachability of a host name."""
        if not host_name or not host_name.strip():
            logger.debug("Empty host name, no monitor created")
            return None

        service = service if service is not None else default_service()
        handle = service.create_with_name(host_name)
        if handle is None:
            logger.warning("Cannot create reachability handle for host %r", host_name)
            return None
        return cls(service, handle, center)

    @classmethod
    def with_address(
        cls,
        address: SocketAddress,
        service: ReachabilityService | None = None,
        center: NotificationCenter | None = None,
    ) -> "Reachability | None":
        """Monitor reachability of a socket address."""
        service = service if service is not None else default_service()
        handle = service.create_with_address(address)
        if handle is None:
            logger.warning("Cannot create reachability handle for address %r", address)
            return None
        return cls(service, handle, center)

    @classmethod
    def for_internet_connection(
        cls,
        service: ReachabilityService | None = None,
        center: NotificationCenter | None = None,
    ) -> "Reachability | None":
        """Monitor whether the default route is available.

        For applications that do not connect to a particular host.
        """
        return cls.with_address(SocketAddress.zero_ipv4(), service, center)

    @property
    def target(self):
        return self._handle.target

    @property
    def is_active(self) -> bool:
        return self._context is not None

    def start(self, context: QObject) -> bool:
        """Start delivering change notifications on the given context.

        Callbacks run in the thread and event loop that context belongs to.
        Starting an active monitor again on the same context is a no-op.

        Args:
            context: Execution context for notification delivery

        Returns:
            True if notifications are being delivered, False if the platform
            refused the registration (the monitor stays idle)
        """
        if self._context is not None:
            if self._context is context:
                return True
            logger.warning("Monitor for %s already active on another context", self.target)
            return False

        if not self._service.set_callback(self._handle, _make_callback(self)):
            logger.warning("Callback registration failed for %s", self.target)
            return False

        if not self._service.schedule(self._handle, context):
            logger.warning("Scheduling failed for %s", self.target)
            self._service.set_callback(self._handle, None)
            return False

        self._context = context
        logger.info("Reachability notifier started: %s", self.target)
        return True

    def stop(self) -> None:
        """Stop delivering change notifications. Safe when not started.

        Once this returns no further notification is posted for this
        monitor, including changes the platform had already queued. The
        context may already have been destroyed.
        """
        if self._handle is None or self._context is None:
            return

        context, self._context = self._context, None
        self._service.set_callback(self._handle, None)
        self._service.unschedule(self._handle, context)
        logger.info("Reachability notifier stopped: %s", self.target)

    def __enter__(self) -> "Reachability":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def __del__(self):
        if getattr(self, "_context", None) is not None:
            self.stop()

    def network_status_for_flags(self, flags: ReachabilityFlags) -> NetworkStatus:
        """Classify flags; see the module-level network_status_for_flags()."""
        return network_status_for_flags(flags)

    def connection_required(self) -> bool:
        """Whether an explicit connection step is needed to reach the target.

        A cellular path may be available but inactive until a connection is
        made; a LAN may need one for VPN on demand. Returns False when the
        flags cannot be read.
        """
        assert self._handle is not None, "connection_required called without a handle"

        flags = self._service.get_flags(self._handle)
        if flags is None:
            return False
        return bool(flags & ReachabilityFlags.CONNECTION_REQUIRED)

    def current_reachability_status(self) -> NetworkStatus:
        """Classify the target's current flags.

        Returns NOT_REACHABLE when the flags cannot be read.
        """
        assert self._handle is not None, "current_reachability_status called without a handle"

        flags = self._service.get_flags(self._handle)
        if flags is None:
            return NetworkStatus.NOT_REACHABLE
        return self.network_status_for_flags(flags)

    def _post_change(self, flags: ReachabilityFlags) -> None:
        log_reachability_flags(flags, "reachability_callback")
        self._center.post(REACHABILITY_CHANGED_NOTIFICATION, self)

    def __repr__(self) -> str:
        state = "active" if self.is_active else "idle"
        return f"<Reachability {self.target} ({state})>"
