"""Host and internet reachability monitoring on the Qt event loop."""

__version__ = "0.1.0"

from reachability.models import NetworkStatus, ReachabilityFlags, ReachabilityTarget, SocketAddress
from reachability.monitor import Reachability, network_status_for_flags
from reachability.notifications import (
    REACHABILITY_CHANGED_NOTIFICATION,
    NotificationCenter,
    default_center,
)

__all__ = [
    "NetworkStatus",
    "NotificationCenter",
    "REACHABILITY_CHANGED_NOTIFICATION",
    "Reachability",
    "ReachabilityFlags",
    "ReachabilityTarget",
    "SocketAddress",
    "default_center",
    "network_status_for_flags",
]
