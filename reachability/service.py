"""Platform reachability service abstraction.

A service owns the platform side of monitoring: it creates handles for
targets, reports point-in-time flags, and delivers flag changes to a
registered callback on the execution context a handle is scheduled on.
The execution context is a QObject; callbacks run in its thread's event loop.
"""

import logging
import re
from functools import partial
from typing import Callable, Protocol

import shiboken6
from PySide6.QtCore import QObject, QTimer

from reachability.models import ReachabilityFlags, ReachabilityTarget, SocketAddress

logger = logging.getLogger(__name__)


class ReachabilityHandle:
    """Opaque platform handle for one target. Compared by identity."""

    __slots__ = ("target", "__weakref__")

    def __init__(self, target: ReachabilityTarget):
        self.target = target

    def __repr__(self) -> str:
        return f"<ReachabilityHandle {self.target}>"


ReachabilityCallback = Callable[[ReachabilityHandle, ReachabilityFlags], None]


class ReachabilityService(Protocol):
    """Protocol defining the platform reachability facility."""

    def create_with_name(self, host_name: str) -> ReachabilityHandle | None:
        """Create a handle for a host name, or None on failure."""
        ...

    def create_with_address(self, address: SocketAddress) -> ReachabilityHandle | None:
        """Create a handle for a socket address, or None on failure."""
        ...

    def get_flags(self, handle: ReachabilityHandle) -> ReachabilityFlags | None:
        """Return current flags for the handle, or None if the query failed."""
        ...

    def set_callback(
        self, handle: ReachabilityHandle, callback: ReachabilityCallback | None
    ) -> bool:
        """Register (or clear, with None) the change callback for a handle."""
        ...

    def schedule(self, handle: ReachabilityHandle, context: QObject) -> bool:
        """Start delivering changes for the handle on the given context."""
        ...

    def unschedule(self, handle: ReachabilityHandle, context: QObject) -> None:
        """Stop delivering changes for the handle on the given context."""
        ...


_HOST_LABEL = re.compile(r"^(?!-)[A-Za-z0-9_-]{1,63}(?<!-)$")


def is_valid_host_name(host_name: str) -> bool:
    """Check host name syntax (labels of letters, digits, hyphens).

    Dotted IPv4 literals pass as all-digit labels; IPv6 literals are
    accepted by character set only.
    """
    if not host_name or not host_name.strip():
        return False

    if ":" in host_name:
        # IPv6 literal
        return re.fullmatch(r"[0-9A-Fa-f:.]+", host_name) is not None

    name = host_name[:-1] if host_name.endswith(".") else host_name
    if len(name) > 253:
        return False
    return all(_HOST_LABEL.match(label) for label in name.split("."))


class BaseReachabilityService:
    """Callback and scheduling bookkeeping shared by concrete services.

    Subclasses implement handle creation and get_flags, and call _dispatch()
    when they observe a flag change. Delivery is queued onto the handle's
    context; a change queued before unschedule() is dropped on arrival.
    """

    def __init__(self):
        self._callbacks: dict[ReachabilityHandle, ReachabilityCallback] = {}
        self._contexts: dict[ReachabilityHandle, QObject] = {}
        self._destroyed_slots: dict[ReachabilityHandle, Callable[..., None]] = {}

    def set_callback(
        self, handle: ReachabilityHandle, callback: ReachabilityCallback | None
    ) -> bool:
        if callback is None:
            self._callbacks.pop(handle, None)
        else:
            self._callbacks[handle] = callback
        return True

    def schedule(self, handle: ReachabilityHandle, context: QObject) -> bool:
        current = self._contexts.get(handle)
        if current is context:
            return True
        if current is not None:
            logger.warning("Handle already scheduled on another context: %r", handle)
            return False

        self._contexts[handle] = context
        slot = partial(self._on_context_destroyed, handle, context)
        context.destroyed.connect(slot)
        self._destroyed_slots[handle] = slot
        self._on_scheduled(handle, context)
        logger.debug("Scheduled %r on %r", handle, context)
        return True

    def unschedule(self, handle: ReachabilityHandle, context: QObject) -> None:
        if self._contexts.get(handle) is not context:
            return
        del self._contexts[handle]
        slot = self._destroyed_slots.pop(handle, None)
        if slot is not None and shiboken6.isValid(context):
            context.destroyed.disconnect(slot)
        self._on_unscheduled(handle, context)
        logger.debug("Unscheduled %r", handle)

    def _on_context_destroyed(self, handle: ReachabilityHandle, context: QObject, *args) -> None:
        # The context may not be touched any more; only drop the registry entries
        if self._contexts.get(handle) is not context:
            return
        del self._contexts[handle]
        self._destroyed_slots.pop(handle, None)
        self._on_unscheduled(handle, context)
        logger.debug("Context destroyed, unscheduled %r", handle)

    def _on_scheduled(self, handle: ReachabilityHandle, context: QObject) -> None:
        """Hook for subclasses that need to start watching a handle."""

    def _on_unscheduled(self, handle: ReachabilityHandle, context: QObject) -> None:
        """Hook for subclasses that need to stop watching a handle.

        Also called when the context is being destroyed, so implementations
        must not use the context itself.
        """

    def _dispatch(self, handle: ReachabilityHandle, flags: ReachabilityFlags) -> None:
        """Queue a flag change for delivery on the handle's context."""
        context = self._contexts.get(handle)
        if context is None:
            return
        if not shiboken6.isValid(context):
            self._on_context_destroyed(handle, context)
            return
        QTimer.singleShot(0, context, partial(self._deliver, handle, context, flags))

    def _deliver(
        self, handle: ReachabilityHandle, context: QObject, flags: ReachabilityFlags
    ) -> None:
        if self._contexts.get(handle) is not context:
            # Unscheduled after the change was queued
            return
        callback = self._callbacks.get(handle)
        if callback is None:
            return
        callback(handle, flags)


_default_service: ReachabilityService | None = None


def default_service() -> ReachabilityService:
    """Get the process-wide service, creating the Linux adapter on first use."""
    global _default_service
    if _default_service is None:
        from reachability.service_linux import LinuxReachabilityService

        _default_service = LinuxReachabilityService()
    return _default_service


def set_default_service(service: ReachabilityService | None) -> None:
    """Replace the process-wide service (None resets to lazy creation)."""
    global _default_service
    _default_service = service
