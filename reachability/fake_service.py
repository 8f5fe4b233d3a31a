"""Fake reachability service for testing and simulation."""

import logging

from PySide6.QtCore import QObject

from reachability.models import ReachabilityFlags, ReachabilityTarget, SocketAddress
from reachability.service import (
    BaseReachabilityService,
    ReachabilityCallback,
    ReachabilityHandle,
    is_valid_host_name,
)

logger = logging.getLogger(__name__)


class FakeReachabilityService(BaseReachabilityService):
    """In-memory service whose flags are set by the caller.

    Every handle starts with default_flags. Changing flags with set_flags()
    or set_all_flags() dispatches to scheduled handles, as a platform would
    on a link or route change. The fail_* switches make the matching
    operation fail at the platform level.
    """

    def __init__(self, default_flags: ReachabilityFlags = ReachabilityFlags.REACHABLE):
        super().__init__()
        self.default_flags = default_flags
        self._flags: dict[ReachabilityHandle, ReachabilityFlags] = {}
        self.handles: list[ReachabilityHandle] = []

        self.fail_create = False
        self.fail_get_flags = False
        self.fail_set_callback = False
        self.fail_schedule = False

    def create_with_name(self, host_name: str) -> ReachabilityHandle | None:
        if self.fail_create or not is_valid_host_name(host_name):
            return None
        return self._create(ReachabilityTarget.for_host_name(host_name))

    def create_with_address(self, address: SocketAddress) -> ReachabilityHandle | None:
        if self.fail_create:
            return None
        try:
            address.ip_address()
        except ValueError:
            return None
        if address == SocketAddress.zero_ipv4():
            return self._create(ReachabilityTarget.for_default_route())
        return self._create(ReachabilityTarget.for_address(address))

    def get_flags(self, handle: ReachabilityHandle) -> ReachabilityFlags | None:
        if self.fail_get_flags:
            return None
        return self._flags.get(handle, self.default_flags)

    def set_callback(
        self, handle: ReachabilityHandle, callback: ReachabilityCallback | None
    ) -> bool:
        if self.fail_set_callback and callback is not None:
            return False
        return super().set_callback(handle, callback)

    def schedule(self, handle: ReachabilityHandle, context: QObject) -> bool:
        if self.fail_schedule:
            return False
        return super().schedule(handle, context)

    def set_flags(self, handle: ReachabilityHandle, flags: ReachabilityFlags) -> None:
        """Change the flags of one handle, dispatching if they differ."""
        previous = self._flags.get(handle, self.default_flags)
        self._flags[handle] = flags
        if flags != previous:
            logger.debug("Fake flags changed: %r %s -> %s", handle, previous, flags)
            self._dispatch(handle, flags)

    def set_all_flags(self, flags: ReachabilityFlags) -> None:
        """Change the flags of every handle created so far."""
        for handle in self.handles:
            self.set_flags(handle, flags)

    def is_scheduled(self, handle: ReachabilityHandle) -> bool:
        return handle in self._contexts

    def has_callback(self, handle: ReachabilityHandle) -> bool:
        return handle in self._callbacks

    def _create(self, target: ReachabilityTarget) -> ReachabilityHandle:
        handle = ReachabilityHandle(target)
        self.handles.append(handle)
        return handle
