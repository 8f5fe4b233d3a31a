"""Named broadcast notifications."""

import logging
from typing import Callable

from PySide6.QtCore import QObject, Signal

logger = logging.getLogger(__name__)

REACHABILITY_CHANGED_NOTIFICATION = "kNetworkReachabilityChangedNotification"

Observer = Callable[[object], None]


class NotificationCenter(QObject):
    """Broadcasts named notifications to every interested observer.

    Observers are plain callables registered per notification name and
    receive the posting object. Qt code can connect to notification_posted
    instead, which carries (name, sender) for every notification.
    """

    notification_posted = Signal(str, object)  # (name, sender)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._observers: dict[str, list[Observer]] = {}

    def add_observer(self, name: str, observer: Observer):
        """Register an observer for a notification name.

        Args:
            name: Notification name
            observer: Callable taking the sender (duplicates are ignored)
        """
        observers = self._observers.setdefault(name, [])
        if observer not in observers:
            observers.append(observer)
            logger.debug("Observer added: %s (total: %d)", name, len(observers))

    def remove_observer(self, name: str, observer: Observer):
        """Unregister an observer; unknown observers are ignored."""
        observers = self._observers.get(name, [])
        if observer in observers:
            observers.remove(observer)
            logger.debug("Observer removed: %s (remaining: %d)", name, len(observers))

    def observer_count(self, name: str) -> int:
        return len(self._observers.get(name, []))

    def post(self, name: str, sender: object):
        """Deliver a notification to all current observers of name.

        An observer that raises is logged and does not prevent delivery to
        the remaining observers.
        """
        logger.debug("Posting %s from %r", name, sender)
        self.notification_posted.emit(name, sender)

        for observer in list(self._observers.get(name, [])):
            try:
                observer(sender)
            except Exception:
                logger.exception("Observer failed for %s: %r", name, observer)


_default_center: NotificationCenter | None = None


def default_center() -> NotificationCenter:
    """Get the process-wide notification center."""
    global _default_center
    if _default_center is None:
        _default_center = NotificationCenter()
    return _default_center
