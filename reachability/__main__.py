"""Entry point: log reachability changes for a host or the default route."""

import argparse
import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication, QObject

from reachability import __version__
from reachability.config import Settings
from reachability.fake_service import FakeReachabilityService
from reachability.logging_config import configure_logging
from reachability.models import NetworkStatus
from reachability.monitor import Reachability
from reachability.notifications import REACHABILITY_CHANGED_NOTIFICATION, default_center

# Configure logging early
configure_logging()
logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="reachability-monitor",
        description="Report when a host (or the default route) becomes reachable or unreachable.",
    )
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "host",
        nargs="?",
        help="Host name to monitor (default: $REACHABILITY_HOST, else the default route)",
    )
    return p


def create_service(settings: Settings):
    """Select the platform service, falling back to the fake one.

    Returns:
        Tuple of (service, fallback message or None)
    """
    if settings.service == "fake":
        logger.info("Fake service explicitly requested via environment variable")
        return FakeReachabilityService(), None

    try:
        from reachability.service_linux import LinuxReachabilityService
    except ImportError as e:
        logger.warning("LinuxReachabilityService unavailable: %s", e)
        return FakeReachabilityService(), "Using simulated reachability (platform service unavailable)"

    try:
        service = LinuxReachabilityService(poll_interval_ms=settings.poll_interval_ms)
        logger.info("LinuxReachabilityService initialized successfully")
        return service, None
    except ValueError as e:
        logger.error("LinuxReachabilityService configuration invalid: %s", e)
        return FakeReachabilityService(), "Using simulated reachability (configuration error)"
    except OSError as e:
        logger.warning("Routing table unavailable: %s", e)
        return FakeReachabilityService(), "Using simulated reachability (no routing table)"


def report_status(reachability: Reachability) -> None:
    """Observer for change notifications: log the target's current status."""
    status = reachability.current_reachability_status()
    if status is NetworkStatus.NOT_REACHABLE:
        logger.warning("%s: %s", reachability.target, status.label)
    else:
        logger.info("%s: %s", reachability.target, status.label)


def main(argv=None) -> int:
    """Main entry point for the reachability monitor."""
    args = _build_parser().parse_args(argv)
    settings = Settings.from_env()
    host = args.host or settings.host

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    # Let Ctrl+C terminate the event loop
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    service, user_message = create_service(settings)
    if user_message:
        logger.warning(user_message)

    if host:
        reachability = Reachability.with_host_name(host, service)
    else:
        reachability = Reachability.for_internet_connection(service)

    if reachability is None:
        logger.error("Reachability cannot be determined for %s", host or "the default route")
        return 1

    center = default_center()
    center.add_observer(REACHABILITY_CHANGED_NOTIFICATION, report_status)

    context = QObject()
    if not reachability.start(context):
        logger.error("Could not start change notifications for %s", reachability.target)
        return 1

    report_status(reachability)

    try:
        return app.exec()
    finally:
        reachability.stop()
        center.remove_observer(REACHABILITY_CHANGED_NOTIFICATION, report_status)


if __name__ == "__main__":
    sys.exit(main())
