"""Runtime settings read from the environment."""

import logging
import os
from dataclasses import dataclass
from typing import Mapping

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 2000
SERVICE_CHOICES = ("linux", "fake")
TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of runtime settings.

    Environment Variables:
        REACHABILITY_SERVICE: "linux" (default) or "fake"
        REACHABILITY_POLL_INTERVAL_MS: Poll interval of the Linux service
        REACHABILITY_HOST: Host to monitor; unset means the default route
        REACHABILITY_TRACE_FLAGS: Force the flag trace on or off; unset leaves
                                  it to the log level
    """

    service: str = "linux"
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    host: str | None = None
    trace_flags: bool | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Unknown service names, non-integer intervals and unrecognized trace
        switches fall back to the defaults with a warning.
        """
        if environ is None:
            environ = os.environ

        service = environ.get("REACHABILITY_SERVICE", "linux").strip().lower()
        if service not in SERVICE_CHOICES:
            logger.warning("Unknown REACHABILITY_SERVICE=%r, using linux", service)
            service = "linux"

        interval_str = environ.get("REACHABILITY_POLL_INTERVAL_MS", "")
        poll_interval_ms = DEFAULT_POLL_INTERVAL_MS
        if interval_str.strip():
            try:
                poll_interval_ms = int(interval_str)
            except ValueError:
                logger.warning(
                    "Invalid REACHABILITY_POLL_INTERVAL_MS=%r, using %d",
                    interval_str,
                    DEFAULT_POLL_INTERVAL_MS,
                )

        host = environ.get("REACHABILITY_HOST", "").strip() or None

        trace_str = environ.get("REACHABILITY_TRACE_FLAGS", "").strip().lower()
        trace_flags = None
        if trace_str in TRUE_VALUES:
            trace_flags = True
        elif trace_str in FALSE_VALUES:
            trace_flags = False
        elif trace_str:
            logger.warning("Invalid REACHABILITY_TRACE_FLAGS=%r, ignoring", trace_str)

        return cls(
            service=service,
            poll_interval_ms=poll_interval_ms,
            host=host,
            trace_flags=trace_flags,
        )
