"""Logging configuration for the reachability monitor."""

import logging
import os
import sys

from reachability.config import Settings

# Receives one line per classification describing which flags were set
TRACE_LOGGER_NAME = "reachability.trace"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_trace(trace_flags: bool | None) -> None:
    """Switch the flag trace on, off, or back to following the log level.

    Args:
        trace_flags: True emits the trace whatever the root level is, False
                     suppresses it, None leaves it to the root level (the
                     trace is logged at DEBUG)
    """
    trace_logger = logging.getLogger(TRACE_LOGGER_NAME)
    trace_logger.disabled = trace_flags is False
    trace_logger.setLevel(logging.DEBUG if trace_flags else logging.NOTSET)


def configure_logging(trace_flags: bool | None = None) -> None:
    """Configure application-wide logging and the reachability flag trace.

    Logs to stderr with timestamp, logger name, level, and message.

    Args:
        trace_flags: Override for REACHABILITY_TRACE_FLAGS; see configure_trace()

    Environment Variables:
        REACHABILITY_LOG_LEVEL: Root level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
                                Unknown values fall back to INFO.
        REACHABILITY_TRACE_FLAGS: "1"/"true" to always print flag traces,
                                  "0"/"false" to never print them.

    Examples:
        # Status changes only
        $ python -m reachability example.com

        # Status changes plus a flag trace for each classification
        $ REACHABILITY_TRACE_FLAGS=1 python -m reachability example.com
    """
    log_level_str = os.environ.get("REACHABILITY_LOG_LEVEL", "INFO").upper()
    log_level = logging.getLevelName(log_level_str)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    if trace_flags is None:
        trace_flags = Settings.from_env().trace_flags
    configure_trace(trace_flags)

    logger = logging.getLogger(__name__)
    logger.info(
        "Logging configured: level=%s, trace_flags=%s",
        logging.getLevelName(log_level),
        "default" if trace_flags is None else trace_flags,
    )
