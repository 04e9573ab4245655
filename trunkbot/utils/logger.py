"""
Logging configuration and utilities for trunkbot.
"""

import logging
import sys
from typing import Iterable

# Polled by fleet monitors; successful hits are not worth an access log line
QUIET_PATHS = ("/health",)


class QuietPathFilter(logging.Filter):
    """
    Drop uvicorn access log lines for successful GETs of quiet paths.

    Recorders upload a call every few seconds, so the access log stays
    readable only if probe traffic is left out. Failed probes still log.
    """

    def __init__(self, paths: Iterable[str] = QUIET_PATHS):
        super().__init__()
        self.paths = frozenset(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Args:
            record: Log record to filter

        Returns:
            False to suppress the log record, True to allow it through
        """
        # uvicorn access args: (client, method, path, http_version, status_code)
        args = record.args
        if not isinstance(args, tuple) or len(args) < 5:
            return True

        _, method, path, _, status_code = args[:5]
        if method != "GET" or path not in self.paths:
            return True
        return not (isinstance(status_code, int) and 200 <= status_code < 300)


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure logging to stdout only.

    Args:
        log_level: The log level to use (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Raises:
        ValueError: If log_level is not a valid logging level name
    """
    numeric_level = logging.getLevelName(log_level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True
    )

    logging.getLogger('trunkbot').setLevel(numeric_level)
    logging.getLogger('uvicorn').setLevel(logging.INFO)

    # Per-request noise from the SDKs behind the fan-out jobs
    for noisy in ('httpx', 'botocore', 'boto3', 'urllib3', 'slack_sdk', 'google_genai'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger('uvicorn.access').addFilter(QuietPathFilter())


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get a logger for a module, namespaced under ``trunkbot``.

    Args:
        module_name: The module name (e.g., __name__)

    Returns:
        logging.Logger: Logger whose name always starts with ``trunkbot.``
    """
    if module_name == "trunkbot" or module_name.startswith("trunkbot."):
        return logging.getLogger(module_name)
    return logging.getLogger(f"trunkbot.{module_name}")
