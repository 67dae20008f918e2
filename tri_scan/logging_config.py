"""
Logging configuration for cleaner output.

Usage:
    from tri_scan import logging_config
    logging_config.setup()
"""

import logging
import sys


def setup(level=logging.INFO):
    """
    Configure process logging.

    - Human-readable log lines go to stderr so stdout stays JSON lines
    - Uses shorter timestamp format (HH:MM:SS instead of full datetime)
    - Suppresses chatty HTTP/RPC client loggers
    """
    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    # Suppress noisy loggers
    logging.getLogger("web3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger("tri_scan").setLevel(level)


def setup_debug():
    """
    Verbose logging for debugging.
    Shows RPC provider traffic as well.
    """
    setup(level=logging.DEBUG)
    logging.getLogger("web3").setLevel(logging.INFO)
