"""
Common helpers: logger factory, JSON serialization, timing.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union


# Logging utilities
def get_logger(name: str, level: Union[str, int] = logging.NOTSET) -> logging.Logger:
    """
    Get a module logger.

    Handlers and formatting are configured once per process by
    tri_scan.logging_config.setup(); module loggers only propagate.

    Args:
        name: Logger name (typically __name__)
        level: Logging level; NOTSET inherits from the root logger

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if level != logging.NOTSET:
        logger.setLevel(level)
    return logger


# JSON utilities
def _json_default_handler(obj: Any) -> Any:
    """Default JSON serialization handler for custom types."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return str(obj)


def json_line(event: str, payload: Optional[Dict[str, Any]] = None) -> str:
    """
    Render one JSON-lines record: {"ts": ..., "event": ..., **payload}.

    Integers are kept as JSON integers regardless of size.
    """
    record: Dict[str, Any] = {
        "ts": datetime.now().astimezone().isoformat(timespec="seconds"),
        "event": event,
    }
    if payload:
        record.update(payload)
    return json.dumps(record, ensure_ascii=False, default=_json_default_handler)


# Time utilities
def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"
