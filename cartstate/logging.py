"""
Logging for cartstate.

Every module does `logger = get_logger(__name__)`. The root handler is set
up once, on first import, unless the host application already did it.
"""

import logging
import os
import sys
from functools import cache


def _configure_root_logger() -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    # Vercel adds its own timestamps
    if os.environ.get("VERCEL") == "1":
        handler.setFormatter(logging.Formatter("%(levelname)s - %(name)s - %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root.addHandler(handler)

    # One line per stock-check request otherwise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: str | None, max_length: int = 12) -> str:
    """
    Make a product or location id safe to put in a log line.

    Ids arrive in client payloads: control characters are escaped (CWE-117)
    and the result is cut to `max_length`. Empty ids become "N/A".
    """
    if not id_value:
        return "N/A"
    safe_value = (
        str(id_value)
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )
    return safe_value[:max_length]
