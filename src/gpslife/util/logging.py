# gpslife/util/logging.py
from __future__ import annotations

import datetime
import logging
import sys

LOG_FORMAT = "%(asctime)s  %(levelname)s  %(name)s: %(message)s"


def log(msg: str) -> None:
    """Print a timestamped log line (local time with timezone)."""
    ts = datetime.datetime.now().astimezone().isoformat(timespec="seconds")
    print(f"{ts}  {msg}")


def configure_logging(verbose: bool = False) -> None:
    """
    Route library diagnostics (logging.getLogger(__name__) in gpslife modules)
    to stderr. Warnings only unless verbose.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
