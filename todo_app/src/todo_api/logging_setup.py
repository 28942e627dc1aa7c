from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


# PUBLIC_INTERFACE
def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger with a single stderr handler.

    Safe to call more than once: existing handlers are replaced rather than
    duplicated. Unknown level names fall back to INFO.
    """
    numeric = logging.getLevelName(level.upper()) if level else logging.INFO
    if not isinstance(numeric, int):
        numeric = logging.INFO

    root = logging.getLogger()
    root.setLevel(numeric)

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    root.addHandler(handler)

    logging.captureWarnings(True)
