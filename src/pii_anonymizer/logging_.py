"""Logging setup for the command line.

The library itself only creates module loggers; applications decide where
records go.  Messages carry entity types, offsets and counts, never the
detected values.
"""

from __future__ import annotations
import logging

_HANDLER_NAME = "pii_anonymizer.console"


def setup_logging(level: str | int = "WARNING") -> None:
    """Send log records to stderr with a compact one-line format.

    Calling it again only changes the level.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level)
    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(fmt)
    root.addHandler(handler)
