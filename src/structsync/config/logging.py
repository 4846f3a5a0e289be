"""Console logging for the sync commands."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Per-request lines from the HTTP stack drown out the run summary.
_CHATTY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "openpyxl")


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    """Route run output to the console.

    ``verbose`` turns on per-row debug output from structsync itself; the HTTP
    and workbook libraries stay at WARNING unless verbose.
    """

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
    library_level = logging.INFO if verbose else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
