"""Console entry point: load ``.env``, install the Ctrl+C handler, run the CLI."""

from __future__ import annotations

from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from structsync.ui.cli import main as cli_main
from structsync.ui.cli import sigint_handler

if TYPE_CHECKING:
    from collections.abc import Sequence


def main(argv: Sequence[str] | None = None) -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    cli_main(argv)


if __name__ == "__main__":
    main()
