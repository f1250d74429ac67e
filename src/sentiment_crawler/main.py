"""Main entry point for the sentiment crawler."""

import sys

from .cli.main import main


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
