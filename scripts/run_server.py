"""Entrypoint for launching the Teleplotter FastAPI server."""
from __future__ import annotations

from teleplotter.server.app import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
