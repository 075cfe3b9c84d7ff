"""Entry point for running the plotting service."""

from teleplotter.server.app import run


if __name__ == "__main__":
    run()
