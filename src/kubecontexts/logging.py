"""Logging setup for the command-line host."""

import logging

from rich.logging import RichHandler


def configure_logging(level: int = logging.WARNING, force: bool = False):
    """Routes the `kubecontexts.*` loggers through rich. Call once from the entry point."""
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=force,
    )
