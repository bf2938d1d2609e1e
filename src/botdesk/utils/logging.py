import logging
import os

from rich.logging import RichHandler


def configure_logging(level: str | None = None) -> None:
    """Route botdesk's module loggers through a rich console handler.

    Args:
        level: Log level name; defaults to LOG_LEVEL from the environment, then INFO
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True
    )
