# pyright: standard

"""zfs-autorepl: zfs_autorepl/__logger__.py
A common logger for rich console output.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

# Initialize basic console and handler
cons = Console(stderr=True)
rich_handler = RichHandler(console=cons, show_path=False)
# Create a logger directly
logger = logging.getLogger("zfs_autorepl")


def create_logger(live_layout: bool = False, level: str = "INFO", log_file=None) -> None:
    """Helper function to setup logging depending on display options.

    Args:
        live_layout: Drop timestamps from console lines (for wrapped output)
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path of a file that receives a plain copy of the log
    """
    # pylint: disable=global-statement
    global cons, rich_handler

    cons = Console(stderr=True)
    rich_handler = RichHandler(
        console=cons, show_time=not live_layout, show_path=False
    )

    handlers: list[logging.Handler] = [rich_handler]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logger.handlers.clear()
    logger.propagate = False
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)

    logging.basicConfig(
        format="%(message)s",
        datefmt="%H:%M:%S",
        level=level,
        handlers=handlers,
        force=True,
    )
