# storefront/log.py
import logging

from rich.console import Console
from rich.logging import RichHandler

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Route the root logger through rich. Safe to call more than once."""
    global _configured
    root = logging.getLogger()
    root.setLevel(level.upper())
    if _configured:
        return
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    _configured = True
