"""
infrastructure.logging_setup - Global logging configuration.

Called once by the entry point; every other module only does
logging.getLogger(__name__).
"""

from __future__ import annotations

import logging

from infrastructure.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure root logging from Settings.log_level / log_format."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=settings.log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # requests/urllib3 debug output drowns the provider logs
    logging.getLogger("urllib3").setLevel(logging.WARNING)
