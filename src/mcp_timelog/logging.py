"""Loguru setup for the command line and the server."""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"


def setup_logging(level: str = "INFO") -> None:
    """Replace loguru's default handler with a stderr sink at ``level``.

    Stdout is left alone; the MCP stdio transport owns it.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
