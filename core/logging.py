"""Simple logging setup (single canonical logger)."""

import logging
import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format=_FORMAT)

# Outbound provider traffic is noisy at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
