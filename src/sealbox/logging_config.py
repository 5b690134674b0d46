"""Lightweight logging setup for applications embedding Sealbox."""

import logging
import sys
from typing import Optional

from sealbox.core.config import get_log_level


def configure_logging(level: Optional[int] = None) -> None:
    # Configure root logger once; level falls back to SEALBOX_LOG_LEVEL, then INFO.
    logging.basicConfig(
        level=level if level is not None else get_log_level(),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )
