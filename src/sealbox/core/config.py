"""Environment-driven settings for Sealbox.

Nothing here is read implicitly by the encrypt/decrypt functions; callers opt
in with :meth:`KeyDerivationParams.from_env` or :func:`get_log_level` so that
packaged blobs do not silently depend on the process environment.

Recognised variables:

- ``SEALBOX_PBKDF2_ITERATIONS``: PBKDF2 iteration count
- ``SEALBOX_PBKDF2_HASH``: ``SHA-256`` or ``SHA-512``
- ``SEALBOX_KEY_LENGTH_BITS``: AES key length (128, 192 or 256)
- ``SEALBOX_LOG_LEVEL``: logging level name, e.g. ``DEBUG``
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from sealbox.core.exceptions import ValidationError

ENV_ITERATIONS = "SEALBOX_PBKDF2_ITERATIONS"
ENV_HASH = "SEALBOX_PBKDF2_HASH"
ENV_KEY_LENGTH = "SEALBOX_KEY_LENGTH_BITS"
ENV_LOG_LEVEL = "SEALBOX_LOG_LEVEL"


def env_int(name: str, default: int) -> int:
    """Return the integer value of ``name`` or ``default`` when it is unset."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ValidationError(f"{name} must be an integer, got {raw!r}", cause=e) from e


def env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def get_log_level(default: int = logging.INFO) -> int:
    """Resolve ``SEALBOX_LOG_LEVEL`` to a :mod:`logging` level number."""
    name = env_str(ENV_LOG_LEVEL)
    if name is None:
        return default
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValidationError(f"{ENV_LOG_LEVEL} is not a logging level: {name!r}")
    return level
