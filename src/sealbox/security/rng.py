"""Cryptographically secure salt and IV generation.

Both helpers draw from :func:`os.urandom`, the operating system CSPRNG.
A seeded or pseudo-random generator must never be substituted here.
"""

import logging
import os
from typing import Optional

from sealbox.core.exceptions import (
    CryptoError,
    IV_GENERATION_ERROR,
    SALT_GENERATION_ERROR,
    ValidationError,
)
from sealbox.core.models import DEFAULT_IV_LENGTH, DEFAULT_SALT_LENGTH

logger = logging.getLogger(__name__)


def _random_bytes(length: int, what: str, code: str, correlation_id: Optional[str]) -> bytes:
    if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
        raise ValidationError(f"{what} length must be a positive integer, got {length!r}")
    try:
        return os.urandom(length)
    except Exception as e:
        logger.error("failed to generate %s (correlation_id=%s): %s", what, correlation_id, e)
        raise CryptoError(f"Failed to generate {what}: {e}", code, cause=e) from e


def generate_salt(length: int = DEFAULT_SALT_LENGTH, correlation_id: Optional[str] = None) -> bytes:
    """Return a cryptographically secure random salt."""
    return _random_bytes(length, "salt", SALT_GENERATION_ERROR, correlation_id)


def generate_iv(length: int = DEFAULT_IV_LENGTH, correlation_id: Optional[str] = None) -> bytes:
    """Return a fresh random IV (nonce). Never reuse one under the same key."""
    return _random_bytes(length, "IV", IV_GENERATION_ERROR, correlation_id)
