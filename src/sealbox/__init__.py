"""Sealbox: password-sealed string encryption.

The library only logs through module loggers under ``sealbox``; applications
can call :func:`sealbox.logging_config.configure_logging` to send that output
to stdout (level from ``SEALBOX_LOG_LEVEL``).
"""

import logging

from sealbox.core.exceptions import (
    CryptoError,
    ErrorKind,
    KeyOperationError,
    MalformedCiphertextError,
    ValidationError,
)
from sealbox.core.models import DerivedKey, EncryptedPayload, HashAlgorithm, KeyDerivationParams
from sealbox.core.validation import to_hex
from sealbox.security import decrypt_packaged_string, encrypt_string_and_package

# library code logs; applications decide where it goes
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "CryptoError",
    "ErrorKind",
    "KeyOperationError",
    "MalformedCiphertextError",
    "ValidationError",
    "DerivedKey",
    "EncryptedPayload",
    "HashAlgorithm",
    "KeyDerivationParams",
    "encrypt_string_and_package",
    "decrypt_packaged_string",
    "to_hex",
]
