"""
Exceptions for Sealbox
Every failure raised by the library is a CryptoError, so callers can keep a
single general catcher and still branch on the specific kinds below.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    # closed set of failure kinds, one per exception class
    VALIDATION = "validation"
    KEY_OPERATION = "key_operation"
    MALFORMED_CIPHERTEXT = "malformed_ciphertext"
    CRYPTO = "crypto"


# machine-readable codes
GENERIC_ERROR = "CRYPTO_GENERIC_ERROR"
VALIDATION_ERROR = "VALIDATION_ERROR"
KEY_OPERATION_ERROR = "KEY_OPERATION_ERROR"
MALFORMED_CIPHERTEXT_ERROR = "MALFORMED_CIPHERTEXT_ERROR"
SALT_GENERATION_ERROR = "SALT_GENERATION_ERROR"
IV_GENERATION_ERROR = "IV_GENERATION_ERROR"
ENCRYPTION_FAILED = "ENCRYPTION_FAILED"
DECRYPTION_FAILED = "DECRYPTION_FAILED"
ENCRYPTION_PACKAGING_FAILED = "ENCRYPTION_PACKAGING_FAILED"
DECRYPTION_PACKAGING_FAILED = "DECRYPTION_PACKAGING_FAILED"


class CryptoError(Exception):
    """General container for errors, carrying a stable code and the wrapped cause."""

    kind = ErrorKind.CRYPTO
    default_code = GENERIC_ERROR

    def __init__(self, message: str, code: Optional[str] = None, cause: Optional[BaseException] = None):
        self.message = message
        self.code = code or self.default_code
        self.cause = cause
        super().__init__(f"[{self.code}] {message}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(CryptoError):
    # raised when the caller supplies invalid input (always a caller bug)
    kind = ErrorKind.VALIDATION
    default_code = VALIDATION_ERROR

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)


class KeyOperationError(CryptoError):
    # raised when key derivation, import or usage fails
    kind = ErrorKind.KEY_OPERATION
    default_code = KEY_OPERATION_ERROR

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)


class MalformedCiphertextError(CryptoError):
    # raised when a blob is structurally invalid or fails tag verification;
    # the data must not be trusted
    kind = ErrorKind.MALFORMED_CIPHERTEXT
    default_code = MALFORMED_CIPHERTEXT_ERROR

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)
