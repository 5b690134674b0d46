import logging
import time
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from sealbox.core.exceptions import KeyOperationError
from sealbox.core.models import (
    DerivationResult,
    DerivedKey,
    HashAlgorithm,
    KeyDerivationParams,
    USAGE_DECRYPT,
    USAGE_ENCRYPT,
)
from sealbox.core.validation import validate_bytes, validate_string
from .rng import generate_salt

logger = logging.getLogger(__name__)

AES_KEY_LENGTHS = (128, 192, 256)

_HASHES = {
    HashAlgorithm.SHA256: hashes.SHA256,
    HashAlgorithm.SHA512: hashes.SHA512,
}


def _resolve_hash(params: KeyDerivationParams) -> hashes.HashAlgorithm:
    try:
        algorithm = HashAlgorithm.from_name(params.hash_algorithm)
    except ValueError as e:
        raise KeyOperationError(f"Failed to derive key: {e}", cause=e) from e
    return _HASHES[algorithm]()


def _check_params(params: KeyDerivationParams) -> None:
    iterations = params.iterations
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
        raise KeyOperationError(f"Failed to derive key: iterations must be >= 1, got {iterations!r}")
    if params.key_length_bits not in AES_KEY_LENGTHS:
        raise KeyOperationError(
            f"Failed to derive key: AES key length must be one of {AES_KEY_LENGTHS}, "
            f"got {params.key_length_bits!r}"
        )
    salt_length = params.salt_length_bytes
    if isinstance(salt_length, bool) or not isinstance(salt_length, int) or salt_length < 1:
        raise KeyOperationError(f"Failed to derive key: salt length must be >= 1, got {salt_length!r}")


def derive_key(
    password: str,
    params: Optional[KeyDerivationParams] = None,
    salt: Optional[bytes] = None,
    correlation_id: Optional[str] = None,
) -> DerivationResult:
    """
    Derive an AES-GCM key from a password using PBKDF2-HMAC.

    When ``salt`` is omitted a fresh one of ``params.salt_length_bytes`` is
    generated; the decryption path passes the salt read from the blob.
    Returns ``(key, salt)``. The key is usable for both encrypt and decrypt.

    This is deliberately slow at the default iteration count; run independent
    derivations on separate threads if throughput matters.
    """
    validate_string(password, "password for key derivation")
    if params is None:
        params = KeyDerivationParams()

    _check_params(params)
    algorithm = _resolve_hash(params)

    if salt is None:
        salt = generate_salt(params.salt_length_bytes, correlation_id=correlation_id)
    else:
        validate_bytes(salt, "salt for key derivation")
        salt = bytes(salt)

    started = time.perf_counter()
    try:
        kdf = PBKDF2HMAC(
            algorithm=algorithm,
            length=params.key_length_bits // 8,
            salt=salt,
            iterations=params.iterations,
        )
        material = kdf.derive(password.encode("utf-8"))
    except Exception as e:
        logger.error("key derivation failed (correlation_id=%s): %s", correlation_id, e)
        raise KeyOperationError(f"Failed to derive key: {e}", cause=e) from e

    logger.debug(
        "derived %d-bit key with PBKDF2-%s x%d in %.1f ms (correlation_id=%s)",
        params.key_length_bits,
        algorithm.name,
        params.iterations,
        (time.perf_counter() - started) * 1000,
        correlation_id,
    )
    return DerivationResult(DerivedKey(material, (USAGE_ENCRYPT, USAGE_DECRYPT)), salt)


__all__ = ["derive_key"]
