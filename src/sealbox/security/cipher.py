"""AES-GCM string encryption under a :class:`~sealbox.core.models.DerivedKey`.

Ciphertexts carry the authentication tag appended at the end, matching the
AEAD convention used by :class:`AESGCM`. Full 128-bit tags go through
``AESGCM``; truncated tags (Web Crypto allows 32..120 bits) use the lower level
``Cipher``/``modes.GCM`` primitive, which can emit and verify short tags.

A failed tag check is reported as :class:`MalformedCiphertextError` and is
never folded into the generic decryption failure.
"""
from __future__ import annotations

import logging
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from sealbox.core.exceptions import (
    CryptoError,
    DECRYPTION_FAILED,
    ENCRYPTION_FAILED,
    KeyOperationError,
    MalformedCiphertextError,
    ValidationError,
)
from sealbox.core.models import (
    DEFAULT_TAG_LENGTH_BITS,
    DerivedKey,
    EncryptedPayload,
    USAGE_DECRYPT,
    USAGE_ENCRYPT,
)
from sealbox.core.validation import BYTES_LIKE, validate_bytes, validate_string
from .rng import generate_iv

logger = logging.getLogger(__name__)

TAG_LENGTHS_BITS = (32, 64, 96, 104, 112, 120, 128)
FULL_TAG_LENGTH = 16


def _require_usage(key, usage: str) -> bytes:
    if not isinstance(key, DerivedKey) or not key.allows(usage):
        raise KeyOperationError(f"Key must be a valid secret key with '{usage}' usage")
    return key._raw()


def _tag_length(bits: int) -> int:
    if bits not in TAG_LENGTHS_BITS:
        raise ValidationError(f"tag length must be one of {TAG_LENGTHS_BITS} bits, got {bits!r}")
    return bits // 8


def _associated_data(data) -> Optional[bytes]:
    if data is None:
        return None
    if not isinstance(data, BYTES_LIKE):
        raise ValidationError("additional authenticated data must be bytes")
    return bytes(data)


def _gcm_encrypt(key: bytes, iv: bytes, data: bytes, aad: Optional[bytes], tag_len: int) -> bytes:
    if tag_len == FULL_TAG_LENGTH:
        return AESGCM(key).encrypt(iv, data, aad)

    encryptor = Cipher(algorithms.AES(key), modes.GCM(iv)).encryptor()
    if aad:
        encryptor.authenticate_additional_data(aad)
    ct = encryptor.update(data) + encryptor.finalize()
    return ct + encryptor.tag[:tag_len]


def _gcm_decrypt(key: bytes, iv: bytes, data: bytes, aad: Optional[bytes], tag_len: int) -> bytes:
    if tag_len == FULL_TAG_LENGTH:
        return AESGCM(key).decrypt(iv, data, aad)

    if len(data) < tag_len:
        raise InvalidTag()
    body, tag = data[:-tag_len], data[-tag_len:]
    decryptor = Cipher(algorithms.AES(key), modes.GCM(iv, tag, min_tag_length=tag_len)).decryptor()
    if aad:
        decryptor.authenticate_additional_data(aad)
    return decryptor.update(body) + decryptor.finalize()


def encrypt_string(
    plaintext: str,
    key: DerivedKey,
    iv: Optional[bytes] = None,
    tag_length_bits: int = DEFAULT_TAG_LENGTH_BITS,
    additional_authenticated_data: Optional[bytes] = None,
    correlation_id: Optional[str] = None,
) -> EncryptedPayload:
    """
    Encrypt ``plaintext`` (as UTF-8) and return ``(ciphertext, iv)``.

    A fresh IV is generated unless one is given. Blank plaintext is rejected
    with :class:`ValidationError`; encrypting it would be safe, but it almost
    always means the caller passed the wrong value.
    """
    validate_string(plaintext, "plaintext for encryption")
    material = _require_usage(key, USAGE_ENCRYPT)
    tag_len = _tag_length(tag_length_bits)
    aad = _associated_data(additional_authenticated_data)

    if iv is None:
        iv = generate_iv(correlation_id=correlation_id)
    else:
        validate_bytes(iv, "IV for encryption")
        iv = bytes(iv)

    try:
        ciphertext = _gcm_encrypt(material, iv, plaintext.encode("utf-8"), aad, tag_len)
    except Exception as e:
        logger.error("encryption failed (correlation_id=%s): %s", correlation_id, e)
        raise CryptoError(f"Encryption failed: {e}", ENCRYPTION_FAILED, cause=e) from e

    return EncryptedPayload(ciphertext, iv)


def decrypt_string(
    ciphertext: bytes,
    key: DerivedKey,
    iv: bytes,
    tag_length_bits: int = DEFAULT_TAG_LENGTH_BITS,
    additional_authenticated_data: Optional[bytes] = None,
    correlation_id: Optional[str] = None,
) -> str:
    """
    Verify and decrypt ``ciphertext`` (tag appended) and return the UTF-8 text.

    Raises :class:`MalformedCiphertextError` when the tag does not verify,
    which covers tampering, a wrong key, a wrong IV and wrong associated data.
    """
    validate_bytes(ciphertext, "ciphertext for decryption")
    material = _require_usage(key, USAGE_DECRYPT)
    validate_bytes(iv, "IV for decryption")
    tag_len = _tag_length(tag_length_bits)
    aad = _associated_data(additional_authenticated_data)

    try:
        data = _gcm_decrypt(material, bytes(iv), bytes(ciphertext), aad, tag_len)
    except InvalidTag as e:
        logger.warning("authentication tag mismatch (correlation_id=%s)", correlation_id)
        raise MalformedCiphertextError(
            "Authentication tag mismatch. Data may be tampered with or key/IV is incorrect.",
            cause=e,
        ) from e
    except Exception as e:
        logger.error("decryption failed (correlation_id=%s): %s", correlation_id, e)
        raise CryptoError(f"Decryption failed: {e}", DECRYPTION_FAILED, cause=e) from e

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CryptoError("Decryption failed: plaintext is not valid UTF-8", DECRYPTION_FAILED, cause=e) from e
