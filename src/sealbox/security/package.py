"""Password-sealed string blobs with a compact, versioned binary header.

Blob layout (version 1), single bytes and opaque binary regions:
- 1 byte: magic 0xCC
- 1 byte: version (1)
- 32 bytes: PBKDF2 salt
- 12 bytes: AES-GCM IV
- remainder: ciphertext with the 16-byte tag appended

The version byte selects a :class:`BlobFormat` from :data:`FORMATS`, so a new
layout or algorithm gets a new entry instead of changing how existing blobs
are read. Structural checks (length, magic, version) run before any key
derivation or cipher work.
"""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from types import MappingProxyType
from typing import NamedTuple, Optional

from sealbox.core.exceptions import (
    CryptoError,
    DECRYPTION_PACKAGING_FAILED,
    ENCRYPTION_PACKAGING_FAILED,
    MalformedCiphertextError,
    ValidationError,
)
from sealbox.core.models import KeyDerivationParams
from sealbox.core.validation import validate_bytes, validate_string
from .cipher import decrypt_string, encrypt_string
from .kdf import derive_key
from .rng import generate_salt

logger = logging.getLogger(__name__)


MAGIC = 0xCC
HEADER_LENGTH = 2  # magic + version
CURRENT_VERSION = 1


@dataclass(frozen=True)
class BlobFormat:
    version: int
    salt_length: int
    iv_length: int
    tag_length_bits: int = 128

    @property
    def prefix_length(self) -> int:
        # header + salt + iv, i.e. the offset of the ciphertext
        return HEADER_LENGTH + self.salt_length + self.iv_length

    @property
    def tag_length(self) -> int:
        return self.tag_length_bits // 8


FORMATS = MappingProxyType({
    1: BlobFormat(version=1, salt_length=32, iv_length=12, tag_length_bits=128),
})

MIN_PREFIX_LENGTH = min(fmt.prefix_length for fmt in FORMATS.values())


class ParsedBlob(NamedTuple):
    format: BlobFormat
    salt: bytes
    iv: bytes
    ciphertext: bytes


def parse_blob(blob: bytes) -> ParsedBlob:
    """
    Validate the header of a packaged blob and slice it into its regions.

    Raises :class:`MalformedCiphertextError` for a blob that is too short,
    carries the wrong magic byte or an unknown version.
    """
    validate_bytes(blob, "packaged blob")
    view = bytes(blob)

    if len(view) < MIN_PREFIX_LENGTH:
        raise MalformedCiphertextError(f"packaged blob is too short to be valid ({len(view)} bytes)")

    magic, version = struct.unpack_from("BB", view, 0)
    if magic != MAGIC:
        raise MalformedCiphertextError(f"invalid magic header (0x{magic:02x})")
    fmt = FORMATS.get(version)
    if fmt is None:
        raise MalformedCiphertextError(f"unsupported version (0x{version:02x})")

    if len(view) < fmt.prefix_length + fmt.tag_length:
        raise MalformedCiphertextError(
            f"packaged blob is too short to hold a version {version} ciphertext ({len(view)} bytes)"
        )

    offset = HEADER_LENGTH
    salt = view[offset:offset + fmt.salt_length]
    offset += fmt.salt_length
    iv = view[offset:offset + fmt.iv_length]
    offset += fmt.iv_length
    return ParsedBlob(fmt, salt, iv, view[offset:])


def _check_length(value, expected: int, name: str) -> None:
    if value is not None and len(value) != expected:
        raise ValidationError(f"{name} must be {expected} bytes for this blob format, got {len(value)}")


def encrypt_string_and_package(
    plaintext: str,
    password: str,
    params: Optional[KeyDerivationParams] = None,
    salt: Optional[bytes] = None,
    iv: Optional[bytes] = None,
    additional_authenticated_data: Optional[bytes] = None,
    correlation_id: Optional[str] = None,
) -> bytes:
    """
    Encrypt ``plaintext`` under ``password`` and return one self-contained blob.

    The blob embeds everything except the password (and any associated data)
    needed by :func:`decrypt_packaged_string`. A fresh salt and IV are used
    unless given explicitly.
    """
    validate_string(plaintext, "plaintext for packaging")
    validate_string(password, "password for packaging encryption")

    fmt = FORMATS[CURRENT_VERSION]
    if params is None:
        params = KeyDerivationParams()
    _check_length(salt, fmt.salt_length, "salt")
    _check_length(iv, fmt.iv_length, "IV")
    if salt is None and params.salt_length_bytes != fmt.salt_length:
        raise ValidationError(
            f"salt length must be {fmt.salt_length} bytes for this blob format, "
            f"got {params.salt_length_bytes}"
        )

    try:
        if salt is None:
            salt = generate_salt(fmt.salt_length, correlation_id=correlation_id)
        key, salt = derive_key(password, params, salt=salt, correlation_id=correlation_id)
        ciphertext, iv = encrypt_string(
            plaintext,
            key,
            iv=iv,
            tag_length_bits=fmt.tag_length_bits,
            additional_authenticated_data=additional_authenticated_data,
            correlation_id=correlation_id,
        )

        blob = bytearray()
        blob += struct.pack("BB", MAGIC, fmt.version)
        blob += salt
        blob += iv
        blob += ciphertext
    except Exception as e:
        logger.error("packaging failed (correlation_id=%s): %s", correlation_id, e)
        raise CryptoError(f"Packaging failed: {e}", ENCRYPTION_PACKAGING_FAILED, cause=e) from e

    logger.debug("packaged %d-byte v%d blob (correlation_id=%s)", len(blob), fmt.version, correlation_id)
    return bytes(blob)


def decrypt_packaged_string(
    blob: bytes,
    password: str,
    params: Optional[KeyDerivationParams] = None,
    additional_authenticated_data: Optional[bytes] = None,
    correlation_id: Optional[str] = None,
) -> str:
    """
    Decrypt a blob produced by :func:`encrypt_string_and_package`.

    ``params`` must match the iterations, hash and key length used when the
    blob was sealed; the salt comes from the blob itself.

    :class:`MalformedCiphertextError` means the data must not be trusted: it is
    structurally invalid, was tampered with, or the password is wrong. Other
    failures surface as ``DECRYPTION_PACKAGING_FAILED``.

    An empty or non-bytes ``blob`` is a caller error and raises
    :class:`ValidationError` before any structural check.
    """
    validate_bytes(blob, "packaged blob for decryption")
    validate_string(password, "password for packaged decryption")

    parsed = parse_blob(blob)
    if params is None:
        params = KeyDerivationParams()

    try:
        key, _ = derive_key(password, params, salt=parsed.salt, correlation_id=correlation_id)
        return decrypt_string(
            parsed.ciphertext,
            key,
            parsed.iv,
            tag_length_bits=parsed.format.tag_length_bits,
            additional_authenticated_data=additional_authenticated_data,
            correlation_id=correlation_id,
        )
    except MalformedCiphertextError:
        raise
    except Exception as e:
        logger.error("packaged decryption failed (correlation_id=%s): %s", correlation_id, e)
        raise CryptoError(f"Packaged decryption failed: {e}", DECRYPTION_PACKAGING_FAILED, cause=e) from e
