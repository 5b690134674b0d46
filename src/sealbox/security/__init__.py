"""Security helpers: password-based key derivation and sealed string blobs for Sealbox.

This package provides:
- CSPRNG salt and IV generation
- PBKDF2-HMAC key derivation into opaque AES-GCM key handles
- AES-GCM string encryption/decryption with tamper detection
- a versioned, self-describing blob format bundling salt, IV and ciphertext

Every function is stateless; no key material outlives the call that made it.
"""

from .rng import generate_salt, generate_iv
from .kdf import derive_key
from .cipher import encrypt_string, decrypt_string
from .package import (
    BlobFormat,
    FORMATS,
    ParsedBlob,
    parse_blob,
    encrypt_string_and_package,
    decrypt_packaged_string,
)

__all__ = [
    "generate_salt",
    "generate_iv",
    "derive_key",
    "encrypt_string",
    "decrypt_string",
    "BlobFormat",
    "FORMATS",
    "ParsedBlob",
    "parse_blob",
    "encrypt_string_and_package",
    "decrypt_packaged_string",
]
