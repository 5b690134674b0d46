"""
Base data models for key derivation and encryption results
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import FrozenSet, Iterable, NamedTuple

from sealbox.core import config
from sealbox.core.exceptions import ValidationError


DEFAULT_ITERATIONS = 250_000
DEFAULT_KEY_LENGTH_BITS = 256
DEFAULT_SALT_LENGTH = 32
DEFAULT_IV_LENGTH = 12  # standard nonce size for AES-GCM
DEFAULT_TAG_LENGTH_BITS = 128

USAGE_ENCRYPT = "encrypt"
USAGE_DECRYPT = "decrypt"


class HashAlgorithm(Enum):
    # PRF used inside PBKDF2
    SHA256 = "SHA-256"
    SHA512 = "SHA-512"

    @classmethod
    def from_name(cls, name) -> "HashAlgorithm":
        """Accept an enum member or a name such as ``"SHA-256"``, ``"sha512"``."""
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise ValueError(f"unsupported hash algorithm: {name!r}")
        normalized = name.strip().upper().replace("_", "-")
        for member in cls:
            if normalized in (member.value, member.value.replace("-", "")):
                return member
        raise ValueError(f"unsupported hash algorithm: {name!r}")


@dataclass(frozen=True)
class KeyDerivationParams:
    """PBKDF2 settings used for one derivation. Immutable; use :meth:`replace` to override."""

    iterations: int = DEFAULT_ITERATIONS
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256
    key_length_bits: int = DEFAULT_KEY_LENGTH_BITS
    salt_length_bytes: int = DEFAULT_SALT_LENGTH

    def replace(self, **changes) -> "KeyDerivationParams":
        return replace(self, **changes)

    @classmethod
    def from_env(cls) -> "KeyDerivationParams":
        """
        Build params from ``SEALBOX_*`` environment variables.
        Unset variables fall back to the defaults above.
        """
        hash_name = config.env_str(config.ENV_HASH, HashAlgorithm.SHA256.value)
        try:
            hash_algorithm = HashAlgorithm.from_name(hash_name)
        except ValueError as e:
            raise ValidationError(f"{config.ENV_HASH}: {e}", cause=e) from e
        return cls(
            iterations=config.env_int(config.ENV_ITERATIONS, DEFAULT_ITERATIONS),
            hash_algorithm=hash_algorithm,
            key_length_bits=config.env_int(config.ENV_KEY_LENGTH, DEFAULT_KEY_LENGTH_BITS),
        )


class DerivedKey:
    """
    Opaque AES-GCM key handle.

    The raw material is never exposed through ``repr``/``str`` and the handle
    cannot be pickled or copied, so it cannot end up in logs or storage by
    accident. There is no public accessor for the key bytes. It lives only for the duration of one encrypt or decrypt call.
    """

    __slots__ = ("_material", "_usages")

    algorithm = "AES-GCM"

    def __init__(self, material: bytes, usages: Iterable[str] = (USAGE_ENCRYPT, USAGE_DECRYPT)):
        self._material = bytes(material)
        self._usages: FrozenSet[str] = frozenset(usages)

    @property
    def length_bits(self) -> int:
        return len(self._material) * 8

    @property
    def usages(self) -> FrozenSet[str]:
        return self._usages

    def allows(self, usage: str) -> bool:
        return usage in self._usages

    def _raw(self) -> bytes:
        # only the cipher layer reads the key bytes
        return self._material

    def __repr__(self) -> str:
        usages = ",".join(sorted(self._usages))
        return f"<DerivedKey {self.algorithm} {self.length_bits}-bit usages={usages}>"

    __str__ = __repr__

    def __reduce_ex__(self, protocol):
        raise TypeError("DerivedKey cannot be serialized")

    def __reduce__(self):
        raise TypeError("DerivedKey cannot be serialized")

    def __copy__(self):
        raise TypeError("DerivedKey cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("DerivedKey cannot be copied")


class DerivationResult(NamedTuple):
    key: DerivedKey
    salt: bytes


class EncryptedPayload(NamedTuple):
    # ciphertext has the authentication tag appended
    ciphertext: bytes
    iv: bytes
