""" Input validation and byte helpers shared by the security modules. """

from sealbox.core.exceptions import ValidationError


BYTES_LIKE = (bytes, bytearray, memoryview)


def validate_string(value, name: str) -> None:
    # Rejects non-strings and strings that are empty after trimming.
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} cannot be empty or missing")


def validate_bytes(value, name: str) -> None:
    if not isinstance(value, BYTES_LIKE) or len(value) == 0:
        raise ValidationError(f"{name} cannot be empty or missing")


def to_hex(data) -> str:
    """Return the lowercase hex encoding of a non-empty byte buffer."""
    validate_bytes(data, "buffer for hex encoding")
    return bytes(data).hex()
