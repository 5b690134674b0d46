"""Unit tests for packaged (password-sealed) string blobs."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from sealbox.core.exceptions import (
    CryptoError,
    DECRYPTION_PACKAGING_FAILED,
    ENCRYPTION_PACKAGING_FAILED,
    KeyOperationError,
    MalformedCiphertextError,
    ValidationError,
)
from sealbox.core.models import HashAlgorithm, KeyDerivationParams
from sealbox.security.package import (
    CURRENT_VERSION,
    FORMATS,
    MAGIC,
    decrypt_packaged_string,
    encrypt_string_and_package,
    parse_blob,
)

PASSWORD = "correct horse battery staple"


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def fast_params():
    # Use very low costs for speed in unit tests
    return KeyDerivationParams(iterations=1_000)


@pytest.fixture
def blob(fast_params):
    return encrypt_string_and_package("hello world", PASSWORD, fast_params)


# ==============================================================================
# Tests: Round trips
# ==============================================================================

def test_hello_world_scenario():
    """Default parameters: header bytes, round trip and wrong password rejection."""
    blob = encrypt_string_and_package("hello world", PASSWORD)

    assert blob[0] == 0xCC
    assert blob[1] == 0x01
    assert decrypt_packaged_string(blob, PASSWORD) == "hello world"
    with pytest.raises(MalformedCiphertextError):
        decrypt_packaged_string(blob, "wrong password")


@pytest.mark.parametrize(
    "plaintext",
    ["a", "hello world", "çok gizli \U0001f510", "x" * 10_000, "  padded  ", '{"json": [1, 2]}'],
)
def test_roundtrip(fast_params, plaintext):
    blob = encrypt_string_and_package(plaintext, "pw", fast_params)
    assert decrypt_packaged_string(blob, "pw", fast_params) == plaintext


def test_roundtrip_sha512(fast_params):
    params = fast_params.replace(hash_algorithm=HashAlgorithm.SHA512)
    blob = encrypt_string_and_package("data", "pw", params)
    assert decrypt_packaged_string(blob, "pw", params) == "data"


def test_roundtrip_accepts_bytearray(blob, fast_params):
    assert decrypt_packaged_string(bytearray(blob), PASSWORD, fast_params) == "hello world"


def test_layout_with_explicit_salt_and_iv(fast_params):
    salt = bytes(range(32))
    iv = bytes(range(100, 112))
    blob = encrypt_string_and_package("abc", "pw", fast_params, salt=salt, iv=iv)

    assert blob[:2] == bytes([MAGIC, CURRENT_VERSION])
    assert blob[2:34] == salt
    assert blob[34:46] == iv
    assert len(blob) == 46 + 3 + 16
    # deterministic once salt and IV are pinned
    assert blob == encrypt_string_and_package("abc", "pw", fast_params, salt=salt, iv=iv)


def test_minimum_blob_size(fast_params):
    blob = encrypt_string_and_package("a", "pw", fast_params)
    assert len(blob) == 63


def test_associated_data(fast_params):
    blob = encrypt_string_and_package("data", "pw", fast_params, additional_authenticated_data=b"row-1")
    assert decrypt_packaged_string(blob, "pw", fast_params, additional_authenticated_data=b"row-1") == "data"
    with pytest.raises(MalformedCiphertextError):
        decrypt_packaged_string(blob, "pw", fast_params, additional_authenticated_data=b"row-2")


def test_concurrent_roundtrips(fast_params):
    """Independent calls share no state and can run on separate threads."""
    texts = [f"message {i}" for i in range(16)]

    def roundtrip(text):
        blob = encrypt_string_and_package(text, f"pw-{text}", fast_params)
        return decrypt_packaged_string(blob, f"pw-{text}", fast_params)

    with ThreadPoolExecutor(max_workers=4) as pool:
        assert list(pool.map(roundtrip, texts)) == texts


# ==============================================================================
# Tests: Freshness
# ==============================================================================

def test_same_input_gives_different_blobs(fast_params):
    first = encrypt_string_and_package("same", "pw", fast_params)
    second = encrypt_string_and_package("same", "pw", fast_params)

    assert first != second
    assert first[2:34] != second[2:34]
    assert first[34:46] != second[34:46]


def test_salt_and_iv_never_all_zero(fast_params):
    for _ in range(25):
        parsed = parse_blob(encrypt_string_and_package("same", "pw", fast_params))
        assert any(parsed.salt)
        assert any(parsed.iv)


# ==============================================================================
# Tests: Tamper and password rejection
# ==============================================================================

def test_every_ciphertext_bit_flip_is_detected(blob, fast_params):
    for index in range(46, len(blob)):
        for bit in range(8):
            tampered = bytearray(blob)
            tampered[index] ^= 1 << bit
            with pytest.raises(MalformedCiphertextError):
                decrypt_packaged_string(bytes(tampered), PASSWORD, fast_params)


@pytest.mark.parametrize("index", [2, 20, 33, 34, 40, 45])
def test_salt_or_iv_tamper_is_detected(blob, fast_params, index):
    tampered = bytearray(blob)
    tampered[index] ^= 0x80
    with pytest.raises(MalformedCiphertextError):
        decrypt_packaged_string(bytes(tampered), PASSWORD, fast_params)


@pytest.mark.parametrize("password", ["wrong password", PASSWORD.upper(), PASSWORD + " "])
def test_wrong_password_rejected(blob, fast_params, password):
    with pytest.raises(MalformedCiphertextError, match="tag mismatch"):
        decrypt_packaged_string(blob, password, fast_params)


def test_mismatched_params_rejected(blob, fast_params):
    with pytest.raises(MalformedCiphertextError):
        decrypt_packaged_string(blob, PASSWORD, fast_params.replace(iterations=1_001))


# ==============================================================================
# Tests: Structural validation
# ==============================================================================

def test_truncated_to_30_bytes(blob, fast_params):
    with pytest.raises(MalformedCiphertextError, match="too short"):
        decrypt_packaged_string(blob[:30], PASSWORD, fast_params)


def test_header_without_full_tag_is_too_short(blob, fast_params):
    with pytest.raises(MalformedCiphertextError, match="too short"):
        decrypt_packaged_string(blob[:50], PASSWORD, fast_params)


def test_invalid_magic(blob, fast_params):
    tampered = b"\x00" + blob[1:]
    with pytest.raises(MalformedCiphertextError, match="invalid magic header"):
        decrypt_packaged_string(tampered, PASSWORD, fast_params)


@pytest.mark.parametrize("version", [0x00, 0x02, 0xFF])
def test_unsupported_version(blob, fast_params, version):
    tampered = blob[:1] + bytes([version]) + blob[2:]
    with pytest.raises(MalformedCiphertextError, match="unsupported version"):
        decrypt_packaged_string(tampered, PASSWORD, fast_params)


def test_structural_checks_run_before_key_derivation(blob):
    """Malformed blobs are rejected before any PBKDF2 work, even with unusable params."""
    broken = KeyDerivationParams(iterations=0)
    with pytest.raises(MalformedCiphertextError, match="too short"):
        decrypt_packaged_string(blob[:10], PASSWORD, broken)
    with pytest.raises(MalformedCiphertextError, match="invalid magic header"):
        decrypt_packaged_string(b"\xab" + blob[1:], PASSWORD, broken)


def test_parse_blob_slices_regions(blob):
    parsed = parse_blob(blob)

    assert parsed.format is FORMATS[1]
    assert parsed.salt == blob[2:34]
    assert parsed.iv == blob[34:46]
    assert parsed.ciphertext == blob[46:]


def test_format_registry():
    fmt = FORMATS[1]
    assert fmt.prefix_length == 46
    assert fmt.tag_length == 16
    with pytest.raises(TypeError):
        FORMATS[2] = fmt


# ==============================================================================
# Tests: Input validation & wrapped failures
# ==============================================================================

@pytest.mark.parametrize("plaintext,password", [("", "pw"), ("  ", "pw"), ("data", ""), ("data", "   ")])
def test_package_rejects_blank_input(plaintext, password):
    with pytest.raises(ValidationError):
        encrypt_string_and_package(plaintext, password)


def test_decrypt_rejects_blank_input(blob):
    with pytest.raises(ValidationError):
        decrypt_packaged_string(b"", PASSWORD)
    with pytest.raises(ValidationError):
        decrypt_packaged_string(blob, " ")


def test_package_rejects_wrong_salt_or_iv_length(fast_params):
    with pytest.raises(ValidationError, match="salt"):
        encrypt_string_and_package("data", "pw", fast_params, salt=b"\x01" * 16)
    with pytest.raises(ValidationError, match="IV"):
        encrypt_string_and_package("data", "pw", fast_params, iv=b"\x01" * 16)
    with pytest.raises(ValidationError, match="salt"):
        encrypt_string_and_package("data", "pw", fast_params.replace(salt_length_bytes=16))


def test_package_failure_is_wrapped(fast_params):
    with pytest.raises(CryptoError) as excinfo:
        encrypt_string_and_package("data", "pw", fast_params.replace(iterations=0))

    assert type(excinfo.value) is CryptoError
    assert excinfo.value.code == ENCRYPTION_PACKAGING_FAILED
    assert isinstance(excinfo.value.cause, KeyOperationError)


def test_unpackage_failure_is_wrapped(blob, fast_params):
    with pytest.raises(CryptoError) as excinfo:
        decrypt_packaged_string(blob, PASSWORD, fast_params.replace(key_length_bits=99))

    assert not isinstance(excinfo.value, MalformedCiphertextError)
    assert excinfo.value.code == DECRYPTION_PACKAGING_FAILED
    assert isinstance(excinfo.value.__cause__, KeyOperationError)
