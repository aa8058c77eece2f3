"""Unit tests for AES-256-GCM secret storage."""

from __future__ import annotations

import pytest

from ontohub.errors import AuthenticationError, ConfigurationError
from ontohub.security.vault import (
    KEY_BYTES,
    NONCE_BYTES,
    TAG_BYTES,
    SecretVault,
    decrypt,
    encrypt,
    generate_key,
    parse_key,
)


@pytest.fixture
def key() -> bytes:
    """Return a random 32-byte key."""
    return parse_key(generate_key())


def test_round_trip(key: bytes) -> None:
    """Decrypting an encryption returns the plaintext."""
    assert decrypt(encrypt("s3cret", key), key) == "s3cret"


def test_round_trip_unicode_and_empty(key: bytes) -> None:
    """Non-ASCII and empty plaintexts survive the round trip."""
    assert decrypt(encrypt("clé secrète", key), key) == "clé secrète"
    assert decrypt(encrypt("", key), key) == ""


def test_encoding_layout(key: bytes) -> None:
    """The encoding is lowercase hex of nonce, tag and ciphertext."""
    encoded = encrypt("abc", key)
    assert encoded == encoded.lower()
    assert len(bytes.fromhex(encoded)) == NONCE_BYTES + TAG_BYTES + len("abc")


def test_fresh_nonce_per_call(key: bytes) -> None:
    """Encrypting the same plaintext twice gives different encodings."""
    assert encrypt("same", key) != encrypt("same", key)


def test_wrong_key_fails(key: bytes) -> None:
    """Another key cannot decrypt the secret."""
    encoded = encrypt("s3cret", key)
    other = parse_key(generate_key())
    with pytest.raises(AuthenticationError, match="tag mismatch"):
        decrypt(encoded, other)


@pytest.mark.parametrize("position", [0, NONCE_BYTES, NONCE_BYTES + TAG_BYTES])
def test_tampering_fails(key: bytes, position: int) -> None:
    """Flipping a byte in the nonce, tag or ciphertext fails authentication."""
    raw = bytearray(bytes.fromhex(encrypt("s3cret", key)))
    raw[position] ^= 0x01
    with pytest.raises(AuthenticationError):
        decrypt(raw.hex(), key)


@pytest.mark.parametrize(
    ("encoded", "reason"),
    [
        ("not-hex", "not hex"),
        ("00" * (NONCE_BYTES + TAG_BYTES - 1), "truncated"),
    ],
)
def test_malformed_encoding_fails(key: bytes, encoded: str, reason: str) -> None:
    """Malformed encodings raise AuthenticationError."""
    with pytest.raises(AuthenticationError, match=reason):
        decrypt(encoded, key)


def test_decrypt_rejects_short_key(key: bytes) -> None:
    """A key of the wrong length is an authentication failure on decrypt."""
    encoded = encrypt("s3cret", key)
    with pytest.raises(AuthenticationError, match="key must be"):
        decrypt(encoded, key[:16])


def test_encrypt_rejects_short_key() -> None:
    """A key of the wrong length is a configuration error on encrypt."""
    with pytest.raises(ConfigurationError):
        encrypt("s3cret", b"\x00" * 16)


@pytest.mark.parametrize("hex_key", ["", "zz" * KEY_BYTES, "00" * 16, "00" * 33])
def test_parse_key_rejects_bad_keys(hex_key: str) -> None:
    """parse_key names the setting when the key is unusable."""
    with pytest.raises(ConfigurationError, match="ONTOHUB_WEBHOOK_ENCRYPTION_KEY"):
        parse_key(hex_key)


def test_generate_key_is_64_hex_characters() -> None:
    """Generated keys parse to 32 bytes."""
    generated = generate_key()
    assert len(generated) == KEY_BYTES * 2
    assert len(parse_key(generated)) == KEY_BYTES


def test_vault_round_trip_and_redacted_repr() -> None:
    """The vault wraps the functions and hides its key."""
    hex_key = generate_key()
    vault = SecretVault.from_hex(hex_key)
    assert vault.decrypt(vault.encrypt("s3cret")) == "s3cret"
    assert hex_key not in repr(vault)
    assert "redacted" in repr(vault)
