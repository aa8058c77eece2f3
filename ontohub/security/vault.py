"""AES-256-GCM encryption for webhook secrets stored in the registry.

The encoded form is the lowercase hex of ``nonce || tag || ciphertext``
with a 12-byte nonce and a 16-byte tag. Every call to :func:`encrypt` draws
a fresh nonce, so encrypting the same secret twice yields different
encodings.

Usage
-----
>>> key = parse_key(generate_key())
>>> encoded = encrypt("s3cret", key)
>>> decrypt(encoded, key)
's3cret'

"""

from __future__ import annotations

import os
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ontohub.errors import AuthenticationError, ConfigurationError

KEY_BYTES = 32
NONCE_BYTES = 12
TAG_BYTES = 16

_KEY_SETTING = "ONTOHUB_WEBHOOK_ENCRYPTION_KEY"


def generate_key() -> str:
    """Return a new random 256-bit key as 64 hex characters."""
    return secrets.token_hex(KEY_BYTES)


def parse_key(hex_key: str) -> bytes:
    """Decode a 64-character hex key.

    Raises
    ------
    ConfigurationError
        If *hex_key* is not hexadecimal or does not decode to 32 bytes.

    """
    try:
        key = bytes.fromhex(hex_key.strip())
    except ValueError as exc:
        raise ConfigurationError.invalid_setting(
            _KEY_SETTING, "must be a hexadecimal string"
        ) from exc
    if len(key) != KEY_BYTES:
        raise ConfigurationError.invalid_setting(
            _KEY_SETTING,
            f"must be {KEY_BYTES * 2} hex characters ({KEY_BYTES} bytes)",
        )
    return key


def encrypt(plaintext: str, key: bytes) -> str:
    """Encrypt *plaintext* under *key* and return the hex encoding."""
    if len(key) != KEY_BYTES:
        raise ConfigurationError.invalid_setting(
            "encryption key", f"must be {KEY_BYTES} bytes"
        )
    nonce = os.urandom(NONCE_BYTES)
    # AESGCM appends the tag to the ciphertext.
    sealed = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
    return (nonce + tag + ciphertext).hex()


def decrypt(encoded: str, key: bytes) -> str:
    """Decrypt an encoding produced by :func:`encrypt`.

    Raises
    ------
    AuthenticationError
        If the key has the wrong length, the encoding is malformed, or the
        authentication tag does not verify.

    """
    if len(key) != KEY_BYTES:
        raise AuthenticationError.decryption_failed(f"key must be {KEY_BYTES} bytes")
    try:
        raw = bytes.fromhex(encoded)
    except ValueError as exc:
        raise AuthenticationError.decryption_failed("encoding is not hex") from exc
    if len(raw) < NONCE_BYTES + TAG_BYTES:
        raise AuthenticationError.decryption_failed("encoding is truncated")

    nonce = raw[:NONCE_BYTES]
    tag = raw[NONCE_BYTES : NONCE_BYTES + TAG_BYTES]
    ciphertext = raw[NONCE_BYTES + TAG_BYTES :]
    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as exc:
        raise AuthenticationError.decryption_failed("tag mismatch") from exc
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise AuthenticationError.decryption_failed("plaintext is not UTF-8") from exc


class SecretVault:
    """Encrypts and decrypts registry secrets with a process-wide key.

    The key is loaded once at startup and is never included in ``repr`` or
    log output.
    """

    __slots__ = ("_key",)

    def __init__(self, key: bytes) -> None:
        """Bind the vault to a 32-byte key."""
        if len(key) != KEY_BYTES:
            raise ConfigurationError.invalid_setting(
                "encryption key", f"must be {KEY_BYTES} bytes"
            )
        self._key = key

    @classmethod
    def from_hex(cls, hex_key: str) -> SecretVault:
        """Build a vault from the hex form used in configuration."""
        return cls(parse_key(hex_key))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt *plaintext* with the vault key."""
        return encrypt(plaintext, self._key)

    def decrypt(self, encoded: str) -> str:
        """Decrypt *encoded* with the vault key."""
        return decrypt(encoded, self._key)

    def __repr__(self) -> str:
        """Return a representation that omits the key."""
        return "SecretVault(key=<redacted>)"
