"""
AES-GCM helpers for encrypting records at rest.

Stored layout is `salt || iv || ciphertext`, where the key is derived from the
store passphrase with PBKDF2-HMAC-SHA256 and a fresh salt per record.
"""

import os
from typing import Tuple, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import DecryptionError, PayloadTooShortError

MIN_PAYLOAD_BYTES = 16
_SALT_BYTES = 16
_IV_BYTES = 12
_TAG_BYTES = 16
DEFAULT_KDF_ITERATIONS = 200_000


def _derive_key(passphrase: bytes, salt: bytes, iterations: int) -> bytes:
    """Derive a symmetric key from the passphrase using PBKDF2-HMAC-SHA256."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(passphrase)


def _split_payload(payload: bytes) -> Tuple[bytes, bytes, bytes]:
    if len(payload) < _SALT_BYTES + _IV_BYTES + _TAG_BYTES:
        raise DecryptionError("Encrypted payload is malformed or truncated.")
    salt = payload[:_SALT_BYTES]
    iv = payload[_SALT_BYTES : _SALT_BYTES + _IV_BYTES]
    ciphertext = payload[_SALT_BYTES + _IV_BYTES :]
    return salt, iv, ciphertext


def seal(data: bytes, passphrase: bytes, iterations: int = DEFAULT_KDF_ITERATIONS) -> bytes:
    """Encrypt `data` with a key derived from `passphrase`."""
    salt = os.urandom(_SALT_BYTES)
    iv = os.urandom(_IV_BYTES)
    key = _derive_key(passphrase, salt, iterations)
    return salt + iv + AESGCM(key).encrypt(iv, data, None)


def open_sealed(payload: bytes, passphrase: bytes, iterations: int = DEFAULT_KDF_ITERATIONS) -> bytes:
    """Decrypt a payload produced by `seal`."""
    salt, iv, ciphertext = _split_payload(payload)
    key = _derive_key(passphrase, salt, iterations)
    try:
        return AESGCM(key).decrypt(iv, ciphertext, None)
    except InvalidTag as exc:
        raise DecryptionError("Failed to decrypt data; verify the passphrase.") from exc


class Encryptor:
    """
    Applies encryption at rest when a passphrase is configured.

    With an empty passphrase, or for empty data, both directions pass the
    data through untouched. Otherwise data shorter than 16 bytes is refused
    in both directions.
    """

    def __init__(self, passphrase: Union[bytes, str, None] = None, iterations: int = DEFAULT_KDF_ITERATIONS):
        if isinstance(passphrase, str):
            passphrase = passphrase.encode("utf-8")
        self._passphrase = passphrase or b""
        self._iterations = iterations

    @property
    def enabled(self) -> bool:
        return bool(self._passphrase)

    def encrypt_if_required(self, data: bytes) -> bytes:
        if not data:
            # Nothing to encrypt.
            return data
        if not self._passphrase:
            # Nothing to encrypt with.
            return data
        if len(data) < MIN_PAYLOAD_BYTES:
            raise PayloadTooShortError()
        return seal(data, self._passphrase, self._iterations)

    def decrypt_if_required(self, data: bytes) -> bytes:
        if not data:
            return data
        if not self._passphrase:
            return data
        if len(data) < MIN_PAYLOAD_BYTES:
            raise PayloadTooShortError()
        return open_sealed(data, self._passphrase, self._iterations)

    def __repr__(self) -> str:
        return f"<Encryptor enabled={self.enabled}>"
