"""AES-256-CBC with PKCS7 padding.

CBC carries no authentication tag: a wrong key or a corrupted block is only
caught when the unpadder rejects the last block, and some corruptions decrypt
to wrong plaintext silently. The tagged container format adds an HMAC on top.
"""

from __future__ import annotations

import secrets

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import DecryptionError, InvalidArgument

BLOCK_SIZE = 16
IV_LEN = 16
KEY_LEN = 32


def _check_key_iv(key: bytes, iv: bytes) -> None:
    if len(key) != KEY_LEN:
        raise InvalidArgument(f"AES-256 key must be {KEY_LEN} bytes (got {len(key)})")
    if len(iv) != IV_LEN:
        raise InvalidArgument(f"CBC IV must be {IV_LEN} bytes (got {len(iv)})")


def generate_iv() -> bytes:
    return secrets.token_bytes(IV_LEN)


def encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    _check_key_iv(key, iv)
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    padded = padder.update(bytes(plaintext)) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
    _check_key_iv(key, iv)
    if not ciphertext or len(ciphertext) % BLOCK_SIZE:
        raise DecryptionError(
            f"Ciphertext length must be a positive multiple of {BLOCK_SIZE} (got {len(ciphertext)})"
        )
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(bytes(ciphertext)) + decryptor.finalize()
    unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        raise DecryptionError("Invalid padding; wrong passphrase or corrupted ciphertext") from exc


__all__ = ["BLOCK_SIZE", "IV_LEN", "decrypt", "encrypt", "generate_iv"]
