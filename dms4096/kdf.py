"""Password-based key derivation (PBKDF2-HMAC-SHA256)."""

from __future__ import annotations

import hashlib
import secrets
import string
from typing import Optional, Union

from . import settings
from .errors import InvalidArgument

SALT_LEN = 16
KEY_LEN = 32
KDF_HASH = "sha256"

PassphraseLike = Union[str, bytes, bytearray, memoryview]


def coerce_passphrase(passphrase: PassphraseLike) -> bytes:
    if isinstance(passphrase, str):
        return passphrase.encode("utf-8")
    if isinstance(passphrase, (bytes, bytearray, memoryview)):
        return bytes(passphrase)
    raise InvalidArgument(f"Unsupported passphrase type: {type(passphrase)!r}")


def derive_key(
    passphrase: PassphraseLike,
    salt: bytes,
    *,
    iterations: Optional[int] = None,
    length: int = KEY_LEN
) -> bytes:
    """
    Derive *length* bytes of key material from *passphrase* and *salt*.

    The result is a pure function of its inputs, so decoding re-derives the
    same key from the salt embedded in a container. The iteration count
    defaults to the configured value (100,000 unless overridden).
    """
    pw = coerce_passphrase(passphrase)
    if not pw:
        raise InvalidArgument("Passphrase must not be empty")
    if not isinstance(salt, (bytes, bytearray, memoryview)) or len(salt) != SALT_LEN:
        raise InvalidArgument(f"Salt must be exactly {SALT_LEN} bytes")
    iters = settings.resolve_iterations(iterations)
    if iters <= 0:
        raise InvalidArgument("Iteration count must be positive")
    if length <= 0:
        raise InvalidArgument("Key length must be positive")
    return hashlib.pbkdf2_hmac(KDF_HASH, pw, bytes(salt), iters, dklen=length)


def generate_salt() -> bytes:
    return secrets.token_bytes(SALT_LEN)


def generate_passphrase(length: int = 32) -> str:
    """Generates a random alphanumeric passphrase of the specified length."""
    if length <= 0:
        raise InvalidArgument("Passphrase length must be positive")
    alphabet = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(length))


__all__ = [
    "KEY_LEN",
    "SALT_LEN",
    "coerce_passphrase",
    "derive_key",
    "generate_passphrase",
    "generate_salt",
]
