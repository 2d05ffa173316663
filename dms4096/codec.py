"""
Encrypt text and files into base64 containers and back.

Every call draws a fresh salt and IV, derives its key once and forgets it.
``decode`` accepts both container layouts described in :mod:`dms4096.container`.
"""

from __future__ import annotations

import base64
import warnings
from dataclasses import dataclass
from typing import NamedTuple, Optional, Union

import numpy as np

from . import cipher, settings
from .container import (
    TAG_FILE,
    TAG_TEXT,
    FileMetadata,
    is_tagged,
    metadata_problem,
    pack_legacy,
    pack_tagged,
    read_tagged_salt,
    split_file_body,
    split_header,
    unpack_tagged,
)
from .errors import (
    DecodeError,
    DecryptionError,
    InvalidArgument,
    MetadataParseError,
    TruncatedContainer,
)
from .kdf import KEY_LEN, PassphraseLike, derive_key, generate_salt

ContainerText = Union[str, bytes]

_WARNED_LEGACY = False


class DecodeResult(NamedTuple):
    payload: Union[str, bytes]
    metadata: Optional[FileMetadata] = None

    @property
    def is_file(self) -> bool:
        return self.metadata is not None


@dataclass(frozen=True)
class EncryptionStats:
    input_size: int
    output_size: int
    time_ms: float
    key_strength: int
    chunks_processed: int
    entropy_bits: float


def _warn_legacy_container() -> None:
    global _WARNED_LEGACY
    if _WARNED_LEGACY or settings.SILENT:
        return
    _WARNED_LEGACY = True
    warnings.warn(
        "Decoding an untagged CBC container: it carries no MAC, so tampering "
        "may go undetected. Set DMS4096_CONTAINER_FORMAT=tagged for new data.",
        RuntimeWarning,
        stacklevel=3
    )


def _b64decode(container: ContainerText) -> bytes:
    if isinstance(container, (bytes, bytearray, memoryview)):
        container = bytes(container)
        compact = b"".join(container.split())
    elif isinstance(container, str):
        compact = "".join(container.split())
    else:
        raise TypeError(f"Container must be str or bytes, not {type(container)!r}")
    try:
        return base64.b64decode(compact, validate=True)
    except ValueError as exc:
        raise DecodeError("Container is not valid base64") from exc


def _derive_pair(passphrase, salt: bytes, iterations: Optional[int]):
    material = derive_key(passphrase, salt, iterations=iterations, length=2 * KEY_LEN)
    return material[:KEY_LEN], material[KEY_LEN:]


def _text_from(plaintext: bytes) -> str:
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError("Decrypted text is not valid UTF-8; wrong passphrase?") from exc


def _seal(
    data: bytes,
    metadata: Optional[FileMetadata],
    passphrase: Optional[PassphraseLike],
    container_format: Optional[str],
    iterations: Optional[int]
) -> str:
    fmt = settings.resolve_format(container_format)
    pw = settings.resolve_passphrase(passphrase)
    salt = generate_salt()
    iv = cipher.generate_iv()
    metadata_blob = metadata.to_json_bytes() if metadata is not None else None
    if fmt == settings.FORMAT_TAGGED:
        key, mac_key = _derive_pair(pw, salt, iterations)
        ciphertext = cipher.encrypt(data, key, iv)
        tag = TAG_FILE if metadata is not None else TAG_TEXT
        raw = pack_tagged(tag, salt, iv, ciphertext, mac_key, metadata_blob)
    else:
        key = derive_key(pw, salt, iterations=iterations)
        ciphertext = cipher.encrypt(data, key, iv)
        raw = pack_legacy(salt, iv, ciphertext, metadata_blob)
    return base64.b64encode(raw).decode("ascii")


def encode_text(
    text: str,
    passphrase: Optional[PassphraseLike] = None,
    *,
    container_format: Optional[str] = None,
    iterations: Optional[int] = None
) -> str:
    """Encrypt *text* (UTF-8) into a base64 text container."""
    if not isinstance(text, str):
        raise TypeError("encode_text expects str")
    try:
        data = text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidArgument("Text is not encodable as UTF-8 (lone surrogate?)") from exc
    return _seal(data, None, passphrase, container_format, iterations)


def encode_file(
    data: bytes,
    name: str,
    content_type: str = "",
    size: Optional[int] = None,
    passphrase: Optional[PassphraseLike] = None,
    *,
    container_format: Optional[str] = None,
    iterations: Optional[int] = None
) -> str:
    """Encrypt file bytes plus their name/type/size into a base64 file container."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError("encode_file expects bytes")
    data = bytes(data)
    size = len(data) if size is None else size
    problem = metadata_problem(name, content_type, size)
    if problem is not None:
        raise InvalidArgument(problem)
    metadata = FileMetadata(name=name, content_type=content_type, size=size)
    return _seal(data, metadata, passphrase, container_format, iterations)


def _decode_tagged(raw: bytes, passphrase, iterations: Optional[int]) -> DecodeResult:
    key, mac_key = _derive_pair(passphrase, read_tagged_salt(raw), iterations)
    parsed = unpack_tagged(raw, mac_key)
    plaintext = cipher.decrypt(parsed.ciphertext, key, parsed.iv)
    if parsed.is_file:
        return DecodeResult(plaintext, FileMetadata.from_json_bytes(parsed.metadata_blob))
    return DecodeResult(_text_from(plaintext))


def _decode_legacy(raw: bytes, passphrase, iterations: Optional[int]) -> DecodeResult:
    salt, iv, body = split_header(raw)
    key = derive_key(passphrase, salt, iterations=iterations)
    _warn_legacy_container()
    try:
        metadata_blob, ciphertext = split_file_body(body)
        metadata = FileMetadata.from_json_bytes(metadata_blob)
        data = cipher.decrypt(ciphertext, key, iv)
    except (MetadataParseError, DecryptionError):
        pass
    else:
        return DecodeResult(data, metadata)
    return DecodeResult(_text_from(cipher.decrypt(body, key, iv)))


def decode(
    container: ContainerText,
    passphrase: Optional[PassphraseLike] = None,
    *,
    iterations: Optional[int] = None
) -> DecodeResult:
    """
    Decrypt a base64 container of either kind.

    Returns ``DecodeResult(payload, metadata)``: ``payload`` is ``str`` with
    ``metadata=None`` for text containers and ``bytes`` with the original
    :class:`FileMetadata` for file containers. Legacy containers are read as
    file layout first and as text layout when that fails; only the final
    failure reaches the caller.
    """
    raw = _b64decode(container)
    pw = settings.resolve_passphrase(passphrase)
    if is_tagged(raw):
        try:
            return _decode_tagged(raw, pw, iterations)
        except TruncatedContainer:
            # Too short to be tagged: a legacy salt that begins with the magic bytes
            pass
    return _decode_legacy(raw, pw, iterations)


def decode_text(
    container: ContainerText,
    passphrase: Optional[PassphraseLike] = None,
    *,
    iterations: Optional[int] = None
) -> str:
    """Decrypt *container* strictly as a text container."""
    raw = _b64decode(container)
    pw = settings.resolve_passphrase(passphrase)
    if is_tagged(raw):
        result = _decode_tagged(raw, pw, iterations)
        if result.is_file:
            raise DecodeError("Container holds a file, not text")
        return result.payload
    salt, iv, body = split_header(raw)
    key = derive_key(pw, salt, iterations=iterations)
    _warn_legacy_container()
    return _text_from(cipher.decrypt(body, key, iv))


def decode_file(
    container: ContainerText,
    passphrase: Optional[PassphraseLike] = None,
    *,
    iterations: Optional[int] = None
) -> DecodeResult:
    """Decrypt *container* strictly as a file container."""
    raw = _b64decode(container)
    pw = settings.resolve_passphrase(passphrase)
    if is_tagged(raw):
        result = _decode_tagged(raw, pw, iterations)
        if not result.is_file:
            raise MetadataParseError("Container holds text, not a file")
        return result
    salt, iv, body = split_header(raw)
    metadata_blob, ciphertext = split_file_body(body)
    metadata = FileMetadata.from_json_bytes(metadata_blob)
    key = derive_key(pw, salt, iterations=iterations)
    _warn_legacy_container()
    return DecodeResult(cipher.decrypt(ciphertext, key, iv), metadata)


def _entropy_bits(raw: bytes) -> float:
    if not raw:
        return 0.0
    counts = np.bincount(np.frombuffer(raw, dtype=np.uint8), minlength=256)
    probs = counts[counts > 0] / len(raw)
    return float(-(probs * np.log2(probs)).sum())


def collect_stats(input_size: int, container: ContainerText, elapsed_seconds: float) -> EncryptionStats:
    """Summarise one encryption: sizes, timing, block count and container entropy."""
    raw = _b64decode(container)
    output_size = len(container)
    return EncryptionStats(
        input_size=input_size,
        output_size=output_size,
        time_ms=elapsed_seconds * 1000.0,
        key_strength=KEY_LEN * 8,
        chunks_processed=input_size // cipher.BLOCK_SIZE + 1,
        entropy_bits=_entropy_bits(raw),
    )


__all__ = [
    "DecodeResult",
    "EncryptionStats",
    "collect_stats",
    "decode",
    "decode_file",
    "decode_text",
    "encode_file",
    "encode_text",
]
