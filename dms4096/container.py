"""
Byte layouts for DMS4096 containers.

Legacy layout (the original wire format, no version marker)::

    [16 salt][16 iv][4 meta_len (file only)][meta_len metadata (file only)][ciphertext]

Tagged layout (explicit format tag plus HMAC-SHA256 over everything before it)::

    [4 b"DMS2"][1 tag][16 salt][16 iv][4 meta_len + metadata (file only)][ciphertext][32 mac]

Text containers never carry metadata; file containers always do. The legacy
layout cannot say which one it holds, so readers sniff the file layout first
(see ``split_file_body``) and fall back to text.
"""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from .cipher import BLOCK_SIZE, IV_LEN
from .errors import DecryptionError, MetadataParseError, TruncatedContainer
from .kdf import SALT_LEN

HEADER_LEN = SALT_LEN + IV_LEN
META_LEN_STRUCT = struct.Struct(">I")

TAGGED_MAGIC = b"DMS2"
TAG_TEXT = 0x00
TAG_FILE = 0x01
TAGS = (TAG_TEXT, TAG_FILE)
MAC_LEN = 32
TAGGED_HEADER_LEN = len(TAGGED_MAGIC) + 1 + HEADER_LEN


def metadata_problem(name, content_type, size) -> Optional[str]:
    """Describe why these fields cannot round-trip through a container, or return None."""
    if not isinstance(name, str) or not isinstance(content_type, str):
        return "Metadata name/type must be strings"
    try:
        name.encode("utf-8")
        content_type.encode("utf-8")
    except UnicodeEncodeError:
        return "Metadata name/type must be encodable as UTF-8"
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        return "Metadata size must be a non-negative integer"
    return None


@dataclass(frozen=True)
class FileMetadata:
    name: str
    content_type: str
    size: int

    def to_json_bytes(self) -> bytes:
        # Same key names and compact form as the browser's JSON.stringify
        record = {"name": self.name, "type": self.content_type, "size": self.size}
        return json.dumps(record, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_json_bytes(cls, blob: bytes) -> "FileMetadata":
        try:
            record = json.loads(blob.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise MetadataParseError("Metadata is not valid UTF-8 JSON") from exc
        if not isinstance(record, dict):
            raise MetadataParseError("Metadata must be a JSON object")
        name = record.get("name")
        content_type = record.get("type")
        size = record.get("size")
        problem = metadata_problem(name, content_type, size)
        if problem is not None:
            raise MetadataParseError(problem)
        return cls(name=name, content_type=content_type, size=size)


@dataclass(frozen=True)
class Container:
    """A container split into its fields; nothing here is decrypted."""

    salt: bytes
    iv: bytes
    ciphertext: bytes
    metadata_blob: Optional[bytes] = None
    tag: Optional[int] = None

    @property
    def is_file(self) -> bool:
        return self.metadata_blob is not None

    @property
    def is_tagged(self) -> bool:
        return self.tag is not None


def _metadata_section(metadata_blob: bytes) -> bytes:
    if len(metadata_blob) > 0xFFFFFFFF:
        raise MetadataParseError("Metadata block too large")
    return META_LEN_STRUCT.pack(len(metadata_blob)) + metadata_blob


def pack_legacy(
    salt: bytes,
    iv: bytes,
    ciphertext: bytes,
    metadata_blob: Optional[bytes] = None
) -> bytes:
    out = bytearray()
    out += salt
    out += iv
    if metadata_blob is not None:
        out += _metadata_section(metadata_blob)
    out += ciphertext
    return bytes(out)


def split_header(raw: bytes) -> Tuple[bytes, bytes, bytes]:
    """Split a legacy container into ``(salt, iv, body)``."""
    if len(raw) < HEADER_LEN:
        raise TruncatedContainer(
            f"Container too short: {len(raw)} bytes, need at least {HEADER_LEN}"
        )
    return raw[:SALT_LEN], raw[SALT_LEN:HEADER_LEN], raw[HEADER_LEN:]


def split_file_body(body: bytes) -> Tuple[bytes, bytes]:
    """
    Read ``meta_len || metadata || ciphertext`` from *body*.

    The length prefix is plausible only when it leaves a non-empty ciphertext
    whose length is a whole number of cipher blocks.
    """
    if len(body) < META_LEN_STRUCT.size:
        raise MetadataParseError("Missing metadata length prefix")
    (meta_len,) = META_LEN_STRUCT.unpack_from(body, 0)
    start = META_LEN_STRUCT.size
    end = start + meta_len
    remaining = len(body) - end
    if remaining <= 0 or remaining % BLOCK_SIZE:
        raise MetadataParseError(f"Implausible metadata length {meta_len} for {len(body)}-byte body")
    return body[start:end], body[end:]


def _mac(mac_key: bytes, data: bytes) -> bytes:
    h = hmac.HMAC(mac_key, hashes.SHA256())
    h.update(data)
    return h.finalize()


def is_tagged(raw: bytes) -> bool:
    return raw[:len(TAGGED_MAGIC)] == TAGGED_MAGIC


def pack_tagged(
    tag: int,
    salt: bytes,
    iv: bytes,
    ciphertext: bytes,
    mac_key: bytes,
    metadata_blob: Optional[bytes] = None
) -> bytes:
    if tag not in TAGS:
        raise ValueError(f"Unknown container tag: {tag:#04x}")
    if (tag == TAG_FILE) != (metadata_blob is not None):
        raise ValueError("File containers carry metadata; text containers do not")
    out = bytearray()
    out += TAGGED_MAGIC
    out.append(tag)
    out += salt
    out += iv
    if metadata_blob is not None:
        out += _metadata_section(metadata_blob)
    out += ciphertext
    out += _mac(mac_key, bytes(out))
    return bytes(out)


def read_tagged_salt(raw: bytes) -> bytes:
    if len(raw) < TAGGED_HEADER_LEN + MAC_LEN:
        raise TruncatedContainer(
            f"Tagged container too short: {len(raw)} bytes, need at least {TAGGED_HEADER_LEN + MAC_LEN}"
        )
    offset = len(TAGGED_MAGIC) + 1
    return raw[offset:offset + SALT_LEN]


def unpack_tagged(raw: bytes, mac_key: bytes) -> Container:
    """Verify the trailing MAC of *raw* and split it into its fields."""
    salt = read_tagged_salt(raw)
    signed, mac = raw[:-MAC_LEN], raw[-MAC_LEN:]
    h = hmac.HMAC(mac_key, hashes.SHA256())
    h.update(signed)
    try:
        h.verify(mac)
    except InvalidSignature as exc:
        raise DecryptionError("Container authentication failed; wrong passphrase or tampering") from exc
    tag = signed[len(TAGGED_MAGIC)]
    if tag not in TAGS:
        raise DecryptionError(f"Unknown container tag: {tag:#04x}")
    iv = signed[len(TAGGED_MAGIC) + 1 + SALT_LEN:TAGGED_HEADER_LEN]
    body = signed[TAGGED_HEADER_LEN:]
    if tag == TAG_FILE:
        metadata_blob, ciphertext = split_file_body(body)
        return Container(salt, iv, ciphertext, metadata_blob=metadata_blob, tag=tag)
    return Container(salt, iv, body, tag=tag)


__all__ = [
    "Container",
    "FileMetadata",
    "HEADER_LEN",
    "MAC_LEN",
    "TAGGED_MAGIC",
    "TAG_FILE",
    "TAG_TEXT",
    "is_tagged",
    "metadata_problem",
    "pack_legacy",
    "pack_tagged",
    "read_tagged_salt",
    "split_file_body",
    "split_header",
    "unpack_tagged",
]
