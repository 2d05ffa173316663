"""DMS4096: password-based AES-256-CBC containers for text and files."""

from .codec import (
    DecodeResult,
    EncryptionStats,
    collect_stats,
    decode,
    decode_file,
    decode_text,
    encode_file,
    encode_text,
)
from .container import FileMetadata
from .errors import (
    DMSError,
    DecodeError,
    DecryptionError,
    InvalidArgument,
    MetadataParseError,
    TruncatedContainer,
)
from .files import decrypt_path, encrypt_path
from .kdf import derive_key, generate_passphrase
from .pool import CodecPool, default_pool
from .version import __version__

__all__ = [
    "CodecPool",
    "DMSError",
    "DecodeError",
    "DecodeResult",
    "DecryptionError",
    "EncryptionStats",
    "FileMetadata",
    "InvalidArgument",
    "MetadataParseError",
    "TruncatedContainer",
    "__version__",
    "collect_stats",
    "decode",
    "decode_file",
    "decode_text",
    "decrypt_path",
    "default_pool",
    "derive_key",
    "encode_file",
    "encode_text",
    "encrypt_path",
    "generate_passphrase",
]
