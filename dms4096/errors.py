"""Exception types raised by the DMS4096 container codec."""


class DMSError(ValueError):
    """Base class for every failure the codec reports."""


class InvalidArgument(DMSError):
    """Raised when key derivation or cipher inputs violate their contract."""


class DecodeError(DMSError):
    """Raised when a container is not valid base64 or cannot be framed."""


class TruncatedContainer(DecodeError):
    """Raised when a container is too short to hold its fixed header."""


class DecryptionError(DMSError):
    """Raised when ciphertext fails padding, MAC or UTF-8 validation."""


class MetadataParseError(DMSError):
    """Raised when a file-layout metadata block is implausible or malformed."""


__all__ = [
    "DMSError",
    "DecodeError",
    "DecryptionError",
    "InvalidArgument",
    "MetadataParseError",
    "TruncatedContainer",
]
