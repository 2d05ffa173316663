"""File-oriented convenience wrappers."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Optional, Union

from . import codec
from .kdf import PassphraseLike

CONTAINER_SUFFIX = ".dms"

PathLike = Union[str, Path]


def safe_name(name: str) -> str:
    # Metadata comes from the container; never let it point outside out_dir
    candidate = Path(name.replace("\\", "/")).name
    if candidate in ("", ".", ".."):
        raise ValueError(f"Unsafe file name in container metadata: {name!r}")
    return candidate


def encrypt_path(
    path: PathLike,
    output: Optional[PathLike] = None,
    passphrase: Optional[PassphraseLike] = None,
    *,
    container_format: Optional[str] = None,
    overwrite: bool = False
) -> Path:
    """Encrypt the file at *path* and write its base64 container next to it."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {path}")
    data = path.read_bytes()
    content_type = mimetypes.guess_type(path.name)[0] or ""
    container = codec.encode_file(
        data,
        path.name,
        content_type,
        len(data),
        passphrase,
        container_format=container_format
    )
    target = Path(output) if output is not None else path.with_name(path.name + CONTAINER_SUFFIX)
    if target.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite {target}")
    target.write_text(container, encoding="ascii")
    return target


def decrypt_path(
    path: PathLike,
    out_dir: Optional[PathLike] = None,
    passphrase: Optional[PassphraseLike] = None,
    *,
    overwrite: bool = False
) -> Path:
    """
    Decrypt the container stored at *path*.

    File payloads are restored under their original base name inside
    *out_dir* (default: the container's directory). Text payloads are written
    as UTF-8 to ``<stem>.txt``.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Encrypted file not found: {path}")
    result = codec.decode(path.read_text(encoding="ascii"), passphrase)
    directory = Path(out_dir) if out_dir is not None else path.parent
    directory.mkdir(parents=True, exist_ok=True)
    if result.is_file:
        target = directory / safe_name(result.metadata.name)
    else:
        stem = path.name[:-len(CONTAINER_SUFFIX)] if path.name.endswith(CONTAINER_SUFFIX) else path.stem
        target = directory / (Path(stem).stem + ".txt")
    if target.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite {target}")
    if result.is_file:
        target.write_bytes(result.payload)
    else:
        target.write_text(result.payload, encoding="utf-8")
    return target


__all__ = ["CONTAINER_SUFFIX", "decrypt_path", "encrypt_path", "safe_name"]
