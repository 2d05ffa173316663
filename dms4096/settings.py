"""Runtime configuration read from ``DMS4096_*`` environment variables."""

from __future__ import annotations

import os
import warnings
from typing import Optional, Union

from .errors import InvalidArgument

DEFAULT_PASSPHRASE = "DMS4096_HACKATHON_DEMO_KEY_2024"
DEFAULT_KDF_ITERATIONS = 100_000

FORMAT_LEGACY = "legacy"
FORMAT_TAGGED = "tagged"
CONTAINER_FORMATS = (FORMAT_LEGACY, FORMAT_TAGGED)


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if not value:
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    if parsed <= 0:
        return None
    return parsed


def _env_flag(name: str) -> bool:
    raw = os.getenv(name)
    if not raw:
        return False
    return raw.strip().lower() in ("1", "true", "yes", "on")


PASSPHRASE = os.getenv("DMS4096_PASSPHRASE") or DEFAULT_PASSPHRASE

KDF_ITERATIONS = DEFAULT_KDF_ITERATIONS
_TEST_KDF_ITERS = _env_int("DMS4096_TEST_KDF_ITERS")
_KDF_ITERS_ENV = _env_int("DMS4096_KDF_ITERS")
if _KDF_ITERS_ENV is not None:
    KDF_ITERATIONS = _KDF_ITERS_ENV
elif _TEST_KDF_ITERS is not None:
    KDF_ITERATIONS = _TEST_KDF_ITERS

CONTAINER_FORMAT = (os.getenv("DMS4096_CONTAINER_FORMAT") or FORMAT_LEGACY).strip().lower()
if CONTAINER_FORMAT not in CONTAINER_FORMATS:
    warnings.warn(
        f"Unknown DMS4096_CONTAINER_FORMAT {CONTAINER_FORMAT!r}; using {FORMAT_LEGACY!r}.",
        RuntimeWarning
    )
    CONTAINER_FORMAT = FORMAT_LEGACY

_MAX_THREADS_ENV = _env_int("DMS4096_MAX_THREADS")
MAX_WORKERS = _MAX_THREADS_ENV or max(1, os.cpu_count() or 1)

SILENT = _env_flag("DMS4096_SILENT")


def resolve_passphrase(passphrase: Union[str, bytes, None]) -> Union[str, bytes]:
    """Return *passphrase*, or the configured one when the caller gives none."""
    if passphrase is None:
        return PASSPHRASE
    return passphrase


def resolve_iterations(iterations: Optional[int]) -> int:
    if iterations is None:
        return KDF_ITERATIONS
    return iterations


def resolve_format(container_format: Optional[str]) -> str:
    value = (container_format or CONTAINER_FORMAT).strip().lower()
    if value not in CONTAINER_FORMATS:
        raise InvalidArgument(f"Unsupported container format: {container_format!r}")
    return value
