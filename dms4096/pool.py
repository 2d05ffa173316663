"""Run codec calls on a worker pool so PBKDF2 does not stall the caller.

``hashlib.pbkdf2_hmac`` and the OpenSSL cipher calls release the GIL, so a
thread pool gives real parallelism for concurrent requests.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import threading
from typing import Any, Callable, Optional

from . import codec, settings


class CodecPool:
    """A bounded executor for encode/decode calls.

    Calls share no state, so they may complete in any order. Cancelling a
    pending future simply drops the work.
    """

    def __init__(self, max_workers: Optional[int] = None) -> None:
        self.max_workers = max_workers or settings.MAX_WORKERS
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="dms4096"
        )

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> concurrent.futures.Future:
        return self._executor.submit(fn, *args, **kwargs)

    def submit_encode_text(self, text: str, passphrase=None, **kwargs: Any) -> concurrent.futures.Future:
        return self.submit(codec.encode_text, text, passphrase, **kwargs)

    def submit_encode_file(
        self,
        data: bytes,
        name: str,
        content_type: str = "",
        size: Optional[int] = None,
        passphrase=None,
        **kwargs: Any
    ) -> concurrent.futures.Future:
        return self.submit(codec.encode_file, data, name, content_type, size, passphrase, **kwargs)

    def submit_decode(self, container, passphrase=None, **kwargs: Any) -> concurrent.futures.Future:
        return self.submit(codec.decode, container, passphrase, **kwargs)

    async def run_async(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args, **kwargs))

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)

    def __enter__(self) -> "CodecPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)


_DEFAULT_POOL: Optional[CodecPool] = None
_DEFAULT_POOL_LOCK = threading.Lock()


def default_pool() -> CodecPool:
    global _DEFAULT_POOL
    with _DEFAULT_POOL_LOCK:
        if _DEFAULT_POOL is None:
            _DEFAULT_POOL = CodecPool()
        return _DEFAULT_POOL


__all__ = ["CodecPool", "default_pool"]
