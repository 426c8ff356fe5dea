"""
List-then-fetch retrieval of every record under a prefix.

Listing runs once, page by page, until the continuation chain is exhausted.
Matching keys are then fetched on a bounded thread pool and yielded in
completion order. A key that fails to download or decrypt is logged and
left out; it never ends the stream early. The generator finishes only once
every fetch has been accounted for.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Iterator, List, Optional, Set

from .exceptions import WalletStoreError
from .paths import SEPARATOR
from .records import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 15

KeyFilter = Callable[[str], bool]


class BulkEnumerator:
    def __init__(self, records: RecordStore, concurrency: int = DEFAULT_CONCURRENCY):
        self.records = records
        self.concurrency = concurrency

    def list_keys(self, prefix: str, cancel: Optional[threading.Event] = None) -> List[str]:
        """Return every key under `prefix`, following continuation tokens."""
        keys: List[str] = []
        token: Optional[str] = None
        while True:
            if cancel is not None and cancel.is_set():
                break
            page = self.records.blob_store.list_objects(self.records.bucket, prefix, token)
            keys.extend(page.keys)
            if not page.truncated or not page.next_token:
                break
            token = page.next_token
        return keys

    def _fetch(self, key: str, cancel: threading.Event, stop: threading.Event) -> Optional[bytes]:
        if cancel.is_set() or stop.is_set():
            return None
        try:
            return self.records.get(key)
        except WalletStoreError as e:
            logger.warning(f"Skipping {key}: {e}")
            return None

    def list_and_fetch(
        self,
        prefix: str,
        key_filter: KeyFilter,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[bytes]:
        """Yield the decrypted payload of every listed key accepted by `key_filter`.

        Setting `cancel` stops further list requests and fetches. Closing the
        generator early has the same effect and waits for in-flight fetches.
        """
        cancel = cancel or threading.Event()
        keys = self.list_keys(prefix, cancel)
        keys = [k for k in keys if not k.endswith(SEPARATOR) and key_filter(k)]
        if not keys:
            return
        logger.debug(f"Fetching {len(keys)} objects under {prefix!r}")

        stop = threading.Event()
        executor = ThreadPoolExecutor(
            max_workers=min(self.concurrency, len(keys)),
            thread_name_prefix="wallet-store-fetch",
        )
        try:
            pending: Set[Future] = {executor.submit(self._fetch, key, cancel, stop) for key in keys}
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    data = future.result()
                    if data is not None:
                        yield data
        finally:
            stop.set()
            executor.shutdown(wait=True, cancel_futures=True)
