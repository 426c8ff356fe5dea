from __future__ import annotations

import threading
from typing import Dict, Optional

from ..exceptions import ObjectNotFoundError, TransportError
from .base import BlobStore, ObjectPage


class InMemoryBlobStore(BlobStore):
    """Process-local object store with S3-like listing semantics.

    Listings are returned in key order, `page_size` keys at a time, with the
    continuation token being the last key of the previous page.
    """

    def __init__(self, page_size: int = 1000):
        # storage: bucket -> {key: data}
        self._buckets: Dict[str, Dict[str, bytes]] = {}
        self._lock = threading.Lock()
        self.page_size = page_size

    def _bucket(self, bucket: str) -> Dict[str, bytes]:
        try:
            return self._buckets[bucket]
        except KeyError:
            raise TransportError(f"NoSuchBucket: {bucket}") from None

    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        with self._lock:
            self._bucket(bucket)[key] = bytes(data)

    def get_object(self, bucket: str, key: str) -> bytes:
        with self._lock:
            objects = self._bucket(bucket)
            if key not in objects:
                raise ObjectNotFoundError(bucket, key)
            return objects[key]

    def list_objects(self, bucket: str, prefix: str, continuation_token: Optional[str] = None) -> ObjectPage:
        with self._lock:
            keys = sorted(k for k in self._bucket(bucket) if k.startswith(prefix))
        if continuation_token is not None:
            keys = [k for k in keys if k > continuation_token]
        page = keys[: self.page_size]
        truncated = len(keys) > self.page_size
        return ObjectPage(keys=page, next_token=page[-1] if truncated else None, truncated=truncated)

    def bucket_exists(self, bucket: str) -> bool:
        with self._lock:
            return bucket in self._buckets

    def create_bucket(self, bucket: str) -> None:
        with self._lock:
            self._buckets.setdefault(bucket, {})

    def wait_until_bucket_exists(self, bucket: str) -> None:
        if not self.bucket_exists(bucket):
            raise TransportError(f"Bucket {bucket} was not created")

    def __repr__(self) -> str:
        with self._lock:
            return f"<InMemoryBlobStore buckets={list(self._buckets.keys())}>"
