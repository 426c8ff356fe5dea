import json
import uuid
from typing import List, Optional, Set

import pytest

from wallet_store.blob.memory import InMemoryBlobStore
from wallet_store.exceptions import TransportError
from wallet_store.store import S3Store

BUCKET = "test-bucket"
# Keeps PBKDF2 fast in tests.
FAST_KDF_ITERATIONS = 1_000


class RecordingBlobStore(InMemoryBlobStore):
    """In-memory store that records requests and can fail chosen keys."""

    def __init__(self, page_size: int = 1000):
        super().__init__(page_size=page_size)
        self.gets: List[str] = []
        self.puts: List[str] = []
        self.lists: List[Optional[str]] = []
        self.failing_keys: Set[str] = set()

    def put_object(self, bucket, key, data):
        self.puts.append(key)
        super().put_object(bucket, key, data)

    def get_object(self, bucket, key):
        self.gets.append(key)
        if key in self.failing_keys:
            raise TransportError(f"simulated failure for {key}")
        return super().get_object(bucket, key)

    def list_objects(self, bucket, prefix, continuation_token=None):
        self.lists.append(continuation_token)
        return super().list_objects(bucket, prefix, continuation_token)


def record(name: str, record_id: uuid.UUID, **extra) -> bytes:
    return json.dumps({"name": name, "uuid": str(record_id), **extra}).encode("utf-8")


@pytest.fixture
def blob_store() -> RecordingBlobStore:
    store = RecordingBlobStore()
    store.create_bucket(BUCKET)
    return store


@pytest.fixture
def make_store(blob_store):
    def _make(**kwargs) -> S3Store:
        kwargs.setdefault("kdf_iterations", FAST_KDF_ITERATIONS)
        return S3Store(blob_store, BUCKET, **kwargs)

    return _make


@pytest.fixture(params=["identifier", "name-hash"])
def store(request, make_store) -> S3Store:
    """Unencrypted store, once per key scheme."""
    return make_store(key_scheme=request.param)
