"""Object store backends."""

from .base import BlobStore, ObjectPage
from .memory import InMemoryBlobStore
from .s3 import S3BlobStore

__all__ = [
    "BlobStore",
    "ObjectPage",
    "InMemoryBlobStore",
    "S3BlobStore",
]
