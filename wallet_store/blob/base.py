from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from ..exceptions import ObjectNotFoundError


@dataclass
class ObjectPage:
    """One page of a prefix listing."""

    keys: List[str] = field(default_factory=list)
    next_token: Optional[str] = None
    truncated: bool = False


class BlobStore(ABC):
    """Flat key/value object store with prefix listing.

    `get_object` raises ObjectNotFoundError for an absent key; every other
    failure surfaces as TransportError.
    """

    @abstractmethod
    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_object(self, bucket: str, key: str) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def list_objects(self, bucket: str, prefix: str, continuation_token: Optional[str] = None) -> ObjectPage:
        raise NotImplementedError

    @abstractmethod
    def bucket_exists(self, bucket: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def create_bucket(self, bucket: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def wait_until_bucket_exists(self, bucket: str) -> None:
        raise NotImplementedError

    def object_exists(self, bucket: str, key: str) -> bool:
        try:
            self.get_object(bucket, key)
        except ObjectNotFoundError:
            return False
        return True
