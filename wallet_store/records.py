from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .blob.base import BlobStore
from .security import Encryptor

logger = logging.getLogger(__name__)

# Serialized form of an empty accounts index ("{}"); stored as plaintext.
EMPTY_INDEX_LENGTH = 2


class RecordProbe(BaseModel):
    """Minimal view of a stored record used to match it by name or id.

    Each field is read on its own: a malformed `uuid` never hides `name`.
    """

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    uuid: Optional[str] = None

    @field_validator("name", "uuid", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Any:
        return value if isinstance(value, str) else None

    @classmethod
    def parse(cls, data: bytes) -> Optional["RecordProbe"]:
        """Return the probe for `data`, or None when it is not a JSON object."""
        try:
            return cls.model_validate_json(data)
        except ValidationError:
            return None

    @property
    def id(self) -> Optional[UUID]:
        """The record's `uuid` as a UUID, or None when absent or malformed."""
        if not self.uuid:
            return None
        try:
            return UUID(self.uuid)
        except ValueError:
            return None

    def matches(self, field: str, value) -> bool:
        if field == "uuid":
            if self.uuid is None:
                return False
            record_id = self.id
            if record_id is not None and isinstance(value, UUID):
                return record_id == value
            return self.uuid == str(value)
        return self.name is not None and self.name == value


class RecordStore:
    """Encrypting put/get over a single bucket."""

    def __init__(self, blob_store: BlobStore, bucket: str, encryptor: Encryptor):
        self.blob_store = blob_store
        self.bucket = bucket
        self.encryptor = encryptor

    def put(self, key: str, data: bytes, *, encrypt: bool = True) -> None:
        """Upload `data` to `key`, replacing any existing object."""
        if encrypt:
            data = self.encryptor.encrypt_if_required(data)
        self.blob_store.put_object(self.bucket, key, data)

    def get(self, key: str, *, decrypt: bool = True) -> bytes:
        """Download and decrypt `key`; raises ObjectNotFoundError if absent."""
        data = self.blob_store.get_object(self.bucket, key)
        if decrypt:
            data = self.encryptor.decrypt_if_required(data)
        return data

    def put_index(self, key: str, data: bytes) -> None:
        # Do not encrypt the empty index.
        self.put(key, data, encrypt=len(data) != EMPTY_INDEX_LENGTH)

    def get_index(self, key: str) -> bytes:
        data = self.get(key, decrypt=False)
        # Do not decrypt the empty index.
        if len(data) == EMPTY_INDEX_LENGTH:
            return data
        return self.encryptor.decrypt_if_required(data)
