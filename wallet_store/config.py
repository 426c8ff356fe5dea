from __future__ import annotations

import os
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .security import DEFAULT_KDF_ITERATIONS

DEFAULT_REGION = "us-east-1"
MAX_NAME_LENGTH = 63
KEY_SCHEMES = ("identifier", "name-hash")

_ENV_FIELDS = {
    "id": "WALLET_STORE_ID",
    "region": "WALLET_STORE_REGION",
    "endpoint": "WALLET_STORE_ENDPOINT",
    "bucket": "WALLET_STORE_BUCKET",
    "path": "WALLET_STORE_PATH",
    "passphrase": "WALLET_STORE_PASSPHRASE",
    "credentials_id": "WALLET_STORE_CREDENTIALS_ID",
    "credentials_secret": "WALLET_STORE_CREDENTIALS_SECRET",
    "key_scheme": "WALLET_STORE_KEY_SCHEME",
    "download_concurrency": "WALLET_STORE_CONCURRENCY",
    "kdf_iterations": "WALLET_STORE_KDF_ITERATIONS",
}


class StoreSettings(BaseModel):
    """Resolved configuration for an S3-backed wallet store."""

    model_config = ConfigDict(frozen=True)

    id: bytes = Field(default=b"", description="Identifying salt mixed into the derived bucket name")
    region: str = Field(default=DEFAULT_REGION)
    endpoint: Optional[str] = Field(default=None, description="URL of an S3-compatible service")
    bucket: Optional[str] = Field(default=None)
    path: str = Field(default="")
    passphrase: bytes = Field(default=b"", repr=False)
    credentials_id: Optional[str] = Field(default=None)
    credentials_secret: Optional[str] = Field(default=None, repr=False)
    key_scheme: str = Field(default="identifier")
    download_concurrency: int = Field(default=15)
    kdf_iterations: int = Field(default=DEFAULT_KDF_ITERATIONS)

    @field_validator("id", "passphrase", mode="before")
    @classmethod
    def _encode_text(cls, value: Any) -> Any:
        if value is None:
            return b""
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    @field_validator("region", mode="before")
    @classmethod
    def _default_region(cls, value: Any) -> Any:
        # An empty region never overrides the default.
        return value or DEFAULT_REGION

    @field_validator("endpoint", "bucket", "credentials_id", "credentials_secret", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        return value or None

    @field_validator("bucket")
    @classmethod
    def _check_bucket(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) > MAX_NAME_LENGTH:
            raise ValueError(f"bucket cannot be more than {MAX_NAME_LENGTH} characters in length")
        return value

    @field_validator("path", mode="before")
    @classmethod
    def _strip_path(cls, value: Any) -> Any:
        return (value or "").lstrip("/")

    @field_validator("key_scheme")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in KEY_SCHEMES:
            raise ValueError(f"key_scheme must be one of {', '.join(KEY_SCHEMES)}")
        return value

    @field_validator("download_concurrency", "kdf_iterations")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    @classmethod
    def build(cls, **values: Any) -> "StoreSettings":
        """Validate `values`, reporting problems as ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid wallet store settings: {exc}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> "StoreSettings":
        """Load settings from the environment (and .env), then apply overrides."""
        load_dotenv()
        values = {}
        for field_name, env_name in _ENV_FIELDS.items():
            raw = os.getenv(env_name)
            if raw is not None and raw != "":
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.build(**values)
