"""
Encrypted wallet storage on Amazon S3 and S3-compatible services.

This package provides:
- S3Store: wallet, account, accounts-index and batch persistence
- load_store: build a store from settings, provisioning bucket and path
- StoreSettings: configuration from arguments, env vars and .env
- Encryptor: optional AES-256-GCM encryption at rest
"""

from .config import StoreSettings
from .exceptions import (
    AccountNotFoundError,
    ConfigurationError,
    DecryptionError,
    DuplicateAccountError,
    RenameNotSupportedError,
    NotFoundError,
    ObjectNotFoundError,
    PayloadTooShortError,
    ProvisioningError,
    TransportError,
    WalletNotFoundError,
    WalletStoreError,
)
from .factory import load_store
from .security import Encryptor
from .store import S3Store

__version__ = "0.1.0"

__all__ = [
    # Store
    "S3Store",
    "load_store",
    "StoreSettings",
    "Encryptor",
    # Errors
    "WalletStoreError",
    "NotFoundError",
    "ObjectNotFoundError",
    "WalletNotFoundError",
    "AccountNotFoundError",
    "DuplicateAccountError",
    "RenameNotSupportedError",
    "DecryptionError",
    "PayloadTooShortError",
    "ConfigurationError",
    "ProvisioningError",
    "TransportError",
]
