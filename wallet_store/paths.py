"""
Object key derivation for wallets and accounts.

Two layouts are supported and a store uses exactly one of them:

- ``identifier``: keys are built from canonical UUID strings. A wallet header
  lives at ``<walletID>/<walletID>``, so headers are the keys whose last two
  segments are equal.
- ``name-hash``: keys are built from the first 63 hex characters of the
  SHA-256 of a name. Header, index and batch keys use the hash of a fixed
  literal, so they are constant across wallets without exposing the literal.

63 characters is the S3 bucket-name limit; the same hash is reused to derive
default bucket names.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

MAX_KEY_COMPONENT = 63
SEPARATOR = "/"

_BUCKET_SEED = "Ethereum 2 wallet:"


def name_hash(value: str) -> str:
    """Return the 63 hex character key component for a name."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:MAX_KEY_COMPONENT]


def derive_bucket_name(access_key_id: str, salt: bytes = b"") -> str:
    """Bucket name unique to a set of credentials and an identifying salt."""
    digest = hashlib.sha256(f"{_BUCKET_SEED}{access_key_id}".encode("utf-8") + (salt or b""))
    return digest.hexdigest()[:MAX_KEY_COMPONENT]


def join(*elems: str) -> str:
    """Join key segments, skipping empty ones."""
    return SEPARATOR.join(e for e in elems if e)


@dataclass(frozen=True)
class WalletRef:
    id: Optional[UUID] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class AccountRef:
    id: Optional[UUID] = None
    name: Optional[str] = None


class KeyScheme(ABC):
    """Maps wallets and accounts to object keys under a base path."""

    name: str = ""
    # Probe field an account key is derived from ("uuid" or "name").
    account_field: str = ""
    # True when keys are derived from record names, so a rename moves the record.
    keyed_by_name: bool = False

    def __init__(self, path: str = ""):
        self.path = path.strip(SEPARATOR)

    @property
    def root_prefix(self) -> str:
        return f"{self.path}{SEPARATOR}" if self.path else ""

    @abstractmethod
    def wallet_dir(self, wallet: WalletRef) -> str:
        raise NotImplementedError

    @abstractmethod
    def wallet_header_key(self, wallet: WalletRef) -> str:
        raise NotImplementedError

    @abstractmethod
    def account_key(self, wallet: WalletRef, account: AccountRef) -> str:
        raise NotImplementedError

    @abstractmethod
    def index_key(self, wallet: WalletRef) -> str:
        raise NotImplementedError

    @abstractmethod
    def batch_key(self, wallet: WalletRef) -> str:
        raise NotImplementedError

    @abstractmethod
    def is_wallet_header(self, key: str) -> bool:
        raise NotImplementedError

    def wallet_prefix(self, wallet: WalletRef) -> str:
        return self.wallet_dir(wallet) + SEPARATOR

    def is_account(self, key: str, wallet: WalletRef) -> bool:
        """True when `key` directly inside the wallet's prefix holds an account."""
        prefix = self.wallet_prefix(wallet)
        if not key.startswith(prefix) or key.endswith(SEPARATOR):
            return False
        rest = key[len(prefix) :]
        if SEPARATOR in rest:
            return False
        reserved = (self.wallet_header_key(wallet), self.index_key(wallet), self.batch_key(wallet))
        return key not in reserved

    def __repr__(self) -> str:
        return f"<{type(self).__name__} path={self.path!r}>"


class IdentifierKeyScheme(KeyScheme):
    name = "identifier"
    account_field = "uuid"

    def wallet_dir(self, wallet: WalletRef) -> str:
        if wallet.id is None:
            raise ValueError("wallet id is required by the identifier key scheme")
        return join(self.path, str(wallet.id))

    def wallet_header_key(self, wallet: WalletRef) -> str:
        return join(self.wallet_dir(wallet), str(wallet.id))

    def account_key(self, wallet: WalletRef, account: AccountRef) -> str:
        if account.id is None:
            raise ValueError("account id is required by the identifier key scheme")
        return join(self.wallet_dir(wallet), str(account.id))

    def index_key(self, wallet: WalletRef) -> str:
        return join(self.wallet_dir(wallet), "index")

    def batch_key(self, wallet: WalletRef) -> str:
        return join(self.wallet_dir(wallet), "batch")

    def is_wallet_header(self, key: str) -> bool:
        if key.endswith(SEPARATOR) or not key.startswith(self.root_prefix):
            return False
        components = key[len(self.root_prefix) :].split(SEPARATOR)
        return len(components) == 2 and components[0] == components[1]


class NameHashKeyScheme(KeyScheme):
    name = "name-hash"
    account_field = "name"
    keyed_by_name = True

    HEADER = name_hash("wallet")
    INDEX = name_hash("index")
    BATCH = name_hash("batch")
    RESERVED_NAMES = frozenset({"wallet", "index", "batch"})

    def wallet_dir(self, wallet: WalletRef) -> str:
        if wallet.name is None:
            raise ValueError("wallet name is required by the name-hash key scheme")
        return join(self.path, name_hash(wallet.name))

    def wallet_header_key(self, wallet: WalletRef) -> str:
        return join(self.wallet_dir(wallet), self.HEADER)

    def account_key(self, wallet: WalletRef, account: AccountRef) -> str:
        if account.name is None:
            raise ValueError("account name is required by the name-hash key scheme")
        if account.name in self.RESERVED_NAMES:
            raise ValueError(f"account name {account.name!r} is reserved")
        return join(self.wallet_dir(wallet), name_hash(account.name))

    def index_key(self, wallet: WalletRef) -> str:
        return join(self.wallet_dir(wallet), self.INDEX)

    def batch_key(self, wallet: WalletRef) -> str:
        return join(self.wallet_dir(wallet), self.BATCH)

    def is_wallet_header(self, key: str) -> bool:
        if not key.startswith(self.root_prefix):
            return False
        components = key[len(self.root_prefix) :].split(SEPARATOR)
        return len(components) == 2 and components[1] == self.HEADER


_SCHEMES = {
    IdentifierKeyScheme.name: IdentifierKeyScheme,
    NameHashKeyScheme.name: NameHashKeyScheme,
}


def get_key_scheme(name: str, path: str = "") -> KeyScheme:
    """Return the key scheme registered under `name`."""
    try:
        return _SCHEMES[name](path)
    except KeyError:
        raise ValueError(f"Unknown key scheme: {name}") from None
