"""
Wallet store held on Amazon S3 or an S3-compatible service.

The store keeps no state besides its configuration: every lookup re-reads
the bucket. Wallet lookups by name or id scan all wallet headers. Writes
overwrite unconditionally, except that an account cannot take a name that
already belongs to an account with a different id.

Under the name-hash layout a record's key follows its name, so storing an
existing id under a new name is rejected rather than leaving two objects for
one id.
"""

from __future__ import annotations

import logging
import threading
from contextlib import closing
from typing import Iterator, Optional, Union
from uuid import UUID

from .blob.base import BlobStore
from .capabilities import BatchStore, LocationProvider, WalletStore
from .enumerator import DEFAULT_CONCURRENCY, BulkEnumerator
from .exceptions import (
    AccountNotFoundError,
    DuplicateAccountError,
    ObjectNotFoundError,
    RenameNotSupportedError,
    WalletNotFoundError,
)
from .paths import AccountRef, IdentifierKeyScheme, KeyScheme, WalletRef, get_key_scheme, join
from .records import RecordProbe, RecordStore
from .security import DEFAULT_KDF_ITERATIONS, Encryptor

logger = logging.getLogger(__name__)


class S3Store(WalletStore, BatchStore, LocationProvider):
    def __init__(
        self,
        blob_store: BlobStore,
        bucket: str,
        *,
        path: str = "",
        passphrase: Union[bytes, str, None] = None,
        key_scheme: str = IdentifierKeyScheme.name,
        concurrency: int = DEFAULT_CONCURRENCY,
        kdf_iterations: int = DEFAULT_KDF_ITERATIONS,
    ):
        self.bucket = bucket
        self.path = path.strip("/")
        self._keys: KeyScheme = get_key_scheme(key_scheme, self.path)
        self._records = RecordStore(blob_store, bucket, Encryptor(passphrase, kdf_iterations))
        self._enumerator = BulkEnumerator(self._records, concurrency)

    @property
    def name(self) -> str:
        return "s3"

    @property
    def location(self) -> str:
        return join(self.bucket, self.path)

    @property
    def key_scheme(self) -> KeyScheme:
        return self._keys

    # --- Wallets ---

    def store_wallet(self, wallet_id: UUID, wallet_name: str, data: bytes) -> None:
        """Store wallet-level data, overwriting any existing header.

        Clashing wallet names are the caller's concern. When keys are derived
        from names, `data` must carry `wallet_name` as its name and a wallet
        cannot be renamed (RenameNotSupportedError).
        """
        if self._keys.keyed_by_name:
            probe = RecordProbe.parse(data)
            if probe is None or probe.name != wallet_name:
                raise ValueError("wallet data must be a JSON object whose name matches the wallet name")
            self._check_wallet_rename(wallet_id, wallet_name)
        key = self._keys.wallet_header_key(WalletRef(wallet_id, wallet_name))
        logger.debug(f"Storing wallet {wallet_id}")
        self._records.put(key, data)

    def retrieve_wallet(self, wallet_name: str) -> bytes:
        return self._find(self.retrieve_wallets(), "name", wallet_name, WalletNotFoundError)

    def retrieve_wallet_by_id(self, wallet_id: UUID) -> bytes:
        return self._find(self.retrieve_wallets(), "uuid", wallet_id, WalletNotFoundError)

    def retrieve_wallets(self, cancel: Optional[threading.Event] = None) -> Iterator[bytes]:
        """Stream the data of every wallet, in no particular order."""
        return self._enumerator.list_and_fetch(self._keys.root_prefix, self._keys.is_wallet_header, cancel)

    # --- Accounts ---

    def store_account(self, wallet_id: UUID, account_id: UUID, data: bytes) -> None:
        """Store an account, overwriting an existing account with the same id.

        Raises WalletNotFoundError if the wallet does not exist and
        DuplicateAccountError if the account's name belongs to another id.
        When keys are derived from names, an account cannot be renamed
        (RenameNotSupportedError).
        """
        wallet = self._require_wallet(wallet_id)

        probe = RecordProbe.parse(data)
        account_name = probe.name if probe is not None else None
        if account_name is None and self._keys.keyed_by_name:
            raise ValueError("account data must be a JSON object with a name")
        if account_name is not None:
            self._check_duplicate(wallet, account_id, account_name)
        if self._keys.keyed_by_name:
            self._check_account_rename(wallet, account_id, account_name)

        key = self._keys.account_key(wallet, AccountRef(account_id, account_name))
        logger.debug(f"Storing account {account_id} in wallet {wallet_id}")
        self._records.put(key, data)

    def retrieve_account(self, wallet_id: UUID, account: Union[UUID, str]) -> bytes:
        """Retrieve an account by id (a UUID) or by name (a str)."""
        wallet = self._resolve_wallet(wallet_id)
        return self._retrieve_account(wallet, account)

    def retrieve_accounts(self, wallet_id: UUID, cancel: Optional[threading.Event] = None) -> Iterator[bytes]:
        """Stream the data of every account in a wallet, in no particular order."""
        wallet = self._resolve_wallet(wallet_id)
        return self._accounts(wallet, cancel)

    def store_accounts_index(self, wallet_id: UUID, data: bytes) -> None:
        wallet = self._resolve_wallet(wallet_id)
        self._records.put_index(self._keys.index_key(wallet), data)

    def retrieve_accounts_index(self, wallet_id: UUID) -> bytes:
        wallet = self._resolve_wallet(wallet_id)
        return self._records.get_index(self._keys.index_key(wallet))

    # --- Batches ---

    def store_batch(self, wallet_id: UUID, data: bytes) -> None:
        wallet = self._require_wallet(wallet_id)
        self._records.put(self._keys.batch_key(wallet), data)

    def retrieve_batch(self, wallet_id: UUID) -> bytes:
        """Retrieve the batch for a wallet.

        A missing wallet raises WalletNotFoundError; a wallet without a batch
        raises the object store's ObjectNotFoundError.
        """
        wallet = self._require_wallet(wallet_id)
        return self._records.get(self._keys.batch_key(wallet))

    # --- Helpers ---

    def _require_wallet(self, wallet_id: UUID) -> WalletRef:
        data = self.retrieve_wallet_by_id(wallet_id)
        probe = RecordProbe.parse(data)
        wallet_name = probe.name if probe is not None else None
        if wallet_name is None and self._keys.keyed_by_name:
            # Header matched by id, but its folder cannot be derived without a name.
            raise WalletNotFoundError(f"wallet {wallet_id} has no name")
        return WalletRef(wallet_id, wallet_name)

    def _resolve_wallet(self, wallet_id: UUID) -> WalletRef:
        if not self._keys.keyed_by_name:
            # Keys only need the id; skip the header scan.
            return WalletRef(wallet_id)
        return self._require_wallet(wallet_id)

    def _accounts(self, wallet: WalletRef, cancel: Optional[threading.Event] = None) -> Iterator[bytes]:
        return self._enumerator.list_and_fetch(
            self._keys.wallet_prefix(wallet),
            lambda key: self._keys.is_account(key, wallet),
            cancel,
        )

    def _retrieve_account(self, wallet: WalletRef, account: Union[UUID, str]) -> bytes:
        field = "uuid" if isinstance(account, UUID) else "name"
        if field != self._keys.account_field:
            return self._find(self._accounts(wallet), field, account, AccountNotFoundError)

        ref = AccountRef(id=account) if field == "uuid" else AccountRef(name=account)
        try:
            key = self._keys.account_key(wallet, ref)
        except ValueError:
            # Reserved names never hold accounts.
            raise AccountNotFoundError() from None
        try:
            return self._records.get(key)
        except ObjectNotFoundError as e:
            raise AccountNotFoundError() from e

    def _check_duplicate(self, wallet: WalletRef, account_id: UUID, account_name: str) -> None:
        try:
            existing = self._retrieve_account(wallet, account_name)
        except AccountNotFoundError:
            return
        existing_probe = RecordProbe.parse(existing)
        if existing_probe is None or not existing_probe.matches("uuid", account_id):
            raise DuplicateAccountError()

    def _check_wallet_rename(self, wallet_id: UUID, wallet_name: str) -> None:
        try:
            existing = self.retrieve_wallet_by_id(wallet_id)
        except WalletNotFoundError:
            return
        if not RecordProbe.parse(existing).matches("name", wallet_name):
            raise RenameNotSupportedError(f"wallet {wallet_id} is already stored under a different name")

    def _check_account_rename(self, wallet: WalletRef, account_id: UUID, account_name: str) -> None:
        try:
            existing = self._find(self._accounts(wallet), "uuid", account_id, AccountNotFoundError)
        except AccountNotFoundError:
            return
        if not RecordProbe.parse(existing).matches("name", account_name):
            raise RenameNotSupportedError(f"account {account_id} is already stored under a different name")

    @staticmethod
    def _find(records: Iterator[bytes], field: str, value, not_found: type) -> bytes:
        with closing(records):
            for data in records:
                probe = RecordProbe.parse(data)
                if probe is not None and probe.matches(field, value):
                    return data
        raise not_found()

    def __repr__(self) -> str:
        return f"<S3Store location={self.location!r} scheme={self._keys.name}>"
