from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Union
from uuid import UUID


class WalletStore(ABC):
    """Persistence for wallet headers, accounts and accounts indices."""

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def store_wallet(self, wallet_id: UUID, wallet_name: str, data: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    def retrieve_wallet(self, wallet_name: str) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def retrieve_wallet_by_id(self, wallet_id: UUID) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def retrieve_wallets(self) -> Iterator[bytes]:
        raise NotImplementedError

    @abstractmethod
    def store_account(self, wallet_id: UUID, account_id: UUID, data: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    def retrieve_account(self, wallet_id: UUID, account: Union[UUID, str]) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def retrieve_accounts(self, wallet_id: UUID) -> Iterator[bytes]:
        raise NotImplementedError

    @abstractmethod
    def store_accounts_index(self, wallet_id: UUID, data: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    def retrieve_accounts_index(self, wallet_id: UUID) -> bytes:
        raise NotImplementedError


class BatchStore(ABC):
    """Persistence for one opaque batch blob per wallet."""

    @abstractmethod
    def store_batch(self, wallet_id: UUID, data: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    def retrieve_batch(self, wallet_id: UUID) -> bytes:
        raise NotImplementedError


class LocationProvider(ABC):
    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable location of the stored data."""
        raise NotImplementedError
