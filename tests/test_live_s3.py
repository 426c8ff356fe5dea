"""
Runs against a real S3 bucket when WALLET_STORE_TEST_BUCKET is set.

Credentials come from the usual boto3 chain; objects are written under a
fresh random path so runs do not collide.
"""

import os
import uuid

import pytest

from wallet_store.config import StoreSettings
from wallet_store.exceptions import AccountNotFoundError, DuplicateAccountError
from wallet_store.factory import load_store

from .conftest import FAST_KDF_ITERATIONS, record

LIVE_BUCKET = os.getenv("WALLET_STORE_TEST_BUCKET")

pytestmark = pytest.mark.skipif(not LIVE_BUCKET, reason="WALLET_STORE_TEST_BUCKET not set")


@pytest.fixture(params=["identifier", "name-hash"])
def live_store(request):
    settings = StoreSettings(
        bucket=LIVE_BUCKET,
        region=os.getenv("WALLET_STORE_TEST_REGION", ""),
        endpoint=os.getenv("WALLET_STORE_TEST_ENDPOINT"),
        path=f"wallet-store-tests/{uuid.uuid4()}",
        passphrase="live test passphrase",
        key_scheme=request.param,
        kdf_iterations=FAST_KDF_ITERATIONS,
    )
    return load_store(settings)


def test_live_round_trip(live_store) -> None:
    wallet_id = uuid.uuid4()
    wallet_data = record("test wallet", wallet_id)
    account_id = uuid.uuid4()
    account_data = record("test account", account_id)

    live_store.store_wallet(wallet_id, "test wallet", wallet_data)
    live_store.store_account(wallet_id, account_id, account_data)
    live_store.store_accounts_index(wallet_id, b"{}")

    assert live_store.retrieve_wallet_by_id(wallet_id) == wallet_data
    assert live_store.retrieve_account(wallet_id, "test account") == account_data
    assert list(live_store.retrieve_accounts(wallet_id)) == [account_data]
    assert live_store.retrieve_accounts_index(wallet_id) == b"{}"
    with pytest.raises(AccountNotFoundError):
        live_store.retrieve_account(wallet_id, uuid.uuid4())

    other_id = uuid.uuid4()
    with pytest.raises(DuplicateAccountError):
        live_store.store_account(wallet_id, other_id, record("test account", other_id))
